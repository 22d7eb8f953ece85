"""
Local settings in ~/.snabel/config.json, overridable from the environment.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from snabel_console.poller import DEFAULT_POLL_INTERVAL_S
from snabel_console.transport.http import DEFAULT_BASE_URL

logger = logging.getLogger(__name__)

CONFIG_FILE = Path.home() / ".snabel" / "config.json"

ENV_BASE_URL = "SNABEL_BASE_URL"
ENV_POLL_INTERVAL = "SNABEL_POLL_INTERVAL"


class ConsoleSettings(BaseModel):
    base_url: str = DEFAULT_BASE_URL
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL_S, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    max_log_entries: Optional[int] = Field(default=None, gt=0)


def _read_file(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(path: Path = CONFIG_FILE, env: Optional[dict[str, str]] = None) -> ConsoleSettings:
    """File values, then environment overrides.

    A broken file falls back to defaults; an invalid environment value is
    skipped on its own, leaving the other settings in place.
    """
    env = os.environ if env is None else env
    try:
        settings = ConsoleSettings.model_validate(_read_file(path))
    except ValidationError as e:
        logger.warning("Ignoring invalid settings in %s: %s", path, e)
        settings = ConsoleSettings()

    for var, field in ((ENV_BASE_URL, "base_url"), (ENV_POLL_INTERVAL, "poll_interval")):
        if not env.get(var):
            continue
        try:
            settings = ConsoleSettings.model_validate({**settings.model_dump(), field: env[var]})
        except ValidationError as e:
            logger.warning("Ignoring invalid %s=%r: %s", var, env[var], e)
    return settings


def save_settings(settings: ConsoleSettings, path: Path = CONFIG_FILE) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(settings.model_dump(), indent=2))
