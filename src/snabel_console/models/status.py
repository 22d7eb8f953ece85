"""
Service health models — /api/status.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ServiceStatus(BaseModel):
    running: bool = False
    configured: Optional[bool] = None
    path: Optional[str] = None
    exists: Optional[bool] = None
    port_open: Optional[bool] = Field(default=None, alias="portOpen")
    responding: Optional[bool] = None
    url: Optional[str] = None

    model_config = {"populate_by_name": True}


class StatusSnapshot(BaseModel):
    """Counters the status poller keeps for display. None means never fetched."""
    frontend_running: Optional[bool] = None
    backend_running: Optional[bool] = None
    session_count: Optional[int] = None
    ticks: int = 0
    last_tick_at: Optional[str] = None
    errors: dict[str, str] = Field(default_factory=dict)
