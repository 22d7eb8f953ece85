"""
Error types for snabel-console.

User-action failures raise; background polling failures are only logged;
stream failures become entries in the session log.
"""

from typing import Any, Optional


class SnabelError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(SnabelError):
    """Input rejected locally, before any request is issued."""

    def __init__(self, message: str, code: str = "validation_error"):
        super().__init__(code, message)


class ActionError(SnabelError):
    """A user-triggered request was rejected by the import service."""

    def __init__(self, message: str, code: str = "action_error", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)

    @property
    def status_code(self) -> Optional[int]:
        return (self.details or {}).get("status_code")


class TransportError(SnabelError):
    def __init__(self, message: str):
        super().__init__("transport_error", message)
