"""JSON error codes returned by the chat service."""

from __future__ import annotations

from .models import HttpError

UNKNOWN_CHANNEL = 10_003
CANNOT_MESSAGE = 50_007


def get_json_error_code(error: BaseException) -> int | None:
    """Return the service's JSON error code carried by an error, if any."""
    if isinstance(error, HttpError):
        return error.code
    return None