"""Relay error types."""
from __future__ import annotations

from fastapi import status


class RelayError(Exception):
    """Base class for errors raised while relaying a message."""

    close_code: int = status.WS_1011_INTERNAL_ERROR


class PayloadTooLarge(RelayError):
    close_code = status.WS_1009_MESSAGE_TOO_BIG

    def __init__(self, size: int, limit: int) -> None:
        self.size = size
        self.limit = limit
        super().__init__(f"Payload of {size} bytes exceeds limit of {limit} bytes")
