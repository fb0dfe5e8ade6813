"""Pydantic models for relay settings and hub state."""
from __future__ import annotations

from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from staterelay import config

RelayMode = Literal["broadcast", "ack"]

# Opaque blob, relayed verbatim and never inspected.
Payload = Union[str, bytes]


# ── Settings ──────────────────────────────────────────────────────────────────

class RelaySettings(BaseModel):
    model_config = ConfigDict(validate_default=True)

    host: str = config.HOST
    port: int = Field(config.PORT, ge=0, le=65535)
    channel: str = Field(config.CHANNEL, min_length=1)
    initial_state: str = config.INITIAL_STATE
    mode: RelayMode = config.RELAY_MODE  # type: ignore[assignment]
    max_payload_bytes: int = Field(config.MAX_PAYLOAD_BYTES, ge=0)
    cors_origins: list[str] = Field(default_factory=lambda: list(config.CORS_ORIGINS))
    allow_any_origin: bool = config.ENV == "dev"

    @classmethod
    def from_env(cls) -> "RelaySettings":
        """Build settings from the config module (validated)."""
        return cls()


# ── Hub ───────────────────────────────────────────────────────────────────────

class HubStats(BaseModel):
    channel: str
    subscribers: int
    has_state: bool                       # False until the first update
    messages_relayed: int = 0
