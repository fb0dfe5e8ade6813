"""
FastAPI application entry point.

Routes:
  GET  /   → "Hello world!" (plain HTTP, no upgrade)
  WS   /   → state relay on the configured channel

Run with `uvicorn staterelay.main:app` or the `staterelay` console script.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from staterelay.broadcast.state_hub import StateHub
from staterelay.config import LOG_LEVEL
from staterelay.lifecycle import ConnectionHandler
from staterelay.models import RelaySettings

log = logging.getLogger("uvicorn.error")

# Any plain request to / gets the greeting; only an upgrade reaches the relay.
HTTP_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def create_app(settings: Optional[RelaySettings] = None, hub: Optional[StateHub] = None) -> FastAPI:
    settings = settings or RelaySettings.from_env()
    hub = hub or StateHub(settings.channel, settings.initial_state)

    # ── Lifespan ──────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log.info(
            "Listening on %s:%d (channel=%s, mode=%s)",
            settings.host, settings.port, settings.channel, settings.mode,
        )
        yield
        await hub.close()
        log.info("Relay stopped: %s", hub.stats().model_dump())

    app = FastAPI(title="StateRelay", lifespan=lifespan)
    app.state.settings = settings
    app.state.hub = hub

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.allow_any_origin else settings.cors_origins,
        allow_methods=HTTP_METHODS,
        allow_headers=["*"],
    )

    # ── Routes ────────────────────────────────────────────────────────────────

    @app.api_route("/", methods=HTTP_METHODS, response_class=PlainTextResponse)
    async def index():
        return "Hello world!"

    @app.websocket("/")
    async def ws_relay(websocket: WebSocket):
        await ConnectionHandler(websocket, hub, settings).run()

    return app


app = create_app()


def run() -> None:
    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=LOG_LEVEL)


if __name__ == "__main__":
    run()
