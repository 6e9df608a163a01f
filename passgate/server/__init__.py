"""
Entry point for the authentication server.
"""

from __future__ import annotations

import logging

import uvicorn

from passgate.common.config import Config

from .core import AuthServer


def start_server(config: Config | None = None) -> None:
    """Start the authentication server."""
    if config is None:
        config = Config()
    logging.basicConfig(level=config.LOG_LEVEL)
    server = AuthServer(config=config)
    uvicorn.run(server.app, host=config.SERVER_HOST, port=config.SERVER_PORT)
