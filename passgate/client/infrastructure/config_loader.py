"""Infrastructure layer: Client configuration resolution.
"""

from __future__ import annotations

import logging

from passgate.common import setup_logger
from passgate.common.config import Config
from passgate.common.models import ClientConfig


class ConfigLoader:
    """Resolves client settings from a ClientConfig over Config defaults."""

    def __init__(self, client_config: ClientConfig | None = None):
        client_config = client_config or ClientConfig()
        self.config: Config = Config()

        # Compute server_url if host and port provided
        if client_config.server_host and client_config.server_port:
            self.server_url = (
                f"http://{client_config.server_host}:{client_config.server_port}"
            )
        else:
            self.server_url = client_config.server_url or self.config.SERVER_URL
        self.server_url = self.server_url.rstrip("/")

        self.package_id: str = client_config.package_id or self.config.PACKAGE_ID
        self.ttl_minutes: int = (
            client_config.ttl_minutes
            if client_config.ttl_minutes is not None
            else self.config.SESSION_KEY_TTL_MIN
        )
        self.request_timeout: int = (
            client_config.request_timeout
            if client_config.request_timeout is not None
            else self.config.REQUEST_TIMEOUT
        )
        self.log_level: int = (
            client_config.log_level
            if client_config.log_level is not None
            else self.config.LOG_LEVEL
        )
        self.app_name: str = self.config.PERSONAL_MESSAGE_APP

        # Setup logging
        self.logger = logging.getLogger("passgate.client")
        setup_logger(self.logger, self.log_level)
