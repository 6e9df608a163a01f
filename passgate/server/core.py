"""
Authentication server assembled on FastAPI.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from fastapi import FastAPI

from passgate.common.config import Config
from passgate.common.logging_utils import setup_logger
from passgate.common.protocol import current_epoch_time

from .certificate_validator import CertificateValidator
from .chain_reader import RpcChainReader
from .metrics import Metrics
from .routes import AuthRoutes
from .services import AuthService
from .session_manager import SessionManager
from .token_issuer import TokenIssuer

if TYPE_CHECKING:
    from pathlib import Path

    from passgate.common.interfaces import IChainReader

RESOURCE_MASTER_MESSAGE = b"resource_master"


class AuthServer:
    """Verifier for session key certificates and sealed token requests."""

    def __init__(
        self,
        config: Config | None = None,
        chain_reader: IChainReader | None = None,
        server_keys_dir: Path | None = None,
        clock: Callable[[], int] = current_epoch_time,
    ):
        self.config = config or Config()
        if server_keys_dir is not None:
            self.config.SERVER_KEYS_DIR = server_keys_dir
            self.config.SERVER_PUBLIC_KEY_PATH = server_keys_dir / "server_public.key"
            self.config.SERVER_PRIVATE_KEY_PATH = server_keys_dir / "server_private.key"

        self.logger = logging.getLogger(__name__)
        setup_logger(self.logger, self.config.LOG_LEVEL)

        self.server_pub, self.server_priv = self.config.get_server_keys()
        self.chain_reader = chain_reader or RpcChainReader(
            self.config.CHAIN_RPC_URL, self.config.REQUEST_TIMEOUT
        )

        # Initialize components
        self.metrics = Metrics()
        self.session_manager = SessionManager()
        self.validator = CertificateValidator(self.config, clock)
        self.token_issuer = TokenIssuer(
            self.server_priv,
            self.config.TOKEN_ISSUER,
            self.config.TOKEN_ALGORITHM,
            clock,
        )
        self.service = AuthService(
            config=self.config,
            session_manager=self.session_manager,
            validator=self.validator,
            chain_reader=self.chain_reader,
            token_issuer=self.token_issuer,
            resource_master_secret=self.server_priv.sign(RESOURCE_MASTER_MESSAGE),
            logger=self.logger,
            metrics=self.metrics,
        )

        self.app = FastAPI(title="passgate")
        AuthRoutes(self.service).setup_routes(self.app)

        self.logger.info(
            "Verifier accepts certificates for %s", self.config.verify_target
        )
        self.logger.info(
            "Client must set server_url='%s' to connect", self.config.SERVER_URL
        )
