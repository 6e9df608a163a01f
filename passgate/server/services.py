"""Business logic services for the authentication server.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from starlette.concurrency import run_in_threadpool

from passgate.server.domain.credentials_handler import CredentialsHandler
from passgate.server.domain.session_key_handler import SessionKeyHandler
from passgate.server.domain.session_token_handler import SessionTokenHandler
from passgate.server.metrics import Metrics

if TYPE_CHECKING:
    import logging

    from passgate.common.config import Config
    from passgate.common.interfaces import IChainReader, ISessionManager
    from passgate.common.models import (
        CheckGameEntryRequest,
        CheckGameEntryResponse,
        CredentialsResponse,
        LogoutResponse,
        SessionKeyAuthRequest,
        SessionKeyAuthResponse,
        SessionTokenRequest,
        SessionTokenResponse,
    )
    from passgate.server.certificate_validator import CertificateValidator
    from passgate.server.token_issuer import TokenIssuer


class AuthService:
    """Handles business logic for the authentication server.

    Handlers are synchronous and may block on chain reads, so each call is
    moved off the event loop.
    """

    def __init__(  # noqa: PLR0913
        self,
        config: Config,
        session_manager: ISessionManager,
        validator: CertificateValidator,
        chain_reader: IChainReader,
        token_issuer: TokenIssuer,
        resource_master_secret: bytes,
        logger: logging.Logger,
        metrics: Metrics | None = None,
    ):
        self.config = config
        self.session_manager = session_manager
        self.logger = logger
        self.metrics = metrics or Metrics()

        # Initialize handlers
        self.session_key_handler = SessionKeyHandler(
            config=config,
            session_manager=session_manager,
            validator=validator,
            chain_reader=chain_reader,
            token_issuer=token_issuer,
        )
        self.session_token_handler = SessionTokenHandler(
            config=config,
            session_manager=session_manager,
            validator=validator,
            chain_reader=chain_reader,
            token_issuer=token_issuer,
            resource_master_secret=resource_master_secret,
        )
        self.credentials_handler = CredentialsHandler(
            config=config,
            session_manager=session_manager,
            chain_reader=chain_reader,
            token_issuer=token_issuer,
        )

    def health(self) -> dict[str, Any]:
        """Health check endpoint."""
        return {"status": "ok", "timestamp": int(time.time())}

    def render_metrics(self) -> bytes:
        return self.metrics.render()

    async def session_key(self, req: SessionKeyAuthRequest) -> SessionKeyAuthResponse:
        """Handle /auth/session-key business logic."""
        with self.metrics.track("session_key"):
            return await run_in_threadpool(self.session_key_handler.handle, req)

    async def session_token(self, req: SessionTokenRequest) -> SessionTokenResponse:
        """Handle /auth/session_token business logic."""
        with self.metrics.track("session_token"):
            return await run_in_threadpool(self.session_token_handler.handle, req)

    async def credentials(self, authorization: str | None) -> CredentialsResponse:
        with self.metrics.track("credentials"):
            return await run_in_threadpool(
                self.credentials_handler.get_credentials, authorization
            )

    async def check_game_entry(
        self, req: CheckGameEntryRequest
    ) -> CheckGameEntryResponse:
        with self.metrics.track("check_game_entry"):
            return await run_in_threadpool(
                self.credentials_handler.check_game_entry, req
            )

    async def logout(self, authorization: str | None) -> LogoutResponse:
        with self.metrics.track("logout"):
            return await run_in_threadpool(
                self.credentials_handler.logout, authorization
            )
