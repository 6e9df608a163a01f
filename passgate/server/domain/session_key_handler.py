"""Session key login handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import RateLimitError, VerificationRejected
from passgate.common.models import (
    Certificate,
    Credentials,
    SessionKeyAuthRequest,
    SessionKeyAuthResponse,
)

if TYPE_CHECKING:
    from passgate.common.config import Config
    from passgate.common.interfaces import IChainReader, ISessionManager
    from passgate.server.certificate_validator import CertificateValidator
    from passgate.server.token_issuer import TokenIssuer


class SessionKeyHandler:
    """Handles ``/auth/session-key`` logins."""

    def __init__(  # noqa: PLR0913
        self,
        config: Config,
        session_manager: ISessionManager,
        validator: CertificateValidator,
        chain_reader: IChainReader,
        token_issuer: TokenIssuer,
    ):
        self.config = config
        self.session_manager = session_manager
        self.validator = validator
        self.chain_reader = chain_reader
        self.token_issuer = token_issuer
        self.logger = logging.getLogger(__name__)

    def handle(self, req: SessionKeyAuthRequest) -> SessionKeyAuthResponse:
        self.session_manager.clean_expired()
        cert = self._certificate(req)
        # Only certificates the wallet really signed count against its quota
        self.validator.check_certificate(cert)
        if not self.session_manager.check_login_attempt_rate(
            cert.user, self.config.MAX_LOGIN_ATTEMPTS_PER_MINUTE
        ):
            msg = "too many login attempts"
            raise RateLimitError(msg)

        is_new_user = self.session_manager.register_user(cert.user)
        game_entries = self.chain_reader.owned_objects(
            cert.user, self.config.GAME_ENTRY_TYPE
        )
        if not game_entries:
            self.logger.info("No game entry for %s", cert.user)
            return SessionKeyAuthResponse(
                credentials=None, has_game_entry=False, is_new_user=is_new_user
            )

        profile = self.session_manager.get_profile(cert.user)
        token, expires_at = self.token_issuer.issue(cert, profile)
        self.logger.info("Session key login for %s", cert.user)
        return SessionKeyAuthResponse(
            credentials=Credentials(
                access_token=token,
                expires_at=expires_at,
                address=cert.user,
                profile=profile,
            ),
            has_game_entry=True,
            is_new_user=is_new_user,
        )

    @staticmethod
    def _certificate(req: SessionKeyAuthRequest) -> Certificate:
        try:
            user = CryptoUtils.normalize_address(req.address)
        except ValueError as e:
            msg = "invalid address"
            raise VerificationRejected("invalid_request", msg, 400) from e
        return Certificate(
            user=user,
            session_vk=req.session_key,
            creation_time=req.timestamp,
            ttl_min=req.ttl_min,
            signature=req.signature,
        )
