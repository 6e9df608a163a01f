"""Token-bearing requests: credentials lookup, game entry check and logout.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import VerificationRejected
from passgate.common.models import (
    CheckGameEntryRequest,
    CheckGameEntryResponse,
    CredentialsResponse,
    LogoutResponse,
    SessionUser,
)

if TYPE_CHECKING:
    from passgate.common.config import Config
    from passgate.common.interfaces import IChainReader, ISessionManager
    from passgate.server.token_issuer import TokenIssuer


class CredentialsHandler:
    """Handles requests authenticated by a session token."""

    def __init__(
        self,
        config: Config,
        session_manager: ISessionManager,
        chain_reader: IChainReader,
        token_issuer: TokenIssuer,
    ):
        self.config = config
        self.session_manager = session_manager
        self.chain_reader = chain_reader
        self.token_issuer = token_issuer
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def bearer_token(authorization: str | None) -> str:
        """Extract the token from an ``Authorization: Bearer`` header."""
        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            msg = "missing bearer token"
            raise VerificationRejected("invalid_token", msg, 401)
        return token.strip()

    def _claims(self, authorization: str | None) -> dict[str, Any]:
        claims = self.token_issuer.decode(self.bearer_token(authorization))
        if self.session_manager.is_token_revoked(claims["jti"]):
            msg = "token has been revoked"
            raise VerificationRejected("revoked_token", msg, 401)
        return claims

    def get_credentials(self, authorization: str | None) -> CredentialsResponse:
        claims = self._claims(authorization)
        address = claims["user_address"]
        profile = self.session_manager.get_profile(address)
        user = SessionUser(
            address=address,
            session_vk=claims["session_vk"],
            exp=claims["exp"],
            profile=profile,
        )
        if profile is None:
            return CredentialsResponse(
                success=False, credentials=user, error="profile not found"
            )
        return CredentialsResponse(success=True, credentials=user)

    def check_game_entry(self, req: CheckGameEntryRequest) -> CheckGameEntryResponse:
        try:
            address = CryptoUtils.normalize_address(req.address)
        except ValueError as e:
            msg = "invalid address"
            raise VerificationRejected("invalid_request", msg, 400) from e
        entries = self.chain_reader.owned_objects(
            address, self.config.GAME_ENTRY_TYPE
        )
        passports = self.chain_reader.owned_objects(
            address, self.config.PASSPORT_TYPE
        )
        return CheckGameEntryResponse(
            has_game_entry=bool(entries),
            passport_id=passports[0] if passports else None,
            game_entry_id=entries[0] if entries else None,
        )

    def logout(self, authorization: str | None) -> LogoutResponse:
        claims = self._claims(authorization)
        self.session_manager.revoke_token(claims["jti"], claims["exp"])
        self.logger.info("Logged out %s", claims["user_address"])
        return LogoutResponse(success=True, message="Logged out")
