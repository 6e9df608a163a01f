"""Sealed session token request handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import CapabilityMissing, VerificationRejected
from passgate.common.models import (
    ChainObject,
    SealedKey,
    SessionTokenRequest,
    SessionTokenResponse,
)
from passgate.common.protocol import sealed_key_aad
from passgate.server.chain_reader import check_fresh, type_matches

if TYPE_CHECKING:
    from passgate.common.config import Config
    from passgate.common.interfaces import IChainReader, ISessionManager
    from passgate.common.transaction import MoveCall
    from passgate.server.certificate_validator import CertificateValidator
    from passgate.server.token_issuer import TokenIssuer


class SessionTokenHandler:
    """Handles ``/auth/session_token`` requests.

    Everything that can be checked locally is checked before the chain is
    read, so forged or replayed requests never cost an RPC round trip.
    """

    def __init__(  # noqa: PLR0913
        self,
        config: Config,
        session_manager: ISessionManager,
        validator: CertificateValidator,
        chain_reader: IChainReader,
        token_issuer: TokenIssuer,
        resource_master_secret: bytes,
    ):
        self.config = config
        self.session_manager = session_manager
        self.validator = validator
        self.chain_reader = chain_reader
        self.token_issuer = token_issuer
        self.resource_master_secret = resource_master_secret
        self.logger = logging.getLogger(__name__)

    def handle(self, req: SessionTokenRequest) -> SessionTokenResponse:
        cert = req.certificate
        self.validator.check_certificate(cert)
        self.validator.check_request_signature(req)
        call = self.validator.check_fragment(req.ptb)

        user = CryptoUtils.normalize_address(cert.user)
        check_fresh(
            self.chain_reader, self.validator.clock(), self.config.ALLOWED_STALENESS_MS
        )
        self._check_capabilities(user, call)

        self.session_manager.register_user(user)
        profile = self.session_manager.get_profile(user)
        token, expires_at = self.token_issuer.issue(
            cert.model_copy(update={"user": user}), profile
        )
        self.logger.info("Issued session token for %s", user)
        return SessionTokenResponse(
            auth_token=token,
            expires_at=expires_at,
            profile=profile,
            sealed_key=self._seal_resource_key(req, call.resource_id),
        )

    def _read(self, object_id: str) -> ChainObject | None:
        raw = self.chain_reader.read_object(object_id)
        if not raw:
            return None
        try:
            return ChainObject.model_validate_json(raw)
        except ValidationError as e:
            self.logger.error("Unreadable chain object %s: %s", object_id, e)
            msg = "chain returned an unreadable object"
            raise VerificationRejected("chain_unavailable", msg, 503) from e

    def _check_capabilities(self, user: str, call: MoveCall) -> None:
        """Every capability in the fragment must exist and belong to ``user``."""
        accepted = (self.config.PASSPORT_TYPE, self.config.GAME_ENTRY_TYPE)
        if not call.capability_ids:
            raise CapabilityMissing
        for object_id in call.capability_ids:
            obj = self._read(object_id)
            if obj is None:
                self.logger.info("Capability %s does not exist", object_id)
                raise CapabilityMissing
            if not any(type_matches(obj.type, t) for t in accepted):
                msg = f"object {object_id} is not a gating capability"
                raise VerificationRejected("invalid_ptb", msg)
            if obj.owner is None or CryptoUtils.normalize_address(obj.owner) != user:
                self.logger.info("Capability %s not owned by %s", object_id, user)
                raise CapabilityMissing

    def _seal_resource_key(
        self, req: SessionTokenRequest, resource_id: str
    ) -> SealedKey:
        resource_key = CryptoUtils.derive_resource_key(
            self.resource_master_secret, resource_id
        )
        sealed = CryptoUtils.seal(
            CryptoUtils.b64decode(req.enc_key),
            resource_key,
            sealed_key_aad(resource_id, req.enc_verification_key),
        )
        return SealedKey(resource_id=resource_id, **sealed)
