"""
Certificate and sealed request validation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import VerificationRejected
from passgate.common.protocol import (
    current_epoch_time,
    enc_key_proof_message,
    personal_message,
    request_message,
)
from passgate.common.transaction import MoveCall

if TYPE_CHECKING:
    from passgate.common.config import Config
    from passgate.common.models import Certificate, SessionTokenRequest

PUBLIC_KEY_LEN = 32


class CertificateValidator:
    """Stateless checks shared by both authentication endpoints.

    None of these touch the chain, so handlers run them before any chain read.
    """

    def __init__(self, config: Config, clock: Callable[[], int] = current_epoch_time):
        self.config = config
        self.clock = clock
        self.logger = logging.getLogger(__name__)

    @staticmethod
    def _public_key(value: str, field: str) -> bytes:
        try:
            raw = CryptoUtils.b64decode(value)
        except ValueError as e:
            msg = f"{field} is not valid base64"
            raise VerificationRejected("invalid_request", msg, 400) from e
        if len(raw) != PUBLIC_KEY_LEN:
            msg = f"{field} must be {PUBLIC_KEY_LEN} bytes"
            raise VerificationRejected("invalid_request", msg, 400)
        return raw

    def check_certificate(self, cert: Certificate) -> None:
        """Verify the TTL window and the wallet signature for this package."""
        if not 0 < cert.ttl_min <= self.config.SESSION_KEY_TTL_MAX:
            msg = f"ttl_min must be between 1 and {self.config.SESSION_KEY_TTL_MAX}"
            raise VerificationRejected("invalid_certificate", msg)

        now = self.clock()
        if cert.creation_time > now:
            self.logger.info("Certificate for %s created in the future", cert.user)
            msg = "certificate creation time is in the future"
            raise VerificationRejected("invalid_certificate", msg)
        if now > cert.expires_at:
            self.logger.info("Certificate for %s expired", cert.user)
            msg = "certificate has expired"
            raise VerificationRejected("expired_certificate", msg, 401)

        self._public_key(cert.session_vk, "session key")
        message = personal_message(
            self.config.PERSONAL_MESSAGE_APP,
            self.config.PACKAGE_ID,
            cert.ttl_min,
            cert.creation_time,
            cert.session_vk,
        )
        if not CryptoUtils.verify_personal_message(message, cert.signature, cert.user):
            self.logger.info("Wallet signature invalid for %s", cert.user)
            msg = "wallet signature does not match address"
            raise VerificationRejected("invalid_signature", msg, 401)
        self.logger.debug("Certificate for %s valid", cert.user)

    def check_request_signature(self, req: SessionTokenRequest) -> None:
        """The session key must sign the fragment together with both keys."""
        session_vk = self._public_key(req.certificate.session_vk, "session key")
        self._public_key(req.enc_key, "enc_key")
        verification_key = self._public_key(
            req.enc_verification_key, "enc_verification_key"
        )
        try:
            signature = CryptoUtils.b64decode(req.request_signature)
        except ValueError:
            signature = b""
        message = request_message(req.ptb, req.enc_key, req.enc_verification_key)
        if not CryptoUtils.verify_ed25519(session_vk, signature, message):
            self.logger.info(
                "Request signature invalid for %s", req.certificate.user
            )
            msg = "request is not signed by the certified session key"
            raise VerificationRejected("invalid_session_signature", msg, 401)

        if req.enc_key_proof is None:
            return
        try:
            proof = CryptoUtils.b64decode(req.enc_key_proof)
        except ValueError:
            proof = b""
        proof_message = enc_key_proof_message(req.enc_key, req.request_signature)
        if not CryptoUtils.verify_ed25519(verification_key, proof, proof_message):
            msg = "enc_key_proof does not match enc_verification_key"
            raise VerificationRejected("invalid_session_signature", msg, 401)

    def check_fragment(self, ptb: str) -> MoveCall:
        """Decode the fragment and require it to call the verify function."""
        try:
            call = MoveCall.from_bytes(CryptoUtils.b64decode(ptb))
            package_id = CryptoUtils.normalize_address(call.package_id)
        except ValueError as e:
            msg = f"invalid transaction fragment: {e}"
            raise VerificationRejected("invalid_ptb", msg) from e
        target = call.target.split("::", 1)[1]
        expected_package, expected_target = self.config.verify_target.split("::", 1)
        if (
            package_id != CryptoUtils.normalize_address(expected_package)
            or target != expected_target
        ):
            msg = f"fragment must call {self.config.verify_target}"
            raise VerificationRejected("invalid_ptb", msg)
        return call
