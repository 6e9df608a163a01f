"""
Application layer: Sealed token request assembly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from passgate.client.domain.entities import PreparedRequest
from passgate.client.domain.key_encapsulation import KeyEncapsulation
from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import ChainBuildError, Expired, NotSigned
from passgate.common.models import SessionTokenRequest
from passgate.common.protocol import enc_key_proof_message, request_message

if TYPE_CHECKING:
    from passgate.client.domain.session_key import SessionKey

logger = logging.getLogger(__name__)

FragmentBuilder = Callable[[], bytes]


class SealedTokenRequestBuilder:
    """Bundles a transaction fragment, fresh key material and a certificate."""

    def build(
        self, session_key: SessionKey, build_fragment: FragmentBuilder
    ) -> PreparedRequest:
        """Build a request or raise; nothing is returned half-built."""
        if not session_key.is_signed:
            msg = "session key must be signed before requesting a token"
            raise NotSigned(msg)
        if session_key.is_expired():
            msg = "session key expired, create a new one"
            raise Expired(msg)
        certificate = session_key.certificate()

        try:
            fragment = build_fragment()
        except ChainBuildError:
            raise
        except Exception as e:
            msg = f"could not build transaction fragment: {e}"
            raise ChainBuildError(msg) from e

        material = KeyEncapsulation.generate()
        ptb = CryptoUtils.b64encode(fragment)
        enc_key = material.enc_key_b64
        enc_verification_key = material.verification_key_b64
        request_signature = session_key.sign_request(
            request_message(ptb, enc_key, enc_verification_key)
        )
        request = SessionTokenRequest(
            ptb=ptb,
            enc_key=enc_key,
            enc_verification_key=enc_verification_key,
            request_signature=request_signature,
            certificate=certificate,
            enc_key_proof=material.prove(
                enc_key_proof_message(enc_key, request_signature)
            ),
        )
        logger.debug("Prepared sealed token request for %s", certificate.user)
        return PreparedRequest(request=request, material=material)
