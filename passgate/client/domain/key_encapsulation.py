"""Domain layer: per-request key encapsulation material.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from passgate.common.crypto import CryptoUtils
from passgate.common.models import SealedKey
from passgate.common.protocol import sealed_key_aad

SECRET_LEN = 32
VERIFICATION_INFO = b"passgate-verification-key"


def _verification_private_key(decryption_key: bytes) -> Ed25519PrivateKey:
    seed = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=VERIFICATION_INFO,
    ).derive(decryption_key)
    return Ed25519PrivateKey.from_private_bytes(seed)


class KeyEncapsulation:
    """Derives the public halves of a one-time decryption secret."""

    @staticmethod
    def derive(decryption_key: bytes) -> tuple[bytes, bytes]:
        """Return ``(encryption_public_key, verification_key)`` for a secret."""
        if len(decryption_key) != SECRET_LEN:
            msg = f"decryption key must be {SECRET_LEN} bytes"
            raise ValueError(msg)
        encryption_public_key = CryptoUtils.raw_public_bytes(
            X25519PrivateKey.from_private_bytes(decryption_key).public_key()
        )
        verification_key = CryptoUtils.raw_public_bytes(
            _verification_private_key(decryption_key).public_key()
        )
        return encryption_public_key, verification_key

    @staticmethod
    def generate() -> EncapsulationMaterial:
        """Fresh material from the OS CSPRNG; safe to call from any thread."""
        return EncapsulationMaterial(os.urandom(SECRET_LEN))


@dataclass(frozen=True)
class EncapsulationMaterial:
    """One decryption secret and its derived public keys.

    Owned by exactly one sealed token request and dropped once it resolves.
    """

    decryption_key: bytes = field(repr=False)
    encryption_public_key: bytes = field(init=False)
    verification_key: bytes = field(init=False)

    def __post_init__(self) -> None:
        enc_pub, vk = KeyEncapsulation.derive(self.decryption_key)
        object.__setattr__(self, "encryption_public_key", enc_pub)
        object.__setattr__(self, "verification_key", vk)

    @property
    def enc_key_b64(self) -> str:
        return CryptoUtils.b64encode(self.encryption_public_key)

    @property
    def verification_key_b64(self) -> str:
        return CryptoUtils.b64encode(self.verification_key)

    def prove(self, message: bytes) -> str:
        """Sign with the verification key to show possession of the secret."""
        return CryptoUtils.b64encode(
            _verification_private_key(self.decryption_key).sign(message)
        )

    def open(self, sealed: SealedKey) -> bytes:
        """Decrypt key material the verifier sealed to this request."""
        return CryptoUtils.open_sealed(
            X25519PrivateKey.from_private_bytes(self.decryption_key),
            sealed.model_dump(exclude={"resource_id"}),
            sealed_key_aad(sealed.resource_id, self.verification_key_b64),
        )
