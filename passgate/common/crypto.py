"""Common cryptographic utilities.

Wallet signatures follow the Sui personal-message layout: the signed digest is
``blake2b-256(intent || bcs(message))`` and the serialized signature is
``flag || ed25519_signature || public_key`` in base64. An address is
``blake2b-256(flag || public_key)`` rendered as 0x-prefixed hex.
"""

from __future__ import annotations

import base64
import hashlib
import json
import os
import re
from typing import Any

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

ED25519_FLAG = 0x00
PERSONAL_MESSAGE_INTENT = bytes([3, 0, 0])
SEAL_INFO = b"passgate-sealed-key"
HEX_ID_RE = re.compile(r"[0-9a-f]{1,64}")


class CryptoUtils:
    """Utility class for cryptographic operations."""

    @staticmethod
    def b64encode(data: bytes) -> str:
        return base64.b64encode(data).decode("ascii")

    @staticmethod
    def b64decode(data: str) -> bytes:
        """Strict base64 decode; raises ValueError on malformed input."""
        return base64.b64decode(data, validate=True)

    @staticmethod
    def canonical_json(obj: Any) -> bytes:
        """Sorted, compact JSON used wherever bytes are signed."""
        return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode()

    @staticmethod
    def raw_public_bytes(key: Ed25519PublicKey | X25519PublicKey) -> bytes:
        return key.public_bytes(
            serialization.Encoding.Raw, serialization.PublicFormat.Raw
        )

    @staticmethod
    def normalize_address(address: str) -> str:
        """Lowercase 0x-prefixed address padded to 32 bytes."""
        value = address.lower()
        value = value.removeprefix("0x")
        if not HEX_ID_RE.fullmatch(value):
            msg = f"invalid address: {address}"
            raise ValueError(msg)
        return "0x" + value.rjust(64, "0")

    @staticmethod
    def wallet_address(public_key: bytes) -> str:
        """Derive the chain address for an Ed25519 wallet public key."""
        digest = hashlib.blake2b(
            bytes([ED25519_FLAG]) + public_key, digest_size=32
        ).digest()
        return "0x" + digest.hex()

    @staticmethod
    def _uleb128(value: int) -> bytes:
        out = bytearray()
        while True:
            byte = value & 0x7F
            value >>= 7
            if value:
                out.append(byte | 0x80)
            else:
                out.append(byte)
                return bytes(out)

    @staticmethod
    def personal_message_digest(message: bytes) -> bytes:
        """Digest a wallet signs for a personal message."""
        bcs_message = CryptoUtils._uleb128(len(message)) + message
        return hashlib.blake2b(
            PERSONAL_MESSAGE_INTENT + bcs_message, digest_size=32
        ).digest()

    @staticmethod
    def sign_personal_message(private_key: Ed25519PrivateKey, message: bytes) -> str:
        """Produce a serialized wallet signature over a personal message."""
        signature = private_key.sign(CryptoUtils.personal_message_digest(message))
        public_key = CryptoUtils.raw_public_bytes(private_key.public_key())
        return CryptoUtils.b64encode(bytes([ED25519_FLAG]) + signature + public_key)

    @staticmethod
    def verify_personal_message(message: bytes, signature: str, address: str) -> bool:
        """Check a serialized wallet signature and that it belongs to ``address``."""
        try:
            raw = CryptoUtils.b64decode(signature)
        except ValueError:
            return False
        if len(raw) != 97 or raw[0] != ED25519_FLAG:
            return False
        sig, public_key = raw[1:65], raw[65:]
        try:
            if CryptoUtils.wallet_address(public_key) != CryptoUtils.normalize_address(
                address
            ):
                return False
        except ValueError:
            return False
        return CryptoUtils.verify_ed25519(
            public_key, sig, CryptoUtils.personal_message_digest(message)
        )

    @staticmethod
    def verify_ed25519(public_key: bytes, signature: bytes, message: bytes) -> bool:
        try:
            Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        except (InvalidSignature, ValueError):
            return False
        return True

    @staticmethod
    def _seal_key(shared: bytes, ephemeral_pub: bytes, recipient_pub: bytes) -> bytes:
        return HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=ephemeral_pub + recipient_pub,
            info=SEAL_INFO,
        ).derive(shared)

    @staticmethod
    def seal(recipient_pub: bytes, plaintext: bytes, aad: bytes) -> dict[str, str]:
        """Encrypt ``plaintext`` so only the X25519 key holder can open it."""
        ephemeral = X25519PrivateKey.generate()
        ephemeral_pub = CryptoUtils.raw_public_bytes(ephemeral.public_key())
        shared = ephemeral.exchange(X25519PublicKey.from_public_bytes(recipient_pub))
        key = CryptoUtils._seal_key(shared, ephemeral_pub, recipient_pub)
        nonce = os.urandom(12)
        ciphertext = ChaCha20Poly1305(key).encrypt(nonce, plaintext, aad)
        return {
            "ephemeral_pub": CryptoUtils.b64encode(ephemeral_pub),
            "nonce": CryptoUtils.b64encode(nonce),
            "ciphertext": CryptoUtils.b64encode(ciphertext),
        }

    @staticmethod
    def open_sealed(
        private_key: X25519PrivateKey, sealed: dict[str, str], aad: bytes
    ) -> bytes:
        """Inverse of :meth:`seal`; raises ``InvalidTag`` on tampering."""
        ephemeral_pub = CryptoUtils.b64decode(sealed["ephemeral_pub"])
        recipient_pub = CryptoUtils.raw_public_bytes(private_key.public_key())
        shared = private_key.exchange(X25519PublicKey.from_public_bytes(ephemeral_pub))
        key = CryptoUtils._seal_key(shared, ephemeral_pub, recipient_pub)
        return ChaCha20Poly1305(key).decrypt(
            CryptoUtils.b64decode(sealed["nonce"]),
            CryptoUtils.b64decode(sealed["ciphertext"]),
            aad,
        )

    @staticmethod
    def derive_resource_key(master_secret: bytes, resource_id: str) -> bytes:
        """Per-resource key released to authorized requesters."""
        return HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=resource_id.encode(),
            info=b"resource",
        ).derive(master_secret)
