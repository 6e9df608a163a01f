"""
Verifier identity key generation.

The server key seeds the session token secret and the per-resource key
material, so rotating it invalidates every issued token and sealed key.
"""

from __future__ import annotations

import logging
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from passgate.common.config import Config
from passgate.common.crypto import CryptoUtils

logger = logging.getLogger(__name__)

PRIVATE_KEY_MODE = 0o600


class KeyGenerator:
    def __init__(self, keys_dir: Path | None = None):
        config = Config()
        keys_dir = keys_dir or config.SERVER_KEYS_DIR
        self.private_path = keys_dir / config.SERVER_PRIVATE_KEY_PATH.name
        self.public_path = keys_dir / config.SERVER_PUBLIC_KEY_PATH.name

    def generate_keys(self, *, overwrite: bool = False) -> tuple[Path, Path]:
        """Write a fresh verifier identity; returns ``(private, public)`` paths.

        An existing identity is kept unless ``overwrite`` is set.
        """
        if self.private_path.exists() and not overwrite:
            msg = f"Refusing to overwrite existing server key at {self.private_path}"
            raise FileExistsError(msg)

        identity = Ed25519PrivateKey.generate()
        self.private_path.parent.mkdir(parents=True, exist_ok=True)
        self.private_path.write_bytes(
            identity.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        self.private_path.chmod(PRIVATE_KEY_MODE)
        self.public_path.write_bytes(
            identity.public_key().public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
        )

        fingerprint = CryptoUtils.b64encode(
            CryptoUtils.raw_public_bytes(identity.public_key())
        )
        logger.info("Verifier identity %s written to %s", fingerprint, self.private_path)
        return self.private_path, self.public_path
