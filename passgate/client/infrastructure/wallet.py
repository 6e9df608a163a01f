"""Infrastructure layer: file-backed Ed25519 wallet signer.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import cast

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from passgate.common.crypto import CryptoUtils

logger = logging.getLogger(__name__)


class LocalWalletSigner:
    """Signs personal messages with a local Ed25519 key.

    Stands in for a browser or hardware wallet in tests, scripts and the CLI.
    """

    def __init__(self, private_key: Ed25519PrivateKey | None = None):
        self._private_key = private_key or Ed25519PrivateKey.generate()
        self._address = CryptoUtils.wallet_address(
            CryptoUtils.raw_public_bytes(self._private_key.public_key())
        )

    def address(self) -> str:
        return self._address

    def sign(self, message: bytes) -> str:
        logger.debug("Signing personal message for %s", self._address)
        return CryptoUtils.sign_personal_message(self._private_key, message)

    def save(self, path: Path) -> None:
        """Write the wallet key as unencrypted PKCS8 PEM."""
        path.parent.mkdir(parents=True, exist_ok=True)
        pem = self._private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with path.open("wb") as f:
            f.write(pem)

    @classmethod
    def load(cls, path: Path) -> LocalWalletSigner:
        if not path.exists():
            msg = f"Wallet key file not found: {path}"
            raise FileNotFoundError(msg)
        with path.open("rb") as f:
            key = cast(
                "Ed25519PrivateKey", serialization.load_pem_private_key(f.read(), None)
            )
        return cls(key)
