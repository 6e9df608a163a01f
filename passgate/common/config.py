"""
Configuration settings for the session authentication system.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, cast

from cryptography.hazmat.primitives import serialization

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric.ed25519 import (
        Ed25519PrivateKey,
        Ed25519PublicKey,
    )


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Session key lifecycle
        self.SESSION_KEY_TTL_MIN: int = 10  # Default session key TTL in minutes
        self.SESSION_KEY_TTL_MAX: int = 10  # Largest TTL the verifier accepts
        self.CLOCK_SKEW_TOLERANCE_MS: int = int(
            os.getenv("PASSGATE_CLOCK_SKEW_MS", "10000")
        )  # Client-side early expiry
        self.PERSONAL_MESSAGE_APP: str = os.getenv(
            "PASSGATE_APP_NAME", "Catastrophe Genesis"
        )

        # On-chain scope of the certificates this deployment accepts
        self.PACKAGE_ID: str = os.getenv("PASSGATE_PACKAGE_ID", "0x" + "0" * 63 + "1")
        self.VERIFY_MODULE: str = os.getenv("PASSGATE_VERIFY_MODULE", "citadel")
        self.VERIFY_FUNCTION: str = os.getenv(
            "PASSGATE_VERIFY_FUNCTION", "seal_approve_verify_nexus_passport"
        )
        self.PASSPORT_TYPE: str = os.getenv(
            "PASSGATE_PASSPORT_TYPE", "nexus::passport::Passport"
        )
        self.GAME_ENTRY_TYPE: str = os.getenv(
            "PASSGATE_GAME_ENTRY_TYPE", "citadel::game_entry::GameEntry"
        )

        # Session token settings
        self.TOKEN_ISSUER: str = "catastrophe"
        self.TOKEN_ALGORITHM: str = "HS256"
        self.MAX_LOGIN_ATTEMPTS_PER_MINUTE: int = (
            10  # Rate limit /auth/session-key per address
        )

        # Server settings
        self.SERVER_HOST: str = os.getenv("PASSGATE_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("PASSGATE_SERVER_PORT", "8000"))
        self.SERVER_URL: str = f"http://{self.SERVER_HOST}:{self.SERVER_PORT}"
        self.REQUEST_TIMEOUT: int = 10  # Seconds for outbound HTTP calls

        # Chain access
        self.CHAIN_RPC_URL: str = os.getenv(
            "PASSGATE_CHAIN_RPC_URL", "https://fullnode.testnet.sui.io:443"
        )
        self.ALLOWED_STALENESS_MS: int = int(
            os.getenv("PASSGATE_ALLOWED_STALENESS_MS", "120000")
        )  # Oldest checkpoint the verifier trusts

        # File paths
        self.BASE_DIR: Path = Path(__file__).parent.parent
        self.SERVER_KEYS_DIR: Path = Path(
            os.getenv("PASSGATE_KEYS_DIR", str(self.BASE_DIR / "server"))
        )
        self.SERVER_PUBLIC_KEY_PATH: Path = self.SERVER_KEYS_DIR / "server_public.key"
        self.SERVER_PRIVATE_KEY_PATH: Path = self.SERVER_KEYS_DIR / "server_private.key"

        # Logging
        self.LOG_LEVEL: int = logging.DEBUG

    @property
    def verify_target(self) -> str:
        """Fully qualified Move function the transaction fragment must call."""
        return f"{self.PACKAGE_ID}::{self.VERIFY_MODULE}::{self.VERIFY_FUNCTION}"

    def get_server_keys(self) -> tuple[Ed25519PublicKey, Ed25519PrivateKey]:
        """Load server keys from files."""
        try:
            with self.SERVER_PUBLIC_KEY_PATH.open("rb") as f:
                server_pub = cast(
                    "Ed25519PublicKey", serialization.load_pem_public_key(f.read())
                )
            with self.SERVER_PRIVATE_KEY_PATH.open("rb") as f:
                server_priv = cast(
                    "Ed25519PrivateKey",
                    serialization.load_pem_private_key(f.read(), None),
                )
        except FileNotFoundError as err:
            msg = (
                f"Server keys not found at {self.SERVER_PUBLIC_KEY_PATH} and {self.SERVER_PRIVATE_KEY_PATH}. "
                "Run 'passgate keygen' to generate them."
            )
            raise ValueError(msg) from err

        return server_pub, server_priv
