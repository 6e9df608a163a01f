from pathlib import Path

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from fastapi.testclient import TestClient

from passgate.client.domain.session_key import SessionKey
from passgate.client.infrastructure.transaction_builder import (
    JsonTransactionBuilder,
    verify_passport_call,
)
from passgate.client.infrastructure.wallet import LocalWalletSigner
from passgate.common.config import Config
from passgate.server.chain_reader import InMemoryChainReader
from passgate.server.core import AuthServer

RESOURCE_ID = "0x" + "a" * 64
PASSPORT_ID = "0x" + "b" * 64
GAME_ENTRY_ID = "0x" + "c" * 64


class Clock:
    """Manually advanced millisecond clock."""

    def __init__(self, now: int = 1_700_000_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def temp_keys_dir(tmp_path: Path) -> Path:
    """Create temporary keys directory with test keys."""

    keys_dir = tmp_path / "keys"
    keys_dir.mkdir()

    private_key = Ed25519PrivateKey.generate()
    public_key = private_key.public_key()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    (keys_dir / "server_private.key").write_bytes(private_pem)
    (keys_dir / "server_public.key").write_bytes(public_pem)

    return keys_dir


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def wallet() -> LocalWalletSigner:
    return LocalWalletSigner()


@pytest.fixture
def chain() -> InMemoryChainReader:
    return InMemoryChainReader()


def grant_capabilities(chain: InMemoryChainReader, address: str) -> None:
    """Give ``address`` a passport and a game entry."""
    config = Config()
    chain.add_object(PASSPORT_ID, config.PASSPORT_TYPE, address)
    chain.add_object(GAME_ENTRY_ID, config.GAME_ENTRY_TYPE, address)


@pytest.fixture
def server(temp_keys_dir: Path, chain: InMemoryChainReader) -> AuthServer:
    """Create AuthServer instance with temp keys and in-memory chain state."""
    return AuthServer(chain_reader=chain, server_keys_dir=temp_keys_dir)


@pytest.fixture
def http(server: AuthServer) -> TestClient:
    return TestClient(server.app)


@pytest.fixture
def signed_key(wallet: LocalWalletSigner, config: Config) -> SessionKey:
    key = SessionKey.create(wallet.address(), config.PACKAGE_ID)
    key.request_signature(wallet)
    return key


@pytest.fixture
def build_fragment(config: Config):
    return verify_passport_call(
        JsonTransactionBuilder(),
        config.PACKAGE_ID,
        RESOURCE_ID,
        PASSPORT_ID,
        GAME_ENTRY_ID,
    )
