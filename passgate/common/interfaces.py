"""
Interfaces and protocols for dependency injection.
"""

from __future__ import annotations

from typing import Protocol

from passgate.common.models import Profile


class IWalletSigner(Protocol):
    """Wallet capability: signs personal messages for one address."""

    def sign(self, message: bytes) -> str: ...

    def address(self) -> str: ...


class IChainReader(Protocol):
    """Read-only access to on-chain objects."""

    def read_object(self, object_id: str) -> bytes: ...

    def owned_objects(self, address: str, struct_type: str) -> list[str]: ...

    def latest_checkpoint_timestamp(self) -> int: ...


class ITransactionBuilder(Protocol):
    """Serializes a Move call into opaque transaction bytes."""

    def build_call(self, target: str, args: list[str]) -> bytes: ...


class ISessionManager(Protocol):
    """Protocol for server-side session bookkeeping."""

    def register_user(self, address: str) -> bool: ...

    def get_profile(self, address: str) -> Profile | None: ...

    def check_login_attempt_rate(self, address: str, max_attempts: int) -> bool: ...

    def revoke_token(self, token_id: str, expires_at: int) -> None: ...

    def is_token_revoked(self, token_id: str) -> bool: ...

    def clean_expired(self) -> None: ...
