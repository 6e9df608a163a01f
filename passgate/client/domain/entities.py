"""Domain layer: Core client entities and states.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from passgate.client.domain.key_encapsulation import EncapsulationMaterial
    from passgate.common.models import Credentials, SessionTokenRequest


class AuthState(str, Enum):
    """Client-side session lifecycle."""

    UNAUTHENTICATED = "unauthenticated"
    KEY_CREATED = "key_created"
    SIGNED = "signed"
    TOKEN_REQUESTED = "token_requested"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"


@dataclass(frozen=True)
class StateTransition:
    """Event published to subscribers on every state change."""

    previous: AuthState
    current: AuthState
    reason: str | None = None


@dataclass(frozen=True)
class PreparedRequest:
    """A complete sealed token request and the secret only its sender keeps."""

    request: SessionTokenRequest
    material: EncapsulationMaterial


@dataclass(frozen=True)
class LoginResult:
    """Outcome of the certificate login.

    ``has_game_entry`` False means the identity is fine and the caller must
    acquire the capability first, not authenticate again.
    """

    has_game_entry: bool
    is_new_user: bool
    credentials: Credentials | None = None


@dataclass(frozen=True)
class SessionToken:
    auth_token: str
    expires_at: int
    profile: dict | None = None
    resource_key: bytes | None = None
