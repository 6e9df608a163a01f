"""
Custom exceptions for the session authentication protocol.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every error the protocol surfaces to callers."""


class NotSigned(AuthError):
    """The session key has no wallet signature yet."""


class SignatureDenied(AuthError):
    """The wallet refused, failed or the prompt was cancelled."""


class Expired(AuthError):
    """The session key or its certificate is past its TTL."""


class ChainBuildError(AuthError):
    """The transaction fragment could not be built."""


class TransportError(AuthError):
    """The verifier could not be reached or answered with garbage."""


class VerificationRejected(AuthError):
    """The verifier rejected a certificate or a sealed token request."""

    def __init__(self, reason: str, message: str, status_code: int = 403) -> None:
        super().__init__(message)
        self.reason = reason
        self.status_code = status_code


class CapabilityMissing(VerificationRejected):
    """Identity is valid but the on-chain gating capability does not exist."""

    def __init__(self, message: str = "capability not found for address") -> None:
        super().__init__("capability_missing", message)


class RateLimitError(VerificationRejected):
    """Exception for rate limiting."""

    def __init__(self, message: str) -> None:
        super().__init__("rate_limited", message, 429)


class NotAuthenticated(AuthError):
    """A protected call was made without an authenticated session."""


class Cancelled(AuthError):
    """The caller cancelled the token exchange before it reached the verifier."""
