"""
In-memory session bookkeeping for the verifier.
"""

from __future__ import annotations

import threading
import time

from passgate.common.crypto import CryptoUtils
from passgate.common.models import Profile

LOGIN_ATTEMPT_TTL = 60


class SessionManager:
    """Tracks known users, login attempts and revoked tokens."""

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.login_attempts: dict[str, list[int]] = {}
        self.revoked_tokens: dict[str, int] = {}
        self._lock = threading.Lock()

    def register_user(self, address: str) -> bool:
        """Record an address; True the first time it is seen."""
        address = CryptoUtils.normalize_address(address)
        with self._lock:
            if address in self.profiles:
                return False
            self.profiles[address] = Profile()
            return True

    def get_profile(self, address: str) -> Profile | None:
        with self._lock:
            return self.profiles.get(CryptoUtils.normalize_address(address))

    def check_login_attempt_rate(self, address: str, max_attempts: int) -> bool:
        """Check if a login attempt is allowed."""
        now = int(time.time())
        with self._lock:
            attempts = [
                t
                for t in self.login_attempts.get(address, [])
                if now - t < LOGIN_ATTEMPT_TTL
            ]
            if len(attempts) >= max_attempts:
                self.login_attempts[address] = attempts
                return False
            attempts.append(now)
            self.login_attempts[address] = attempts
            return True

    def revoke_token(self, token_id: str, expires_at: int) -> None:
        """Remember a logged-out token until it would have expired anyway."""
        with self._lock:
            self.revoked_tokens[token_id] = expires_at

    def is_token_revoked(self, token_id: str) -> bool:
        with self._lock:
            return token_id in self.revoked_tokens

    def clean_expired(self) -> None:
        """Drop stale login attempts and revocations of expired tokens."""
        now = int(time.time())
        with self._lock:
            for address in list(self.login_attempts):
                self.login_attempts[address] = [
                    t for t in self.login_attempts[address] if now - t < LOGIN_ATTEMPT_TTL
                ]
                if not self.login_attempts[address]:
                    del self.login_attempts[address]
            for token_id in [
                tid for tid, exp in self.revoked_tokens.items() if exp < now
            ]:
                del self.revoked_tokens[token_id]
