"""
Application layer: Client session lifecycle as an explicit state machine.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING, Callable

from passgate.client.application.token_request_builder import (
    FragmentBuilder,
    SealedTokenRequestBuilder,
)
from passgate.client.domain.entities import AuthState, LoginResult, StateTransition
from passgate.client.domain.session_key import SessionKey
from passgate.common.exceptions import AuthError, Cancelled, Expired, NotSigned
from passgate.common.protocol import current_epoch_time

if TYPE_CHECKING:
    from passgate.client.client import AuthClient
    from passgate.client.domain.entities import SessionToken
    from passgate.common.interfaces import IWalletSigner
    from passgate.common.models import Certificate, Credentials


class AuthSession:
    """Owns one login attempt at a time and publishes its state changes.

    Subscribers get a ``queue.Queue`` of :class:`StateTransition` events;
    nothing outside this object reads or writes the current session.
    """

    def __init__(
        self,
        client: AuthClient,
        signer: IWalletSigner,
        *,
        scope_id: str | None = None,
        ttl_minutes: int | None = None,
        clock: Callable[[], int] = current_epoch_time,
    ):
        self.client = client
        self.signer = signer
        self.scope_id = scope_id or client.loader.package_id
        self.ttl_minutes = ttl_minutes or client.loader.ttl_minutes
        self.clock = clock
        self.builder = SealedTokenRequestBuilder()
        self.logger = logging.getLogger(__name__)

        self._lock = threading.RLock()
        self._state = AuthState.UNAUTHENTICATED
        self._session_key: SessionKey | None = None
        self._token: SessionToken | None = None
        self._credentials: Credentials | None = None
        self._subscribers: list[queue.Queue[StateTransition]] = []

    # Observation

    def subscribe(self) -> queue.Queue[StateTransition]:
        channel: queue.Queue[StateTransition] = queue.Queue()
        with self._lock:
            self._subscribers.append(channel)
        return channel

    def unsubscribe(self, channel: queue.Queue[StateTransition]) -> None:
        with self._lock:
            if channel in self._subscribers:
                self._subscribers.remove(channel)

    @property
    def state(self) -> AuthState:
        with self._lock:
            self._expire_if_needed()
            return self._state

    @property
    def session_key(self) -> SessionKey | None:
        with self._lock:
            self._expire_if_needed()
            return self._session_key

    @property
    def token(self) -> SessionToken | None:
        return self._token

    @property
    def credentials(self) -> Credentials | None:
        return self._credentials

    def is_authenticated(self) -> bool:
        return self.state is AuthState.AUTHENTICATED

    # Transitions

    def _transition(self, new_state: AuthState, reason: str | None = None) -> None:
        previous = self._state
        if previous is new_state:
            return
        self._state = new_state
        self.logger.debug("Auth state %s -> %s (%s)", previous, new_state, reason)
        event = StateTransition(previous=previous, current=new_state, reason=reason)
        for channel in self._subscribers:
            channel.put(event)

    def _discard(self, new_state: AuthState, reason: str) -> None:
        self._session_key = None
        self._token = None
        self._credentials = None
        self._transition(new_state, reason)

    def _expire_if_needed(self) -> None:
        if (
            self._state in (AuthState.KEY_CREATED, AuthState.SIGNED)
            and self._session_key is not None
            and self._session_key.is_expired()
        ):
            self._discard(AuthState.EXPIRED, "session key ttl elapsed")

    def create_key(self) -> SessionKey:
        """Start a new login attempt, dropping any previous one."""
        with self._lock:
            key = SessionKey.create(
                self.signer.address(),
                self.scope_id,
                self.ttl_minutes,
                app_name=self.client.loader.app_name,
                clock=self.clock,
            )
            self._session_key = key
            self._token = None
            self._credentials = None
            self._transition(AuthState.KEY_CREATED, "session key created")
            return key

    def _current_key(self) -> SessionKey:
        with self._lock:
            self._expire_if_needed()
            if self._session_key is None:
                if self._state is AuthState.EXPIRED:
                    msg = "session key expired, create a new one"
                    raise Expired(msg)
                msg = "no session key, call create_key first"
                raise NotSigned(msg)
            return self._session_key

    def sign(self, cancel: threading.Event | None = None) -> Certificate:
        """Get the wallet signature; a refusal keeps the key for a retry."""
        key = self._current_key()
        # Wallet prompt runs outside the session lock; the key coalesces callers.
        key.request_signature(self.signer, cancel)
        with self._lock:
            if self._session_key is key and self._state is AuthState.KEY_CREATED:
                self._transition(AuthState.SIGNED, "wallet signed session key")
        return key.certificate()

    def login(self, cancel: threading.Event | None = None) -> LoginResult:
        """Certificate login; reports whether the game entry exists."""
        key = self._current_key()
        certificate = self.sign(cancel) if not key.is_signed else key.certificate()
        try:
            result = self.client.session_key_login(certificate)
        except AuthError as e:
            with self._lock:
                self._discard(AuthState.UNAUTHENTICATED, str(e))
            raise
        with self._lock:
            self._credentials = result.credentials
        if not result.has_game_entry:
            self.logger.info("No game entry for %s", certificate.user)
        return result

    def request_token(
        self,
        build_fragment: FragmentBuilder,
        cancel: threading.Event | None = None,
    ) -> SessionToken:
        """Exchange the certificate for a session token.

        Any failure from the verifier ends the attempt. The error type tells
        the caller whether to create a new key or acquire the capability.
        Setting ``cancel`` before the request is sent raises ``Cancelled``
        and keeps the signed key; an exchange already in flight completes.
        """
        key = self._current_key()
        self._check_cancelled(cancel)
        try:
            prepared = self.builder.build(key, build_fragment)
        except Expired:
            with self._lock:
                self._discard(AuthState.EXPIRED, "session key ttl elapsed")
            raise

        with self._lock:
            self._check_cancelled(cancel)
            self._transition(AuthState.TOKEN_REQUESTED, "sealed token requested")
        try:
            token = self.client.exchange_token(prepared)
        except AuthError as e:
            with self._lock:
                self._discard(AuthState.UNAUTHENTICATED, str(e))
            raise

        with self._lock:
            self._token = token
            self._transition(AuthState.AUTHENTICATED, "session token issued")
        return token

    @staticmethod
    def _check_cancelled(cancel: threading.Event | None) -> None:
        if cancel is not None and cancel.is_set():
            msg = "token exchange cancelled"
            raise Cancelled(msg)

    def reject_token(self, reason: str = "token rejected") -> None:
        """Drop the session after the server refused our token."""
        with self._lock:
            self._discard(AuthState.UNAUTHENTICATED, reason)

    def logout(self) -> None:
        token = self._token
        if token is not None:
            try:
                self.client.logout(token.auth_token)
            except AuthError as e:
                self.logger.warning("Server logout failed: %s", e)
        with self._lock:
            self._discard(AuthState.UNAUTHENTICATED, "logout")
