"""Domain layer: ephemeral session key bound to a wallet address.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from passgate.common.config import Config
from passgate.common.crypto import CryptoUtils
from passgate.common.exceptions import NotSigned, SignatureDenied
from passgate.common.models import Certificate
from passgate.common.protocol import current_epoch_time, personal_message

if TYPE_CHECKING:
    from passgate.common.interfaces import IWalletSigner

logger = logging.getLogger(__name__)

DEFAULT_TTL_MIN = 10


class SessionKey:
    """Ephemeral Ed25519 keypair certified by one wallet signature.

    The private half never leaves this object. ``signature`` is written at
    most once; every later ``request_signature`` call returns the same key
    without prompting the wallet again.
    """

    def __init__(
        self,
        address: str,
        scope_id: str,
        ttl_minutes: int = DEFAULT_TTL_MIN,
        *,
        app_name: str | None = None,
        clock: Callable[[], int] = current_epoch_time,
    ):
        if ttl_minutes <= 0:
            msg = "ttl_minutes must be positive"
            raise ValueError(msg)
        self._address = address
        self._scope_id = scope_id
        self._ttl_minutes = ttl_minutes
        config = Config()
        self._app_name = app_name or config.PERSONAL_MESSAGE_APP
        self._skew_ms = config.CLOCK_SKEW_TOLERANCE_MS
        self._clock = clock
        self._created_at = clock()
        self._keypair = Ed25519PrivateKey.generate()
        self._session_vk = CryptoUtils.b64encode(
            CryptoUtils.raw_public_bytes(self._keypair.public_key())
        )
        self._signature: str | None = None
        self._sign_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        address: str,
        scope_id: str,
        ttl_minutes: int = DEFAULT_TTL_MIN,
        *,
        app_name: str | None = None,
        clock: Callable[[], int] = current_epoch_time,
    ) -> SessionKey:
        """Start a login attempt with a freshly generated keypair."""
        return cls(address, scope_id, ttl_minutes, app_name=app_name, clock=clock)

    @property
    def address(self) -> str:
        return self._address

    @property
    def scope_id(self) -> str:
        return self._scope_id

    @property
    def created_at(self) -> int:
        return self._created_at

    @property
    def ttl_minutes(self) -> int:
        return self._ttl_minutes

    @property
    def session_public_key(self) -> str:
        """Base64 raw Ed25519 public key."""
        return self._session_vk

    @property
    def signature(self) -> str | None:
        return self._signature

    @property
    def is_signed(self) -> bool:
        return self._signature is not None

    def is_expired(self) -> bool:
        """True once the TTL minus the skew tolerance has elapsed."""
        deadline = self._created_at + self._ttl_minutes * 60_000 - self._skew_ms
        return self._clock() >= deadline

    def personal_message(self) -> bytes:
        return personal_message(
            self._app_name,
            self._scope_id,
            self._ttl_minutes,
            self._created_at,
            self._session_vk,
        )

    def request_signature(
        self, signer: IWalletSigner, cancel: threading.Event | None = None
    ) -> SessionKey:
        """Ask the wallet to certify this key.

        Concurrent callers wait on the same prompt instead of opening a second
        one. A failed or cancelled prompt leaves the key unsigned.
        """
        with self._sign_lock:
            if self._signature is not None:
                return self
            if cancel is not None and cancel.is_set():
                msg = "signature request cancelled"
                raise SignatureDenied(msg)
            try:
                signature = signer.sign(self.personal_message())
            except Exception as e:
                logger.warning("Wallet signature request failed: %s", e)
                msg = "wallet refused to sign the session key"
                raise SignatureDenied(msg) from e
            if cancel is not None and cancel.is_set():
                # Abandoned while the wallet prompt was open
                msg = "signature request cancelled"
                raise SignatureDenied(msg)
            self._signature = signature
            logger.info("Session key for %s signed", self._address)
            return self

    def certificate(self) -> Certificate:
        if self._signature is None:
            msg = "session key has no wallet signature"
            raise NotSigned(msg)
        return Certificate(
            user=self._address,
            session_vk=self._session_vk,
            creation_time=self._created_at,
            ttl_min=self._ttl_minutes,
            signature=self._signature,
        )

    def sign_request(self, message: bytes) -> str:
        """Sign ``message`` with the session keypair (not the wallet)."""
        return CryptoUtils.b64encode(self._keypair.sign(message))

    def __repr__(self) -> str:
        return (
            f"SessionKey(address={self._address!r}, scope_id={self._scope_id!r}, "
            f"ttl_minutes={self._ttl_minutes}, signed={self.is_signed})"
        )
