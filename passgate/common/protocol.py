"""
Canonical messages shared by the client and the verifier.

Both sides must render these byte-for-byte identically, so they live in one
place.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone

from passgate.common.crypto import CryptoUtils


def current_epoch_time() -> int:
    """Wall-clock time in milliseconds."""
    return int(time.time() * 1000)


def personal_message(
    app_name: str, scope_id: str, ttl_min: int, creation_time: int, session_vk: str
) -> bytes:
    """Human readable message the wallet signs to certify a session key."""
    created = datetime.fromtimestamp(creation_time / 1000, tz=timezone.utc)
    creation_time_utc = created.strftime("%Y-%m-%d %H:%M:%S") + " UTC"
    message = (
        f"Accessing {app_name} with package {scope_id} for {ttl_min} mins "
        f"from {creation_time_utc}, session key {session_vk}"
    )
    return message.encode()


def request_message(ptb: str, enc_key: str, enc_verification_key: str) -> bytes:
    """Bytes the session key signs for a sealed token request."""
    return CryptoUtils.canonical_json(
        {
            "ptb": ptb,
            "enc_key": enc_key,
            "enc_verification_key": enc_verification_key,
        }
    )


def enc_key_proof_message(enc_key: str, request_signature: str) -> bytes:
    """Bytes the verification key signs to prove possession of the secret."""
    return b"enc-key-proof:" + enc_key.encode() + b":" + request_signature.encode()


def sealed_key_aad(resource_id: str, verification_key: str) -> bytes:
    """AAD binding a sealed key to its resource and verification key."""
    return f"sealed-key:{resource_id}:{verification_key}".encode()
