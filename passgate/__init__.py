# Passgate session authentication

from passgate.client.application.session_manager import AuthSession
from passgate.client.client import AuthClient
from passgate.client.domain.session_key import SessionKey
from passgate.common.decorators import requires_authenticated

__all__ = [
    "AuthClient",
    "AuthSession",
    "SessionKey",
    "requires_authenticated",
]
