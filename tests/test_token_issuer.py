import jwt
import pytest
from conftest import Clock
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from passgate.common.exceptions import VerificationRejected
from passgate.common.models import Certificate, Profile
from passgate.common.protocol import current_epoch_time
from passgate.server.token_issuer import TokenIssuer


def _certificate(creation_time: int, ttl_min: int = 10) -> Certificate:
    return Certificate(
        user="0x" + "1" * 64,
        session_vk="vk",
        creation_time=creation_time,
        ttl_min=ttl_min,
        signature="sig",
    )


def test_issue_and_decode():
    issuer = TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe")
    cert = _certificate(current_epoch_time())

    token, expires_at = issuer.issue(cert, Profile(rating=1600))
    claims = issuer.decode(token)

    assert expires_at == cert.expires_at
    assert claims["iss"] == "catastrophe"
    assert claims["sub"] == cert.user
    assert claims["exp"] == cert.expires_at // 1000
    assert claims["profile"]["rating"] == 1600
    assert claims["ttl_min"] == 10


def test_secret_is_stable_per_server_key():
    key = Ed25519PrivateKey.generate()
    token, _ = TokenIssuer(key, "catastrophe").issue(_certificate(current_epoch_time()))
    assert TokenIssuer(key, "catastrophe").decode(token)["jti"]


def test_each_token_has_unique_id():
    issuer = TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe")
    cert = _certificate(current_epoch_time())
    first = issuer.decode(issuer.issue(cert)[0])
    second = issuer.decode(issuer.issue(cert)[0])
    assert first["jti"] != second["jti"]


def test_token_from_other_server_rejected():
    cert = _certificate(current_epoch_time())
    token, _ = TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe").issue(cert)
    with pytest.raises(VerificationRejected) as exc_info:
        TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe").decode(token)
    assert exc_info.value.reason == "invalid_token"
    assert exc_info.value.status_code == 401


def test_wrong_issuer_rejected():
    key = Ed25519PrivateKey.generate()
    token, _ = TokenIssuer(key, "someone-else").issue(
        _certificate(current_epoch_time())
    )
    with pytest.raises(VerificationRejected):
        TokenIssuer(key, "catastrophe").decode(token)


def test_expired_token_rejected():
    clock = Clock(current_epoch_time() - 30 * 60_000)
    issuer = TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe", clock=clock)
    token, _ = issuer.issue(_certificate(clock.now))
    with pytest.raises(VerificationRejected) as exc_info:
        issuer.decode(token)
    assert exc_info.value.reason == "expired_token"


def test_token_is_hs256():
    issuer = TokenIssuer(Ed25519PrivateKey.generate(), "catastrophe")
    token, _ = issuer.issue(_certificate(current_epoch_time()))
    assert jwt.get_unverified_header(token)["alg"] == "HS256"
