import pytest
from conftest import GAME_ENTRY_ID, PASSPORT_ID, RESOURCE_ID, grant_capabilities

from passgate.client.application.token_request_builder import (
    SealedTokenRequestBuilder,
)
from passgate.client.domain.session_key import SessionKey
from passgate.client.infrastructure.wallet import LocalWalletSigner
from passgate.common.config import Config
from passgate.common.transaction import MoveCall
from passgate.server.core import AuthServer


def _login_body(key) -> dict:
    cert = key.certificate()
    return {
        "signature": cert.signature,
        "sessionKey": cert.session_vk,
        "address": cert.user,
        "timestamp": cert.creation_time,
        "ttlMin": cert.ttl_min,
    }


def _session_token(http, signed_key, build_fragment) -> str:
    req = SealedTokenRequestBuilder().build(signed_key, build_fragment).request
    response = http.post("/auth/session_token", json=req.model_dump())
    assert response.status_code == 200
    return response.json()["auth_token"]


def test_server_initialization(server: AuthServer) -> None:
    assert server.config.verify_target == Config().verify_target
    assert server.session_manager.profiles == {}


def test_missing_keys_raise(tmp_path, chain) -> None:
    with pytest.raises(ValueError, match="passgate keygen"):
        AuthServer(chain_reader=chain, server_keys_dir=tmp_path / "missing")


def test_server_routes(server: AuthServer) -> None:
    routes = [route.path for route in server.app.routes]
    for path in (
        "/health",
        "/metrics",
        "/auth/session-key",
        "/auth/session_token",
        "/auth/credentials",
        "/auth/check-game-entry",
        "/auth/logout",
    ):
        assert path in routes


def test_health_endpoint(http) -> None:
    response = http.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_count_requests_and_rejections(http, signed_key) -> None:
    http.post("/auth/session-key", json=_login_body(signed_key))
    body = _login_body(signed_key)
    body["ttlMin"] = 5
    http.post("/auth/session-key", json=body)

    response = http.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    text = response.text
    assert 'passgate_requests_total{endpoint="session_key"} 2.0' in text
    assert (
        'passgate_errors_total{endpoint="session_key",reason="invalid_signature"} 1.0'
        in text
    )
    assert 'passgate_request_duration_seconds_count{endpoint="session_key"} 2.0' in text


def test_session_key_login_with_game_entry(http, chain, wallet, signed_key) -> None:
    grant_capabilities(chain, wallet.address())

    response = http.post("/auth/session-key", json=_login_body(signed_key))

    assert response.status_code == 200
    data = response.json()
    assert data["hasGameEntry"] is True
    assert data["isNewUser"] is True
    assert data["credentials"]["address"] == wallet.address()
    assert data["credentials"]["expires_at"] == signed_key.certificate().expires_at

    again = http.post("/auth/session-key", json=_login_body(signed_key))
    assert again.json()["isNewUser"] is False


def test_session_key_login_without_game_entry(http, signed_key) -> None:
    response = http.post("/auth/session-key", json=_login_body(signed_key))
    assert response.status_code == 200
    data = response.json()
    assert data["hasGameEntry"] is False
    assert data["credentials"] is None


def test_session_key_login_bad_signature(http, signed_key) -> None:
    body = _login_body(signed_key)
    body["ttlMin"] = 5
    response = http.post("/auth/session-key", json=body)
    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "invalid_signature"


def test_session_key_login_missing_fields(http) -> None:
    response = http.post("/auth/session-key", json={"address": "0x1"})
    assert response.status_code == 422


def test_session_key_login_rate_limited(server, http, signed_key) -> None:
    server.config.MAX_LOGIN_ATTEMPTS_PER_MINUTE = 2
    for _ in range(2):
        assert http.post("/auth/session-key", json=_login_body(signed_key)).status_code == 200
    response = http.post("/auth/session-key", json=_login_body(signed_key))
    assert response.status_code == 429
    assert response.json()["detail"]["reason"] == "rate_limited"


def test_forged_logins_do_not_lock_out_wallet(server, http, wallet, config) -> None:
    server.config.MAX_LOGIN_ATTEMPTS_PER_MINUTE = 2
    attacker = LocalWalletSigner()
    forged = SessionKey.create(attacker.address(), config.PACKAGE_ID)
    forged.request_signature(attacker)
    body = _login_body(forged)
    body["address"] = wallet.address()
    for _ in range(5):
        response = http.post("/auth/session-key", json=body)
        assert response.status_code == 401

    key = SessionKey.create(wallet.address(), config.PACKAGE_ID)
    key.request_signature(wallet)
    response = http.post("/auth/session-key", json=_login_body(key))
    assert response.status_code == 200


def test_session_token_capability_missing(http, signed_key, build_fragment) -> None:
    req = SealedTokenRequestBuilder().build(signed_key, build_fragment).request
    response = http.post("/auth/session_token", json=req.model_dump())
    assert response.status_code == 403
    assert response.json()["detail"]["reason"] == "capability_missing"


def test_session_token_rejects_non_object_argument(http, config, signed_key) -> None:
    fragment = MoveCall(target=config.verify_target, args=[RESOURCE_ID, "passport"])
    req = SealedTokenRequestBuilder().build(signed_key, fragment.to_bytes).request

    response = http.post("/auth/session_token", json=req.model_dump())

    assert response.status_code == 403
    assert response.json()["detail"]["reason"] == "invalid_ptb"


def test_session_token_success(http, chain, wallet, signed_key, build_fragment) -> None:
    grant_capabilities(chain, wallet.address())
    req = SealedTokenRequestBuilder().build(signed_key, build_fragment).request

    response = http.post("/auth/session_token", json=req.model_dump())

    assert response.status_code == 200
    data = response.json()
    assert data["auth_token"]
    assert data["profile"]["rating"] == 1500
    assert data["sealed_key"]["resource_id"] == RESOURCE_ID


def test_credentials_and_logout(http, chain, wallet, signed_key, build_fragment) -> None:
    grant_capabilities(chain, wallet.address())
    token = _session_token(http, signed_key, build_fragment)
    headers = {"Authorization": f"Bearer {token}"}

    response = http.get("/auth/credentials", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["credentials"]["address"] == wallet.address()
    assert data["credentials"]["session_vk"] == signed_key.session_public_key

    response = http.post("/auth/logout", headers=headers)
    assert response.status_code == 200
    assert response.json()["success"] is True

    response = http.get("/auth/credentials", headers=headers)
    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "revoked_token"


def test_credentials_without_token(http) -> None:
    response = http.get("/auth/credentials")
    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "invalid_token"


def test_credentials_with_forged_token(http) -> None:
    response = http.get(
        "/auth/credentials", headers={"Authorization": "Bearer not.a.jwt"}
    )
    assert response.status_code == 401
    assert response.json()["detail"]["reason"] == "invalid_token"


def test_check_game_entry(http, chain, wallet) -> None:
    response = http.post("/auth/check-game-entry", json={"address": wallet.address()})
    assert response.status_code == 200
    assert response.json() == {
        "hasGameEntry": False,
        "passportId": None,
        "gameEntryId": None,
    }

    grant_capabilities(chain, wallet.address())
    response = http.post("/auth/check-game-entry", json={"address": wallet.address()})
    assert response.json() == {
        "hasGameEntry": True,
        "passportId": PASSPORT_ID,
        "gameEntryId": GAME_ENTRY_ID,
    }


def test_check_game_entry_invalid_address(http) -> None:
    response = http.post("/auth/check-game-entry", json={"address": "nope"})
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "invalid_request"
