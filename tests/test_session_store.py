import time

from passgate.server.session_manager import LOGIN_ATTEMPT_TTL, SessionManager

ADDRESS = "0x" + "1" * 64


def test_register_user_once():
    manager = SessionManager()
    assert manager.register_user(ADDRESS) is True
    assert manager.register_user(ADDRESS.upper()) is False
    assert manager.get_profile(ADDRESS).rating == 1500


def test_unknown_profile():
    assert SessionManager().get_profile(ADDRESS) is None


def test_login_attempt_rate():
    manager = SessionManager()
    assert manager.check_login_attempt_rate(ADDRESS, 2)
    assert manager.check_login_attempt_rate(ADDRESS, 2)
    assert not manager.check_login_attempt_rate(ADDRESS, 2)
    assert manager.check_login_attempt_rate("0x2", 2)


def test_old_login_attempts_expire():
    manager = SessionManager()
    manager.login_attempts[ADDRESS] = [int(time.time()) - LOGIN_ATTEMPT_TTL] * 5
    assert manager.check_login_attempt_rate(ADDRESS, 2)


def test_revoked_tokens():
    manager = SessionManager()
    manager.revoke_token("jti-1", int(time.time()) + 60)
    assert manager.is_token_revoked("jti-1")
    assert not manager.is_token_revoked("jti-2")


def test_clean_expired():
    manager = SessionManager()
    now = int(time.time())
    manager.revoke_token("old", now - 1)
    manager.revoke_token("live", now + 60)
    manager.login_attempts[ADDRESS] = [now - LOGIN_ATTEMPT_TTL - 1]

    manager.clean_expired()

    assert not manager.is_token_revoked("old")
    assert manager.is_token_revoked("live")
    assert ADDRESS not in manager.login_attempts
