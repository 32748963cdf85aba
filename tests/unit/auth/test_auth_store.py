from __future__ import annotations

from aba_billing.auth.store import AuthStore
from aba_billing.core.enums import UserRole
from aba_billing.schemas.auth import UserProfile


def test_missing_file_uses_fallback_token(tmp_path):
    store = AuthStore(tmp_path / "auth.json", fallback_token="env-token")

    assert store.load().user is None
    session = store.session()
    assert session.token == "env-token"
    assert session.user_id is None


def test_set_user_persists_session(tmp_path):
    path = tmp_path / "nested" / "auth.json"
    AuthStore(path).set_user(UserProfile(id=3, name="Admin", role="ADMIN"), "jwt-3")

    session = AuthStore(path, fallback_token="env-token").session()
    assert session.role is UserRole.ADMIN
    assert session.user_id == 3
    assert session.token == "jwt-3"


def test_logout_removes_state(tmp_path):
    path = tmp_path / "auth.json"
    store = AuthStore(path)
    store.set_user(UserProfile(id=3), "jwt-3")

    store.logout()
    store.logout()

    assert not path.exists()
    assert store.session().token is None


def test_corrupt_file_is_treated_as_logged_out(tmp_path):
    path = tmp_path / "auth.json"
    path.write_text("{not json", encoding="utf-8")

    state = AuthStore(path).load()
    assert state.user is None
    assert state.token is None
