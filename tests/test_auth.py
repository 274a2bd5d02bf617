from datetime import timedelta

import pytest

from fintrack.auth import AuthService
from fintrack.database import AuthToken, User, init_db, utcnow
from fintrack.errors import AuthError


@pytest.fixture
def session_factory(tmp_path):
    return init_db(f"sqlite:///{tmp_path / 'auth.db'}")


@pytest.fixture
def auth(session_factory):
    return AuthService(session_factory)


def test_sign_up_then_sign_in(auth):
    created = auth.sign_up("Alice@Example.com ", "secret1")
    signed_in = auth.sign_in("alice@example.com", "secret1")

    assert created.email == "alice@example.com"
    assert signed_in.user_id == created.user_id
    assert signed_in.token != created.token


def test_password_is_stored_hashed(auth, session_factory):
    auth.sign_up("bob@example.com", "secret1")

    db = session_factory()
    user = db.query(User).filter(User.email == "bob@example.com").one()
    db.close()

    assert user.password_hash != "secret1"
    assert user.password_hash.startswith("$2")


def test_duplicate_sign_up_conflicts(auth):
    auth.sign_up("carol@example.com", "secret1")

    with pytest.raises(AuthError, match="already exists"):
        auth.sign_up("CAROL@example.com", "another1")


def test_sign_up_validation(auth):
    with pytest.raises(AuthError, match="email"):
        auth.sign_up("not-an-email", "secret1")
    with pytest.raises(AuthError, match="at least"):
        auth.sign_up("dave@example.com", "123")


def test_invalid_credentials(auth):
    auth.sign_up("erin@example.com", "secret1")

    with pytest.raises(AuthError, match="Invalid email or password"):
        auth.sign_in("erin@example.com", "wrong-password")
    with pytest.raises(AuthError, match="Invalid email or password"):
        auth.sign_in("nobody@example.com", "secret1")


def test_restore_session(auth):
    created = auth.sign_up("frank@example.com", "secret1")

    restored = auth.restore_session(created.token)

    assert restored == created


def test_restore_unknown_token(auth):
    with pytest.raises(AuthError):
        auth.restore_session("bogus")
    with pytest.raises(AuthError):
        auth.restore_session("")


def test_sign_out_revokes_token(auth):
    session = auth.sign_in(auth.sign_up("gina@example.com", "secret1").email, "secret1")

    auth.sign_out(session.token)

    with pytest.raises(AuthError):
        auth.restore_session(session.token)


def test_expired_token_is_rejected_and_removed(auth, session_factory):
    session = auth.sign_up("hank@example.com", "secret1")
    db = session_factory()
    row = db.get(AuthToken, session.token)
    row.expires_at = utcnow() - timedelta(minutes=1)
    db.commit()
    db.close()

    with pytest.raises(AuthError, match="expired"):
        auth.restore_session(session.token)

    db = session_factory()
    assert db.get(AuthToken, session.token) is None
    db.close()
