"""Email/password identity provider backed by the application database."""
import re
import secrets
from dataclasses import dataclass
from datetime import timedelta
from uuid import uuid4

import bcrypt
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from fintrack.config import MIN_PASSWORD_LENGTH, SESSION_TTL_DAYS
from fintrack.database import AuthToken, User, utcnow
from fintrack.errors import AuthError, PersistenceError
from fintrack.logger import get_logger

logger = get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


@dataclass(frozen=True)
class UserSession:
    user_id: str   # partition key for the document store
    email: str
    token: str


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class AuthService:

    def __init__(self, session_factory: sessionmaker, ttl_days: int = SESSION_TTL_DAYS):
        self._session_factory = session_factory
        self._ttl = timedelta(days=ttl_days)

    def _issue_token(self, db, user: User) -> UserSession:
        token = secrets.token_urlsafe(32)
        db.add(AuthToken(token=token, user_id=user.id, expires_at=utcnow() + self._ttl))
        return UserSession(user_id=user.id, email=user.email, token=token)

    def sign_up(self, email: str, password: str) -> UserSession:
        email = _normalize_email(email)
        if not EMAIL_RE.match(email):
            raise AuthError("Invalid email address.")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters.")

        password_hash = bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')
        db = self._session_factory()
        try:
            if db.query(User).filter(User.email == email).first():
                raise AuthError("An account with this email already exists.")
            user = User(id=uuid4().hex, email=email, password_hash=password_hash)
            db.add(user)
            db.flush()
            session = self._issue_token(db, user)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise AuthError("An account with this email already exists.") from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sign-up failed for %s", email)
            raise PersistenceError("Failed to create account") from e
        finally:
            db.close()
        logger.info("Created account %s", session.user_id)
        return session

    def sign_in(self, email: str, password: str) -> UserSession:
        email = _normalize_email(email)
        db = self._session_factory()
        try:
            user = db.query(User).filter(User.email == email).first()
            if not user or not bcrypt.checkpw((password or "").encode('utf-8'), user.password_hash.encode('utf-8')):
                logger.info("Failed sign-in for %s", email)
                raise AuthError("Invalid email or password.")
            session = self._issue_token(db, user)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sign-in failed for %s", email)
            raise PersistenceError("Failed to sign in") from e
        finally:
            db.close()
        return session

    def restore_session(self, token: str) -> UserSession:
        db = self._session_factory()
        try:
            row = db.get(AuthToken, token) if token else None
            if row is None:
                raise AuthError("Session not found. Please sign in again.")
            if row.expires_at <= utcnow():
                db.delete(row)
                db.commit()
                raise AuthError("Session expired. Please sign in again.")
            user = db.get(User, row.user_id)
            if user is None:
                raise AuthError("Session not found. Please sign in again.")
            return UserSession(user_id=user.id, email=user.email, token=token)
        finally:
            db.close()

    def sign_out(self, token: str) -> None:
        db = self._session_factory()
        try:
            db.query(AuthToken).filter(AuthToken.token == token).delete()
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("Sign-out failed")
            raise PersistenceError("Failed to sign out") from e
        finally:
            db.close()
