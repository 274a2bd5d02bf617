from datetime import datetime, timezone

from sqlalchemy import create_engine, Column, String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import sessionmaker, declarative_base

from fintrack.config import DATABASE_URL

Base = declarative_base()


def utcnow() -> datetime:
    # naive UTC; SQLite drops tzinfo on the way back
    return datetime.now(timezone.utc).replace(tzinfo=None)


# --- Models ---

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)  # bcrypt hash
    created_at = Column(DateTime, default=utcnow)


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)  # naive UTC


class TransactionDocument(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    body = Column(JSON, nullable=False)  # persisted document shape, camelCase keys


# --- Init DB ---
def init_db(url: str = DATABASE_URL) -> sessionmaker:
    engine = create_engine(url, connect_args={"check_same_thread": False} if url.startswith("sqlite") else {})
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autoflush=False, bind=engine)
