"""
Database abstraction for the numeric log and the auth session tables.

Two implementations share the ``DbClient`` protocol: a SQLAlchemy-backed
client (Postgres in production, SQLite in tests) and an in-memory client for
development and tests.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, ForeignKey, Integer, String, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class StoreUnavailableError(RuntimeError):
    """Raised when the backing store cannot serve a read or write."""


class DbClient(Protocol):
    """Interface for database access."""

    def add_number(self, value: float) -> "NumberRecord":
        ...

    def list_recent_numbers(self, count: int) -> list["NumberRecord"]:
        ...

    def collect_numbers(self) -> list["NumberRecord"]:
        ...

    def save_user(self, user: "UserRecord") -> None:
        ...

    def save_session(self, session: "SessionRecord") -> None:
        ...

    def get_session(
        self, token: str
    ) -> Optional[tuple["SessionRecord", "UserRecord"]]:
        ...

    def delete_session(self, token: str) -> bool:
        ...


@dataclass(frozen=True)
class NumberRecord:
    id: int
    value: float
    created_at: float = field(default_factory=lambda: time.time())


@dataclass
class UserRecord:
    id: str
    email: str
    name: Optional[str] = None

    def as_dict(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name}


@dataclass
class SessionRecord:
    token: str
    user_id: str
    expires_at: float
    created_at: float = field(default_factory=lambda: time.time())

    def is_expired(self, now: float | None = None) -> bool:
        return self.expires_at <= (now if now is not None else time.time())

    def as_dict(self) -> dict:
        return {
            "token": self.token,
            "user_id": self.user_id,
            "expires_at": self.expires_at,
            "created_at": self.created_at,
        }


def _most_recent_ascending(newest_first: list[NumberRecord]) -> list[NumberRecord]:
    return list(reversed(newest_first))


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.numbers: list[NumberRecord] = []
        self.users: Dict[str, UserRecord] = {}
        self.sessions: Dict[str, SessionRecord] = {}
        self._next_id = 1

    def add_number(self, value: float) -> NumberRecord:
        record = NumberRecord(id=self._next_id, value=float(value))
        self._next_id += 1
        self.numbers.append(record)
        return record

    def list_recent_numbers(self, count: int) -> list[NumberRecord]:
        if count <= 0:
            return []
        newest_first = sorted(self.numbers, key=lambda n: n.id, reverse=True)[:count]
        return _most_recent_ascending(newest_first)

    def collect_numbers(self) -> list[NumberRecord]:
        return sorted(self.numbers, key=lambda n: n.id)

    def save_user(self, user: UserRecord) -> None:
        self.users[user.id] = user

    def save_session(self, session: SessionRecord) -> None:
        self.sessions[session.token] = session

    def get_session(self, token: str) -> Optional[tuple[SessionRecord, UserRecord]]:
        session = self.sessions.get(token)
        if not session:
            return None
        user = self.users.get(session.user_id)
        if not user:
            return None
        return session, user

    def delete_session(self, token: str) -> bool:
        return self.sessions.pop(token, None) is not None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.numbers.clear()
        self.users.clear()
        self.sessions.clear()
        self._next_id = 1


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_number_record(row: "NumberRow") -> NumberRecord:
        return NumberRecord(id=row.id, value=row.value, created_at=row.created_at)

    def add_number(self, value: float) -> NumberRecord:
        try:
            with self.Session() as session:
                row = NumberRow(value=float(value), created_at=time.time())
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_number_record(row)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to append number") from exc

    def list_recent_numbers(self, count: int) -> list[NumberRecord]:
        if count <= 0:
            return []
        try:
            with self.Session() as session:
                stmt = select(NumberRow).order_by(NumberRow.id.desc()).limit(count)
                rows = session.execute(stmt).scalars().all()
                return _most_recent_ascending(
                    [self._to_number_record(row) for row in rows]
                )
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to read numbers") from exc

    def collect_numbers(self) -> list[NumberRecord]:
        try:
            with self.Session() as session:
                rows = session.execute(
                    select(NumberRow).order_by(NumberRow.id.asc())
                ).scalars().all()
                return [self._to_number_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to read numbers") from exc

    def save_user(self, user: UserRecord) -> None:
        try:
            with self.Session() as session:
                existing = session.get(UserRow, user.id)
                if existing:
                    existing.email = user.email
                    existing.name = user.name
                else:
                    session.add(UserRow(id=user.id, email=user.email, name=user.name))
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to save user") from exc

    def save_session(self, record: SessionRecord) -> None:
        try:
            with self.Session() as session:
                session.merge(
                    SessionRow(
                        token=record.token,
                        user_id=record.user_id,
                        expires_at=record.expires_at,
                        created_at=record.created_at,
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to save session") from exc

    def get_session(self, token: str) -> Optional[tuple[SessionRecord, UserRecord]]:
        try:
            with self.Session() as session:
                row = session.get(SessionRow, token)
                if not row:
                    return None
                user = session.get(UserRow, row.user_id)
                if not user:
                    return None
                return (
                    SessionRecord(
                        token=row.token,
                        user_id=row.user_id,
                        expires_at=row.expires_at,
                        created_at=row.created_at,
                    ),
                    UserRecord(id=user.id, email=user.email, name=user.name),
                )
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to read session") from exc

    def delete_session(self, token: str) -> bool:
        try:
            with self.Session() as session:
                row = session.get(SessionRow, token)
                if not row:
                    return False
                session.delete(row)
                session.commit()
                return True
        except SQLAlchemyError as exc:
            raise StoreUnavailableError("failed to delete session") from exc


Base = declarative_base()


class NumberRow(Base):
    __tablename__ = "numbers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    value = Column(Float, nullable=False)
    created_at = Column(Float, nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)


class SessionRow(Base):
    __tablename__ = "sessions"

    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(Float, nullable=False)
    created_at = Column(Float, nullable=False)
