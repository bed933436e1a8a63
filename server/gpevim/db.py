"""
Record storage for publications, members and admin users.

`SqlRecordStore` is the durable backend (any SQLAlchemy URL, hosted Postgres in
production). `InMemoryRecordStore` keeps records in process memory; it backs
development/test runs and serves as the local fallback.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterator, Optional, Protocol

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from gpevim.errors import BackendUnavailableError
from gpevim.ordering import sort_members, sort_publications

logger = logging.getLogger(__name__)

PUBLICATION_FIELDS = ("title", "author", "image_url", "publication_url", "description")
MEMBER_FIELDS = (
    "name",
    "role",
    "image_url",
    "lattes_url",
    "research_topic",
    "category",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo; every stored timestamp is UTC.
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class RecordStore(Protocol):
    """Interface for record storage."""

    def initialize(
        self, admin_username: str | None = None, admin_password: str | None = None
    ) -> None:
        ...

    def list_publications(self) -> list["PublicationRecord"]:
        ...

    def get_publication(self, publication_id: int) -> Optional["PublicationRecord"]:
        ...

    def insert_publication(self, fields: dict) -> "PublicationRecord":
        ...

    def update_publication(
        self, publication_id: int, fields: dict
    ) -> Optional["PublicationRecord"]:
        ...

    def delete_publication(self, publication_id: int) -> bool:
        ...

    def list_members(self) -> list["MemberRecord"]:
        ...

    def get_member(self, member_id: int) -> Optional["MemberRecord"]:
        ...

    def insert_member(self, fields: dict) -> "MemberRecord":
        ...

    def update_member(self, member_id: int, fields: dict) -> Optional["MemberRecord"]:
        ...

    def delete_member(self, member_id: int) -> bool:
        ...

    def verify_admin(self, username: str, password: str) -> bool:
        ...


@dataclass
class PublicationRecord:
    id: int
    title: str
    author: str
    image_url: str
    publication_url: str
    description: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "image_url": self.image_url,
            "publication_url": self.publication_url,
            "description": self.description,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class MemberRecord:
    id: int
    name: str
    role: str
    image_url: str
    category: str
    lattes_url: Optional[str] = None
    research_topic: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "image_url": self.image_url,
            "lattes_url": self.lattes_url,
            "research_topic": self.research_topic,
            "category": self.category,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


@dataclass
class AdminUserRecord:
    username: str
    # Stored as given; the column keeps its historical name.
    password_hash: str
    created_at: datetime = field(default_factory=_utcnow)


class InMemoryRecordStore:
    """Process-local record storage for development, tests and fallback."""

    def __init__(self):
        self.publications: list[PublicationRecord] = []
        self.members: list[MemberRecord] = []
        self.admins: dict[str, AdminUserRecord] = {}
        self._lock = threading.Lock()
        self._last_id = 0

    def _next_id(self) -> int:
        # Millisecond timestamps, bumped so two inserts never share an id.
        candidate = int(time.time() * 1000)
        if candidate <= self._last_id:
            candidate = self._last_id + 1
        self._last_id = candidate
        return candidate

    def initialize(
        self, admin_username: str | None = None, admin_password: str | None = None
    ) -> None:
        if admin_username and admin_username not in self.admins:
            self.admins[admin_username] = AdminUserRecord(
                username=admin_username, password_hash=admin_password or ""
            )

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            self.publications.clear()
            self.members.clear()
            self.admins.clear()

    def list_publications(self) -> list[PublicationRecord]:
        with self._lock:
            return sort_publications(list(self.publications))

    def get_publication(self, publication_id: int) -> Optional[PublicationRecord]:
        return self._find(self.publications, publication_id)

    def insert_publication(self, fields: dict) -> PublicationRecord:
        with self._lock:
            record = PublicationRecord(
                id=self._next_id(),
                **{name: fields.get(name) for name in PUBLICATION_FIELDS},
            )
            self.publications.append(record)
        return record

    def update_publication(
        self, publication_id: int, fields: dict
    ) -> Optional[PublicationRecord]:
        return self._update(self.publications, publication_id, fields, PUBLICATION_FIELDS)

    def delete_publication(self, publication_id: int) -> bool:
        return self._delete(self.publications, publication_id)

    def list_members(self) -> list[MemberRecord]:
        with self._lock:
            return sort_members(list(self.members))

    def get_member(self, member_id: int) -> Optional[MemberRecord]:
        return self._find(self.members, member_id)

    def insert_member(self, fields: dict) -> MemberRecord:
        with self._lock:
            record = MemberRecord(
                id=self._next_id(),
                **{name: fields.get(name) for name in MEMBER_FIELDS},
            )
            self.members.append(record)
        return record

    def update_member(self, member_id: int, fields: dict) -> Optional[MemberRecord]:
        return self._update(self.members, member_id, fields, MEMBER_FIELDS)

    def delete_member(self, member_id: int) -> bool:
        return self._delete(self.members, member_id)

    def verify_admin(self, username: str, password: str) -> bool:
        admin = self.admins.get(username)
        return admin is not None and admin.password_hash == password

    def _find(self, items: list, record_id: int):
        with self._lock:
            for record in items:
                if record.id == record_id:
                    return record
        return None

    def _update(self, items: list, record_id: int, fields: dict, names: tuple):
        with self._lock:
            for record in items:
                if record.id == record_id:
                    for name in names:
                        setattr(record, name, fields.get(name))
                    record.updated_at = _utcnow()
                    return record
        return None

    def _delete(self, items: list, record_id: int) -> bool:
        with self._lock:
            for index, record in enumerate(items):
                if record.id == record_id:
                    del items[index]
                    return True
        return False


def _engine_options(database_url: str, production: bool) -> tuple[str, dict]:
    options: dict = {"future": True, "pool_pre_ping": True}
    if database_url.startswith("postgres://"):
        database_url = "postgresql://" + database_url[len("postgres://"):]
    if database_url.startswith("postgresql://"):
        database_url = "postgresql+psycopg://" + database_url[len("postgresql://"):]
    if database_url.startswith("postgresql"):
        options["pool_recycle"] = 1800
        if production:
            options["connect_args"] = {"sslmode": "require"}
    elif database_url.startswith("sqlite") and ":memory:" in database_url:
        # One shared connection so every request thread sees the same database.
        options["poolclass"] = StaticPool
        options["connect_args"] = {"check_same_thread": False}
    return database_url, options


class SqlRecordStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).

    Every database failure surfaces as `BackendUnavailableError`; a missing row
    is `None`/`False`, never an error.
    """

    def __init__(self, database_url: str, *, production: bool = False):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlRecordStore")
        url, options = _engine_options(database_url, production)
        self.engine = create_engine(url, **options)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with self.Session() as session:
                yield session
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(
                detail=f"{type(exc).__name__}: {exc}"
            ) from exc

    def initialize(
        self, admin_username: str | None = None, admin_password: str | None = None
    ) -> None:
        """Create tables and seed the admin user if it does not exist yet."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise BackendUnavailableError(
                detail=f"{type(exc).__name__}: {exc}"
            ) from exc
        if not admin_username:
            return
        with self._session() as session:
            existing = session.execute(
                select(AdminUserRow).where(AdminUserRow.username == admin_username)
            ).scalar_one_or_none()
            if existing is None:
                session.add(
                    AdminUserRow(
                        username=admin_username,
                        password_hash=admin_password or "",
                        created_at=_utcnow(),
                    )
                )
                session.commit()
                logger.info("Seeded admin user %s", admin_username)

    def list_publications(self) -> list[PublicationRecord]:
        with self._session() as session:
            rows = session.execute(
                select(PublicationRow).order_by(PublicationRow.created_at.desc())
            ).scalars()
            return sort_publications(_to_publication(row) for row in rows)

    def get_publication(self, publication_id: int) -> Optional[PublicationRecord]:
        with self._session() as session:
            row = session.get(PublicationRow, publication_id)
            return _to_publication(row) if row else None

    def insert_publication(self, fields: dict) -> PublicationRecord:
        with self._session() as session:
            row = PublicationRow(
                created_at=_utcnow(),
                **{name: fields.get(name) for name in PUBLICATION_FIELDS},
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_publication(row)

    def update_publication(
        self, publication_id: int, fields: dict
    ) -> Optional[PublicationRecord]:
        with self._session() as session:
            row = session.get(PublicationRow, publication_id)
            if not row:
                return None
            for name in PUBLICATION_FIELDS:
                setattr(row, name, fields.get(name))
            row.updated_at = _utcnow()
            session.commit()
            session.refresh(row)
            return _to_publication(row)

    def delete_publication(self, publication_id: int) -> bool:
        return self._delete(PublicationRow, publication_id)

    def list_members(self) -> list[MemberRecord]:
        with self._session() as session:
            rows = session.execute(
                select(MemberRow).order_by(MemberRow.category, MemberRow.name)
            ).scalars()
            return sort_members(_to_member(row) for row in rows)

    def get_member(self, member_id: int) -> Optional[MemberRecord]:
        with self._session() as session:
            row = session.get(MemberRow, member_id)
            return _to_member(row) if row else None

    def insert_member(self, fields: dict) -> MemberRecord:
        with self._session() as session:
            row = MemberRow(
                created_at=_utcnow(),
                **{name: fields.get(name) for name in MEMBER_FIELDS},
            )
            session.add(row)
            session.commit()
            session.refresh(row)
            return _to_member(row)

    def update_member(self, member_id: int, fields: dict) -> Optional[MemberRecord]:
        with self._session() as session:
            row = session.get(MemberRow, member_id)
            if not row:
                return None
            for name in MEMBER_FIELDS:
                setattr(row, name, fields.get(name))
            row.updated_at = _utcnow()
            session.commit()
            session.refresh(row)
            return _to_member(row)

    def delete_member(self, member_id: int) -> bool:
        return self._delete(MemberRow, member_id)

    def verify_admin(self, username: str, password: str) -> bool:
        with self._session() as session:
            row = session.execute(
                select(AdminUserRow).where(
                    AdminUserRow.username == username,
                    AdminUserRow.password_hash == password,
                )
            ).scalar_one_or_none()
            return row is not None

    def _delete(self, row_class, record_id: int) -> bool:
        with self._session() as session:
            result = session.execute(delete(row_class).where(row_class.id == record_id))
            session.commit()
            return (result.rowcount or 0) > 0


def _to_publication(row: "PublicationRow") -> PublicationRecord:
    return PublicationRecord(
        id=row.id,
        title=row.title,
        author=row.author,
        image_url=row.image_url,
        publication_url=row.publication_url,
        description=row.description,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def _to_member(row: "MemberRow") -> MemberRecord:
    return MemberRecord(
        id=row.id,
        name=row.name,
        role=row.role,
        image_url=row.image_url,
        category=row.category,
        lattes_url=row.lattes_url,
        research_topic=row.research_topic,
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


Base = declarative_base()


class PublicationRow(Base):
    __tablename__ = "publications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    author = Column(String(255), nullable=False)
    image_url = Column(Text, nullable=False)
    publication_url = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class MemberRow(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    role = Column(String(100), nullable=False)
    image_url = Column(Text, nullable=False)
    lattes_url = Column(Text, nullable=True)
    research_topic = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class AdminUserRow(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
