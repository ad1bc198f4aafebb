"""
SQLAlchemy-backed content store.

Accepts any SQLAlchemy URL (Postgres in production, SQLite for tests). Each
operation runs in its own session, so concurrent writers are serialized by
the database.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Generic, Optional, Type

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    func,
    select,
)
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from classsite.errors import NotFoundError
from classsite.store import (
    DEFAULT_SETTINGS,
    AdminUser,
    Confession,
    GalleryItem,
    R,
    SiteSettings,
    StructureMember,
    as_utc,
    next_stamp,
    utcnow,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


def _new_id() -> str:
    return uuid.uuid4().hex


class SqlCollection(Generic[R]):
    """Generic CRUD over one table whose columns mirror ``record_cls``."""

    def __init__(self, session_factory: sessionmaker, row_cls, record_cls: Type[R]):
        self.Session = session_factory
        self.row_cls = row_cls
        self.record_cls = record_cls

    def _to_record(self, row) -> R:
        values = {}
        for name in self.record_cls.field_names():
            value = getattr(row, name)
            if name in self.record_cls.stamp_fields:
                value = as_utc(value)
            values[name] = value
        return self.record_cls(**values)

    def _order(self):
        row = self.row_cls
        if self.record_cls.newest_first:
            stamp = getattr(row, self.record_cls.stamp_fields[0])
            return (stamp.desc(), row.seq.desc())
        return (row.seq.asc(),)

    def _find(self, session: Session, record_id: str):
        stmt = select(self.row_cls).where(self.row_cls.id == record_id)
        row = session.execute(stmt).scalar_one_or_none()
        if row is None:
            raise NotFoundError(self.record_cls.not_found())
        return row

    def list(self) -> list[R]:
        with self.Session() as session:
            rows = session.execute(
                select(self.row_cls).order_by(*self._order())
            ).scalars()
            return [self._to_record(row) for row in rows]

    def get(self, record_id: str) -> R:
        with self.Session() as session:
            return self._to_record(self._find(session, record_id))

    def create(self, values: dict) -> R:
        values = self.record_cls.clean(values)
        now = utcnow()
        for name in self.record_cls.stamp_fields:
            values[name] = now
        with self.Session() as session:
            row = self.row_cls(**values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def update(self, record_id: str, values: dict) -> R:
        values = self.record_cls.clean(values)
        with self.Session() as session:
            row = self._find(session, record_id)
            for name, value in values.items():
                setattr(row, name, value)
            session.commit()
            session.refresh(row)
            return self._to_record(row)

    def delete(self, record_id: str) -> R:
        with self.Session() as session:
            row = self._find(session, record_id)
            record = self._to_record(row)
            session.delete(row)
            session.commit()
            return record

    def count(self) -> int:
        with self.Session() as session:
            return session.execute(
                select(func.count()).select_from(self.row_cls)
            ).scalar_one()


class SqlSettingsStore:
    """The settings table holds at most one row, pinned by a unique key."""

    def __init__(self, session_factory: sessionmaker):
        self.Session = session_factory
        self._records = SqlCollection(session_factory, SettingsRow, SiteSettings)

    def _current(self, session: Session) -> Optional[SettingsRow]:
        stmt = select(SettingsRow).where(SettingsRow.singleton == SINGLETON_KEY)
        return session.execute(stmt).scalar_one_or_none()

    def exists(self) -> bool:
        with self.Session() as session:
            return self._current(session) is not None

    def get(self) -> SiteSettings:
        with self.Session() as session:
            row = self._current(session)
            if row is not None:
                return self._records._to_record(row)
        try:
            return self._insert({})
        except IntegrityError:
            # Another request created the row first.
            with self.Session() as session:
                return self._records._to_record(self._current(session))

    def put(self, values: dict, _retry: bool = True) -> SiteSettings:
        values = SiteSettings.clean(values)
        with self.Session() as session:
            row = self._current(session)
            if row is not None:
                for name, value in values.items():
                    setattr(row, name, value)
                row.last_updated = next_stamp(row.last_updated)
                session.commit()
                session.refresh(row)
                return self._records._to_record(row)
        try:
            return self._insert(values)
        except IntegrityError:
            # Lost the race for the singleton row: update it once. Any other
            # constraint failure comes back from the retry unchanged.
            if not _retry:
                raise
            return self.put(values, _retry=False)

    def _insert(self, values: dict) -> SiteSettings:
        with self.Session() as session:
            row = SettingsRow(
                singleton=SINGLETON_KEY,
                last_updated=utcnow(),
                **{**DEFAULT_SETTINGS, **values},
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise
            session.refresh(row)
            logger.info("Created default settings")
            return self._records._to_record(row)


class SqlUserStore:
    def __init__(self, session_factory: sessionmaker):
        self.Session = session_factory
        self._records = SqlCollection(session_factory, UserRow, AdminUser)

    def get_by_username(self, username: str) -> Optional[AdminUser]:
        with self.Session() as session:
            stmt = select(UserRow).where(UserRow.username == username)
            row = session.execute(stmt).scalar_one_or_none()
            return self._records._to_record(row) if row else None

    def create(self, username: str, password_hash: str, role: str = "admin") -> AdminUser:
        return self._records.create(
            {"username": username, "password_hash": password_hash, "role": role}
        )


class DatabaseBackend:
    """
    SQLAlchemy implementation of ``ContentBackend``.
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for DatabaseBackend")
        options = {"future": True, "pool_pre_ping": True}
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection so every session sees the same database.
            options.update(
                poolclass=StaticPool, connect_args={"check_same_thread": False}
            )
        elif database_url.startswith("sqlite"):
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **options)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

        self.gallery = SqlCollection(self.Session, GalleryRow, GalleryItem)
        self.structure = SqlCollection(self.Session, StructureRow, StructureMember)
        self.confessions = SqlCollection(self.Session, ConfessionRow, Confession)
        self.settings = SqlSettingsStore(self.Session)
        self.users = SqlUserStore(self.Session)

    def close(self) -> None:
        self.engine.dispose()


SINGLETON_KEY = "site"


class UserRow(Base):
    __tablename__ = "users"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=_new_id)
    username = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")


class GalleryRow(Base):
    __tablename__ = "gallery"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=_new_id)
    filename = Column(String, nullable=False)
    original_name = Column(String, nullable=True)
    title = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    featured = Column(Boolean, nullable=False, default=False)
    upload_date = Column(DateTime(timezone=True), nullable=False)
    size = Column(Integer, nullable=True)
    mimetype = Column(String, nullable=True)


class StructureRow(Base):
    __tablename__ = "structure"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=_new_id)
    position = Column(String, nullable=False)
    name = Column(String, nullable=False)
    icon = Column(String, nullable=True)
    level = Column(String, nullable=True)


class ConfessionRow(Base):
    __tablename__ = "confessions"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=_new_id)
    message = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)


class SettingsRow(Base):
    __tablename__ = "settings"

    seq = Column(Integer, primary_key=True, autoincrement=True)
    id = Column(String, unique=True, nullable=False, default=_new_id)
    singleton = Column(String, unique=True, nullable=False)
    site_name = Column(String, nullable=False)
    site_title = Column(String, nullable=False)
    site_description = Column(Text, nullable=False)
    welcome_text = Column(Text, nullable=False)
    last_updated = Column(DateTime(timezone=True), nullable=False)
