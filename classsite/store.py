"""
Content store contract and the record types shared by both backends.

Stores speak in snake_case field dicts; records render themselves with the
camelCase keys used on the wire (and in the JSON files of the file backend).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta, timezone
from typing import ClassVar, Generic, Optional, Protocol, TypeVar

DEFAULT_SETTINGS = {
    "site_name": "PPLGTWO",
    "site_title": "PPLGTWO - Website Kelas",
    "site_description": (
        "Menciptakan masa depan digital dengan kreativitas, inovasi, "
        "dan kolaborasi yang tak terbatas"
    ),
    "welcome_text": "Welcome to PPLGTWO Digital Space",
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; everything we store is UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def next_stamp(previous: Optional[datetime]) -> datetime:
    """Current time, nudged forward so it is strictly after ``previous``."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class Record:
    """Mixin for the dataclass records below."""

    label: ClassVar[str] = "Record"
    # Server-owned timestamps, assigned on create and never taken from clients.
    stamp_fields: ClassVar[tuple[str, ...]] = ()
    hidden_fields: ClassVar[tuple[str, ...]] = ()
    newest_first: ClassVar[bool] = False

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def editable_fields(cls) -> list[str]:
        return [
            name
            for name in cls.field_names()
            if name != "id" and name not in cls.stamp_fields
        ]

    @classmethod
    def clean(cls, values: dict) -> dict:
        """Drop keys a client may not set (id, stamps, unknown names)."""
        allowed = set(cls.editable_fields())
        return {key: value for key, value in values.items() if key in allowed}

    @classmethod
    def not_found(cls) -> str:
        return f"{cls.label} not found"

    def as_dict(self, include_hidden: bool = False) -> dict:
        data = {}
        for name in self.field_names():
            if name in self.hidden_fields and not include_hidden:
                continue
            value = getattr(self, name)
            if isinstance(value, datetime):
                value = as_utc(value).isoformat()
            data[_camel(name)] = value
        return data

    @classmethod
    def from_dict(cls, data: dict):
        values = {}
        for name in cls.field_names():
            key = _camel(name)
            if key not in data:
                continue
            value = data[key]
            if name in cls.stamp_fields and isinstance(value, str):
                value = as_utc(datetime.fromisoformat(value))
            values[name] = value
        return cls(**values)


@dataclass
class AdminUser(Record):
    id: str
    username: str
    password_hash: str
    role: str = "admin"

    label: ClassVar[str] = "User"
    hidden_fields: ClassVar[tuple[str, ...]] = ("password_hash",)


@dataclass
class GalleryItem(Record):
    id: str
    filename: str
    original_name: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    featured: bool = False
    upload_date: datetime = field(default_factory=utcnow)
    size: Optional[int] = None
    mimetype: Optional[str] = None

    label: ClassVar[str] = "Photo"
    stamp_fields: ClassVar[tuple[str, ...]] = ("upload_date",)


@dataclass
class StructureMember(Record):
    id: str
    position: str
    name: str
    icon: Optional[str] = None
    level: Optional[str] = None

    label: ClassVar[str] = "Member"


@dataclass
class Confession(Record):
    id: str
    message: str
    timestamp: datetime = field(default_factory=utcnow)

    label: ClassVar[str] = "Confession"
    stamp_fields: ClassVar[tuple[str, ...]] = ("timestamp",)
    newest_first: ClassVar[bool] = True


@dataclass
class SiteSettings(Record):
    id: str
    site_name: str = DEFAULT_SETTINGS["site_name"]
    site_title: str = DEFAULT_SETTINGS["site_title"]
    site_description: str = DEFAULT_SETTINGS["site_description"]
    welcome_text: str = DEFAULT_SETTINGS["welcome_text"]
    last_updated: datetime = field(default_factory=utcnow)

    label: ClassVar[str] = "Settings"
    stamp_fields: ClassVar[tuple[str, ...]] = ("last_updated",)


R = TypeVar("R", bound=Record)


class Collection(Protocol, Generic[R]):
    """CRUD over one collection, keyed by an opaque string id."""

    def list(self) -> list[R]:
        ...

    def get(self, record_id: str) -> R:
        ...

    def create(self, values: dict) -> R:
        ...

    def update(self, record_id: str, values: dict) -> R:
        ...

    def delete(self, record_id: str) -> R:
        ...

    def count(self) -> int:
        ...


class SettingsStore(Protocol):
    """Single-record collection: reads create defaults, writes upsert."""

    def get(self) -> SiteSettings:
        ...

    def put(self, values: dict) -> SiteSettings:
        ...

    def exists(self) -> bool:
        ...


class UserStore(Protocol):
    def get_by_username(self, username: str) -> Optional[AdminUser]:
        ...

    def create(self, username: str, password_hash: str, role: str = "admin") -> AdminUser:
        ...


class ContentBackend(Protocol):
    """Everything the HTTP surface needs from persistence."""

    gallery: Collection[GalleryItem]
    structure: Collection[StructureMember]
    confessions: Collection[Confession]
    settings: SettingsStore
    users: UserStore

    def close(self) -> None:
        ...
