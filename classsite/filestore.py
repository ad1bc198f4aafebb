"""
Flat-file content store.

Each collection lives in one JSON file under ``data_dir``. Every write reads
the whole file, mutates it in memory and rewrites it. A per-collection lock
serializes that read-modify-write cycle within the process; two processes
sharing one data directory can still clobber each other (last writer wins).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from pathlib import Path
from typing import Generic, Optional, Type

from classsite.errors import NotFoundError
from classsite.store import (
    DEFAULT_SETTINGS,
    AdminUser,
    Confession,
    GalleryItem,
    R,
    SiteSettings,
    StructureMember,
    next_stamp,
    utcnow,
)

logger = logging.getLogger(__name__)


def _read_json(path: Path, default):
    if not path.exists():
        return default
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _write_json(path: Path, payload) -> None:
    """Write to a temp file in the same directory, then swap it in."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        Path(tmp_path).unlink(missing_ok=True)
        raise


def _new_id(taken: set[str]) -> str:
    """Millisecond timestamp id, bumped until it is unused."""
    candidate = int(time.time() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


class JsonFileCollection(Generic[R]):
    def __init__(self, path: Path, record_cls: Type[R]):
        self.path = Path(path)
        self.record_cls = record_cls
        self.lock = threading.Lock()

    def _load(self) -> list[R]:
        return [self.record_cls.from_dict(item) for item in _read_json(self.path, [])]

    def _save(self, records: list[R]) -> None:
        _write_json(
            self.path, [record.as_dict(include_hidden=True) for record in records]
        )

    def _index(self, records: list[R], record_id: str) -> int:
        for i, record in enumerate(records):
            if record.id == record_id:
                return i
        raise NotFoundError(self.record_cls.not_found())

    def list(self) -> list[R]:
        with self.lock:
            records = self._load()
        if self.record_cls.newest_first:
            stamp = self.record_cls.stamp_fields[0]
            # Reverse first so equal stamps keep newest insertion first.
            records = sorted(
                reversed(records), key=lambda r: getattr(r, stamp), reverse=True
            )
        return records

    def get(self, record_id: str) -> R:
        with self.lock:
            records = self._load()
        return records[self._index(records, record_id)]

    def create(self, values: dict) -> R:
        values = self.record_cls.clean(values)
        with self.lock:
            records = self._load()
            values["id"] = _new_id({record.id for record in records})
            now = utcnow()
            for name in self.record_cls.stamp_fields:
                values[name] = now
            record = self.record_cls(**values)
            records.append(record)
            self._save(records)
        return record

    def update(self, record_id: str, values: dict) -> R:
        values = self.record_cls.clean(values)
        with self.lock:
            records = self._load()
            record = records[self._index(records, record_id)]
            for name, value in values.items():
                setattr(record, name, value)
            self._save(records)
        return record

    def delete(self, record_id: str) -> R:
        with self.lock:
            records = self._load()
            record = records.pop(self._index(records, record_id))
            self._save(records)
        return record

    def count(self) -> int:
        with self.lock:
            return len(_read_json(self.path, []))


class JsonSettingsStore:
    def __init__(self, path: Path):
        self.path = Path(path)
        self.lock = threading.Lock()

    def _load(self) -> Optional[SiteSettings]:
        data = _read_json(self.path, None)
        return SiteSettings.from_dict(data) if data else None

    def _save(self, settings: SiteSettings) -> None:
        _write_json(self.path, settings.as_dict())

    def exists(self) -> bool:
        with self.lock:
            return self._load() is not None

    def get(self) -> SiteSettings:
        with self.lock:
            settings = self._load()
            if settings is None:
                settings = SiteSettings(
                    id=_new_id(set()), last_updated=utcnow(), **DEFAULT_SETTINGS
                )
                self._save(settings)
                logger.info("Created default settings")
        return settings

    def put(self, values: dict) -> SiteSettings:
        values = SiteSettings.clean(values)
        with self.lock:
            settings = self._load()
            if settings is None:
                settings = SiteSettings(id=_new_id(set()), **DEFAULT_SETTINGS)
                previous = None
            else:
                previous = settings.last_updated
            for name, value in values.items():
                setattr(settings, name, value)
            settings.last_updated = next_stamp(previous)
            self._save(settings)
        return settings


class JsonUserStore:
    def __init__(self, path: Path):
        self._records = JsonFileCollection(path, AdminUser)

    def get_by_username(self, username: str) -> Optional[AdminUser]:
        for user in self._records.list():
            if user.username == username:
                return user
        return None

    def create(self, username: str, password_hash: str, role: str = "admin") -> AdminUser:
        return self._records.create(
            {"username": username, "password_hash": password_hash, "role": role}
        )


class JsonFileBackend:
    """
    JSON-file implementation of ``ContentBackend``.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.gallery = JsonFileCollection(self.data_dir / "gallery.json", GalleryItem)
        self.structure = JsonFileCollection(
            self.data_dir / "structure.json", StructureMember
        )
        self.confessions = JsonFileCollection(
            self.data_dir / "confessions.json", Confession
        )
        self.settings = JsonSettingsStore(self.data_dir / "settings.json")
        self.users = JsonUserStore(self.data_dir / "users.json")

    def close(self) -> None:
        pass
