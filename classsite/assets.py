"""
Storage for uploaded gallery images on local disk.
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from classsite.errors import (
    InternalError,
    PayloadTooLargeError,
    TooManyFilesError,
    UnsupportedFileTypeError,
)

logger = logging.getLogger(__name__)

_EXT_RE = re.compile(r"^\.[A-Za-z0-9]{1,10}$")


@dataclass
class IncomingFile:
    """An uploaded file already read into memory."""

    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class AssetRef:
    filename: str
    original_name: str
    size: int
    mimetype: str


class FileAssetManager:
    def __init__(
        self,
        upload_dir: str,
        max_bytes: int = 5 * 1024 * 1024,
        max_files: int = 10,
    ):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes
        self.max_files = max_files
        self.upload_dir.mkdir(parents=True, exist_ok=True)

    def generate_filename(self, original_name: Optional[str]) -> str:
        """photo-<epoch ms>-<random><ext>; the original name only lends its extension."""
        ext = os.path.splitext(os.path.basename(original_name or ""))[1]
        if not _EXT_RE.match(ext):
            ext = ""
        suffix = secrets.randbelow(10**9)
        return f"photo-{int(time.time() * 1000)}-{suffix}{ext.lower()}"

    def path_for(self, filename: str) -> Path:
        path = (self.upload_dir / filename).resolve()
        if path.parent != self.upload_dir.resolve():
            raise ValueError(f"Refusing path outside upload dir: {filename!r}")
        return path

    def exists(self, filename: str) -> bool:
        try:
            return self.path_for(filename).is_file()
        except ValueError:
            return False

    def _limit_label(self) -> str:
        mib = 1024 * 1024
        if self.max_bytes % mib == 0:
            return f"{self.max_bytes // mib}MB"
        return f"{self.max_bytes} bytes"

    def validate(self, files: Sequence[IncomingFile]) -> None:
        """Reject the whole batch if any file breaks a limit."""
        if len(files) > self.max_files:
            raise TooManyFilesError(f"Too many files (max {self.max_files})")
        for incoming in files:
            if not (incoming.content_type or "").startswith("image/"):
                raise UnsupportedFileTypeError()
            if incoming.size > self.max_bytes:
                raise PayloadTooLargeError(f"File too large (max {self._limit_label()})")

    def store(self, incoming: IncomingFile) -> AssetRef:
        filename = self.generate_filename(incoming.filename)
        path = self.path_for(filename)
        # "xb" so a name collision fails instead of overwriting.
        with open(path, "xb") as f:
            f.write(incoming.data)
        return AssetRef(
            filename=filename,
            original_name=incoming.filename,
            size=incoming.size,
            mimetype=incoming.content_type,
        )

    def store_batch(self, files: Sequence[IncomingFile]) -> list[AssetRef]:
        self.validate(files)
        stored: list[AssetRef] = []
        try:
            for incoming in files:
                stored.append(self.store(incoming))
        except OSError as exc:
            logger.exception("Failed writing upload batch")
            self.remove_all(ref.filename for ref in stored)
            raise InternalError("Failed to upload images") from exc
        return stored

    def remove(self, filename: str) -> bool:
        """Delete the file; returns False if it was already gone."""
        path = self.path_for(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted file: %s", path)
        return True

    def remove_all(self, filenames) -> None:
        """Best-effort cleanup; failures are logged, not raised."""
        for filename in filenames:
            try:
                self.remove(filename)
            except (OSError, ValueError):
                logger.exception("Could not remove %s during cleanup", filename)
