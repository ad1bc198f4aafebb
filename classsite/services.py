"""
Operations that span more than one store, plus server-side validation.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Sequence

from classsite.assets import FileAssetManager, IncomingFile
from classsite.errors import InternalError, ValidationError
from classsite.store import Confession, ContentBackend, GalleryItem, StructureMember, utcnow

logger = logging.getLogger(__name__)

UPLOAD_DESCRIPTION = "Uploaded via admin dashboard"


def title_from_filename(original_name: str) -> str:
    stem = os.path.splitext(os.path.basename(original_name or ""))[0]
    return re.sub(r"[_-]", " ", stem)


def upload_images(
    backend: ContentBackend,
    assets: FileAssetManager,
    files: Sequence[IncomingFile],
) -> list[GalleryItem]:
    """
    Store a batch of images and create one gallery record per file.

    Validation happens before anything touches disk. If persisting a record
    fails part-way, the files written and the records created for this batch
    are removed again before the error is raised.
    """
    if not files:
        raise ValidationError("No files uploaded")
    refs = assets.store_batch(files)

    created: list[GalleryItem] = []
    try:
        for ref in refs:
            created.append(
                backend.gallery.create(
                    {
                        "filename": ref.filename,
                        "original_name": ref.original_name,
                        "title": title_from_filename(ref.original_name),
                        "description": UPLOAD_DESCRIPTION,
                        "featured": False,
                        "size": ref.size,
                        "mimetype": ref.mimetype,
                    }
                )
            )
    except Exception as exc:
        logger.exception("Upload error")
        for item in created:
            try:
                backend.gallery.delete(item.id)
            except Exception:
                logger.exception("Could not roll back gallery record %s", item.id)
        assets.remove_all(ref.filename for ref in refs)
        raise InternalError("Failed to upload images") from exc
    return created


def delete_gallery_item(
    backend: ContentBackend, assets: FileAssetManager, item_id: str
) -> GalleryItem:
    """Delete the record and its backing file.

    A file that cannot be removed is logged; the record deletion still stands.
    """
    item = backend.gallery.get(item_id)
    try:
        assets.remove(item.filename)
    except (OSError, ValueError):
        logger.exception(
            "Could not delete file %s for photo %s", item.filename, item_id
        )
    return backend.gallery.delete(item_id)


def create_gallery_record(
    backend: ContentBackend, assets: FileAssetManager, values: dict
) -> GalleryItem:
    """Register a file that is already in the upload dir."""
    filename = (values.get("filename") or "").strip()
    if not filename:
        raise ValidationError("Filename is required")
    # exists() is also false for names that escape the upload dir.
    if not assets.exists(filename):
        raise ValidationError(f"File not found in gallery: {filename}")
    values["filename"] = filename
    return backend.gallery.create(values)


def check_member_fields(values: dict, partial: bool = False) -> dict:
    """Position and name are required on create and may not be blanked."""
    for key in ("position", "name"):
        if partial and key not in values:
            continue
        value = values.get(key)
        if value is None or not str(value).strip():
            raise ValidationError(f"{key.capitalize()} is required")
        values[key] = str(value).strip()
    return values


def create_member(backend: ContentBackend, values: dict) -> StructureMember:
    return backend.structure.create(check_member_fields(dict(values)))


def update_member(backend: ContentBackend, member_id: str, values: dict) -> StructureMember:
    return backend.structure.update(
        member_id, check_member_fields(dict(values), partial=True)
    )


def submit_confession(
    backend: ContentBackend, message, max_length: int = 500
) -> Confession:
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message is required")
    if len(message) > max_length:
        raise ValidationError(f"Message too long (max {max_length} characters)")
    return backend.confessions.create({"message": message.strip()})


def stats(backend: ContentBackend) -> dict:
    return {
        "gallery": backend.gallery.count(),
        "structure": backend.structure.count(),
        "confessions": backend.confessions.count(),
        "lastActivity": utcnow().isoformat(),
    }
