"""
HTTP routes for the content API.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from classsite import services
from classsite.assets import FileAssetManager, IncomingFile
from classsite.auth import AuthGate, UserClaims
from classsite.dependencies import (
    AppContext,
    get_assets,
    get_auth_gate,
    get_backend,
    get_context,
    require_admin,
)
from classsite.errors import TooManyFilesError, ValidationError
from classsite.schemas import (
    ConfessionCreate,
    GalleryCreate,
    GalleryUpdate,
    LoginRequest,
    SettingsUpdate,
    StructureCreate,
    StructureUpdate,
)
from classsite.store import ContentBackend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login")
def login(payload: LoginRequest, auth: AuthGate = Depends(get_auth_gate)):
    if not payload.username or not payload.password:
        raise ValidationError("Username and password are required")
    return auth.login(payload.username, payload.password)


@router.get("/auth/me")
def whoami(user: UserClaims = Depends(require_admin)):
    return {"user": user.as_dict()}


@router.post("/upload", status_code=201)
async def upload(
    images: Optional[list[UploadFile]] = File(None),
    _: UserClaims = Depends(require_admin),
    context: AppContext = Depends(get_context),
):
    """
    Accept up to ``max_upload_files`` images in the ``images`` field.

    The batch is all-or-nothing: one bad file rejects every file.
    """
    images = images or []
    assets = context.assets
    if len(images) > assets.max_files:
        raise TooManyFilesError(f"Too many files (max {assets.max_files})")
    files = []
    for image in images:
        # One byte past the limit is enough to know it is too large.
        data = await image.read(assets.max_bytes + 1)
        files.append(
            IncomingFile(
                filename=image.filename or "",
                content_type=image.content_type or "",
                data=data,
            )
        )
    items = await run_in_threadpool(
        services.upload_images, context.backend, assets, files
    )
    return {
        "message": f"{len(items)} photo(s) uploaded successfully",
        "data": [item.as_dict() for item in items],
    }


@router.get("/gallery")
def list_gallery(backend: ContentBackend = Depends(get_backend)):
    return [item.as_dict() for item in backend.gallery.list()]


@router.post("/gallery", status_code=201)
def add_photo(
    payload: GalleryCreate,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
    assets: FileAssetManager = Depends(get_assets),
):
    return services.create_gallery_record(
        backend, assets, payload.fields_set()
    ).as_dict()


@router.put("/gallery/{photo_id}")
def update_photo(
    photo_id: str,
    payload: GalleryUpdate,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    return backend.gallery.update(photo_id, payload.fields_set()).as_dict()


@router.delete("/gallery/{photo_id}")
def delete_photo(
    photo_id: str,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
    assets: FileAssetManager = Depends(get_assets),
):
    services.delete_gallery_item(backend, assets, photo_id)
    return {"message": "Photo deleted successfully"}


@router.get("/structure")
def list_structure(backend: ContentBackend = Depends(get_backend)):
    return [member.as_dict() for member in backend.structure.list()]


@router.post("/structure", status_code=201)
def add_member(
    payload: StructureCreate,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    return services.create_member(backend, payload.fields_set()).as_dict()


@router.put("/structure/{member_id}")
def update_member(
    member_id: str,
    payload: StructureUpdate,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    return services.update_member(backend, member_id, payload.fields_set()).as_dict()


@router.delete("/structure/{member_id}")
def delete_member(
    member_id: str,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    backend.structure.delete(member_id)
    return {"message": "Member deleted successfully"}


@router.get("/confessions")
def list_confessions(backend: ContentBackend = Depends(get_backend)):
    """Newest first."""
    return [confession.as_dict() for confession in backend.confessions.list()]


@router.post("/confessions", status_code=201)
def post_confession(
    payload: ConfessionCreate,
    context: AppContext = Depends(get_context),
):
    confession = services.submit_confession(
        context.backend,
        payload.message,
        max_length=context.settings.confession_max_length,
    )
    return {
        "message": "Confession submitted successfully",
        "data": confession.as_dict(),
    }


@router.delete("/confessions/{confession_id}")
def delete_confession(
    confession_id: str,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    backend.confessions.delete(confession_id)
    return {"message": "Confession deleted successfully"}


@router.get("/settings")
def get_site_settings(backend: ContentBackend = Depends(get_backend)):
    return backend.settings.get().as_dict()


@router.put("/settings")
def put_site_settings(
    payload: SettingsUpdate,
    _: UserClaims = Depends(require_admin),
    backend: ContentBackend = Depends(get_backend),
):
    return backend.settings.put(payload.fields_set()).as_dict()


@router.get("/stats")
def get_stats(backend: ContentBackend = Depends(get_backend)):
    return services.stats(backend)
