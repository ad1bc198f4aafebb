"""
Dependency wiring for the FastAPI app.

Services are built once per app by ``build_context`` and kept on
``app.state``; route dependencies read them from the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Header, Request
from fastapi.security.utils import get_authorization_scheme_param

from classsite.assets import FileAssetManager
from classsite.auth import AuthGate, CredentialStore, UserClaims
from classsite.config import Settings
from classsite.db import DatabaseBackend
from classsite.filestore import JsonFileBackend
from classsite.store import ContentBackend

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    backend: ContentBackend
    assets: FileAssetManager
    credentials: CredentialStore
    auth: AuthGate

    def close(self) -> None:
        self.backend.close()


def build_backend(settings: Settings) -> ContentBackend:
    if settings.storage_backend == "database":
        logger.info("Using database backend")
        return DatabaseBackend(settings.database_url)
    logger.info("Using JSON file backend in %s", settings.data_dir)
    return JsonFileBackend(settings.data_dir)


def build_context(settings: Settings) -> AppContext:
    backend = build_backend(settings)
    credentials = CredentialStore(backend.users, bcrypt_rounds=settings.bcrypt_rounds)
    return AppContext(
        settings=settings,
        backend=backend,
        assets=FileAssetManager(
            settings.upload_dir,
            max_bytes=settings.max_upload_bytes,
            max_files=settings.max_upload_files,
        ),
        credentials=credentials,
        auth=AuthGate(
            credentials,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_in=timedelta(hours=settings.token_expire_hours),
        ),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_backend(context: AppContext = Depends(get_context)) -> ContentBackend:
    return context.backend


def get_assets(context: AppContext = Depends(get_context)) -> FileAssetManager:
    return context.assets


def get_auth_gate(context: AppContext = Depends(get_context)) -> AuthGate:
    return context.auth


def require_admin(
    authorization: Optional[str] = Header(None),
    auth: AuthGate = Depends(get_auth_gate),
) -> UserClaims:
    """
    The token is whatever follows the scheme word, whichever scheme it is.

    401 when there is no token, 403 when it does not verify.
    """
    _, token = get_authorization_scheme_param(authorization)
    token = token.strip() or None
    return auth.authorize(token)
