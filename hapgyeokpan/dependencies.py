"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header

from hapgyeokpan.auth import AuthClient, AuthUser, InMemoryAuthClient, SupabaseAuthClient
from hapgyeokpan.config import Settings, get_settings
from hapgyeokpan.db import DbClient, InMemoryDbClient
from hapgyeokpan.db_postgres import PostgresDbClient
from hapgyeokpan.errors import ADMIN_REQUIRED_MESSAGE, LOGIN_REQUIRED_MESSAGE, ApiError
from hapgyeokpan.storage import (
    InMemoryStorageClient,
    S3StorageClient,
    StorageClient,
    public_object_base,
)
from hapgyeokpan.validation import get_bearer_token

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "moderator")

_db_client: DbClient | None = None
_auth_client: AuthClient | None = None
_storage_client: StorageClient | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("DATABASE_URL not set; using in-memory database")
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_auth_client() -> AuthClient:
    global _auth_client
    if _auth_client:
        return _auth_client

    settings = get_settings()
    if (
        settings.use_in_memory_backends
        or not settings.supabase_url
        or not settings.supabase_anon_key
    ):
        logger.warning("Supabase auth not configured; using in-memory auth")
        _auth_client = InMemoryAuthClient()
    else:
        _auth_client = SupabaseAuthClient(
            url=settings.supabase_url,
            anon_key=settings.supabase_anon_key,
            service_role_key=settings.supabase_service_role_key,
        )
    return _auth_client


def storage_public_base_url(settings: Settings) -> Optional[str]:
    if settings.storage_public_base_url:
        return settings.storage_public_base_url
    if settings.supabase_url:
        return public_object_base(settings.supabase_url, settings.storage_bucket)
    return None


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.storage_endpoint:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.storage_bucket,
            endpoint=settings.storage_endpoint,
            access_key_id=settings.storage_access_key_id or "",
            secret_access_key=settings.storage_secret_access_key or "",
            region=settings.storage_region or "",
            public_base_url=storage_public_base_url(settings),
        )
    return _storage_client


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    auth: AuthClient = Depends(get_auth_client),
) -> Optional[AuthUser]:
    """Resolve the bearer token to a user, or None when absent or rejected."""
    token = get_bearer_token(authorization)
    if not token:
        return None
    return auth.get_user(token)


def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
    if not user:
        raise ApiError(status_code=401, detail=LOGIN_REQUIRED_MESSAGE)
    return user


def is_admin_user(db: DbClient, settings: Settings, user: AuthUser) -> bool:
    if db.has_any_role(user.id, ADMIN_ROLES):
        return True
    return bool(user.email) and user.email.lower() in settings.admin_email_list


def require_admin(
    user: AuthUser = Depends(require_user),
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
) -> AuthUser:
    if not is_admin_user(db, settings, user):
        logger.info("Admin access denied for user %s", user.id)
        raise ApiError(status_code=403, detail=ADMIN_REQUIRED_MESSAGE)
    return user
