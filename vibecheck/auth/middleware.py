"""Dashboard authentication: tenant API keys and the acting user."""

import hashlib
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from vibecheck.config import settings
from vibecheck.database import get_db
from vibecheck.models.tenant import Tenant
from vibecheck.storage.repositories import get_tenant_by_api_key_hash

API_KEY_HEADER = APIKeyHeader(name="Authorization", auto_error=False)
BEARER_PREFIX = "Bearer "
DEFAULT_ACTOR = "Admin"


def hash_api_key(api_key: str) -> str:
    """Salted SHA-256 of a tenant API key; only the hash is stored."""
    return hashlib.sha256(f"{settings.api_key_hash_salt}:{api_key}".encode()).hexdigest()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def bearer_api_key(auth_header: str | None) -> str:
    if not auth_header or not auth_header.startswith(BEARER_PREFIX):
        raise _unauthorized("Missing or invalid Authorization header")
    api_key = auth_header[len(BEARER_PREFIX):].strip()
    if not api_key:
        raise _unauthorized("Missing API key")
    return api_key


async def get_tenant_from_bearer(
    db: Annotated[AsyncSession, Depends(get_db)],
    auth_header: str | None = Depends(API_KEY_HEADER),
) -> Tenant:
    """Tenant owning the presented key; 401 without a key, 403 for an unknown one."""
    api_key = bearer_api_key(auth_header)
    tenant = await get_tenant_by_api_key_hash(db, hash_api_key(api_key))
    if tenant is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")
    return tenant


def get_actor(x_actor_email: Annotated[str | None, Header()] = None) -> str:
    """Dashboard user performing the action, recorded in task history."""
    return (x_actor_email or "").strip() or DEFAULT_ACTOR


TenantDep = Annotated[Tenant, Depends(get_tenant_from_bearer)]
ActorDep = Annotated[str, Depends(get_actor)]
