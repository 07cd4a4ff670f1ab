"""
FastAPI dependencies.

Key patterns:
1. Shared clients live in the Services container built by the app lifespan
2. Owner-scoped queries: every item store call takes the LINE user id
3. Admin routes require a bearer token equal to the configured admin secret

Owners are identified by the LINE user id the LIFF front end sends along
with each request; the store enforces that scoping at the SQL level.
"""

import hmac
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.db.session import get_db
from app.services.container import Services
from app.services.item_store import ItemStore

settings = get_settings()


# =============================================================================
# SERVICE DEPENDENCIES
# =============================================================================


def get_services(request: Request) -> Services:
    """The Services container created in the lifespan."""
    return request.app.state.services


async def get_item_store(db: Annotated[AsyncSession, Depends(get_db)]) -> ItemStore:
    """Item store bound to the request's database session."""
    return ItemStore(db)


# Type aliases for dependency injection
ServicesDep = Annotated[Services, Depends(get_services)]
StoreDep = Annotated[ItemStore, Depends(get_item_store)]


# =============================================================================
# ADMIN AUTHORIZATION
# =============================================================================


async def require_admin(
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    """
    Check ``Authorization: Bearer <admin secret>``.

    Raises 401 when the header is missing or wrong, and always when no admin
    secret is configured.
    """
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )

    admin_secret = get_settings().admin_secret
    if not admin_secret or not authorization:
        raise unauthorized

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise unauthorized

    if not hmac.compare_digest(parts[1].encode("utf-8"), admin_secret.encode("utf-8")):
        raise unauthorized


AdminOnly = Depends(require_admin)


# =============================================================================
# REQUEST HELPERS
# =============================================================================


def require_user_id(user_id: str | None) -> str:
    """400 unless an owner id was supplied."""
    if not user_id or not user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId is required",
        )
    return user_id.strip()


def split_tags(tags: str | None) -> list[str] | None:
    """Comma-separated ``tags`` query parameter to a list."""
    if not tags:
        return None
    parsed = [tag.strip() for tag in tags.split(",") if tag.strip()]
    return parsed or None
