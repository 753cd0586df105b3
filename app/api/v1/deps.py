"""
FastAPI dependencies — database session, auth guards and the request
context every company-scoped endpoint works from.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_access_token, is_service_role_key
from app.db.session import async_session_factory
from app.models.user import User

# auto_error=False so the HttpOnly cookie can be used when the header is missing
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and on behalf of which company / employee."""

    user: User
    company_id: int
    employee_id: int | None

    @property
    def is_admin(self) -> bool:
        return self.user.role == "admin"

    @property
    def is_supervisor(self) -> bool:
        return self.user.role in ("admin", "supervisor")


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode JWT from Header OR Cookie, look up user."""
    final_token = token
    if not final_token and access_token:
        final_token = access_token.removeprefix("Bearer ")

    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if not final_token:
        raise credentials_exc

    payload = decode_access_token(final_token)
    if payload is None or payload.get("sub") is None:
        raise credentials_exc

    result = await db.execute(select(User).where(User.id == int(payload["sub"])))
    user = result.scalar_one_or_none()
    if user is None:
        raise credentials_exc
    return user


async def get_current_active_user(
    current_user: User = Depends(get_current_user),
) -> User:
    """Reject inactive accounts."""
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user account")
    return current_user


async def get_request_context(
    current_user: User = Depends(get_current_active_user),
) -> RequestContext:
    return RequestContext(
        user=current_user,
        company_id=current_user.company_id,
        employee_id=current_user.employee_id,
    )


async def require_employee(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Only accounts linked to an employee profile may act on attendance."""
    if ctx.employee_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No employee profile is linked to this account",
        )
    return ctx


async def require_supervisor(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    if not ctx.is_supervisor:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Supervisor privileges required",
        )
    return ctx


async def require_admin(
    ctx: RequestContext = Depends(get_request_context),
) -> RequestContext:
    """Only allow admin role to proceed."""
    if not ctx.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return ctx


# ── Scheduler trigger ───────────────────────────────────────────────
async def require_service_role(
    authorization: Optional[str] = Header(default=None),
) -> None:
    """Batch triggers must present ``Authorization: Bearer <SERVICE_ROLE_KEY>``."""
    key = None
    if authorization and authorization.lower().startswith("bearer "):
        key = authorization[7:].strip()
    if not is_service_role_key(key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Service role credentials required",
        )
