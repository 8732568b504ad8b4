"""FastAPI dependency injection providers."""

from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from boardcore.db.session import async_session_factory


@dataclass(frozen=True)
class Caller:
    """Identity supplied by the upstream gateway. Trusted as-is."""

    user_id: int
    is_admin: bool = False


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The whole request is one transaction: committed on success, rolled back
    on any error (including version conflicts raised at flush).
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_optional_caller(
    x_user_id: Optional[int] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Optional[Caller]:
    """Return the caller identity, or None for anonymous requests."""
    if x_user_id is None:
        return None
    return Caller(user_id=x_user_id, is_admin=(x_user_role or "").lower() == "admin")


async def get_current_caller(
    caller: Optional[Caller] = Depends(get_optional_caller),
) -> Caller:
    """Like get_optional_caller but raises 401 when no identity is supplied."""
    if caller is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-User-Id header is required",
        )
    return caller


async def get_admin_caller(caller: Caller = Depends(get_current_caller)) -> Caller:
    if not caller.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="admin role required")
    return caller


def get_client_ip(request: Request) -> Optional[str]:
    """Client address: first X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client is not None:
        return request.client.host
    return None
