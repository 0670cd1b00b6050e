from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import decode_token
from app.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Annotated[AsyncSession, Depends(get_session)],
):
    """Validate JWT and return the User ORM object."""
    credentials_exc = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        if payload.get("type") != "access":
            raise credentials_exc
        user_id: str = payload.get("sub")
        if not user_id:
            raise credentials_exc
        user_uuid = UUID(user_id)
    except (JWTError, ValueError):
        raise credentials_exc

    from app.models.user import User

    result = await db.execute(select(User).where(User.id == user_uuid, User.deleted_at.is_(None)))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise credentials_exc
    return user


def require_role(*roles: str):
    """Dependency factory — raises 403 if user role not in allowed list."""
    async def check(user=Depends(get_current_user)):
        if user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{user.role}' is not permitted for this action.",
            )
        return user
    return check


async def get_company_for_user(db: AsyncSession, user_id: UUID):
    """Tenant lookup: the company owned by this user, or None."""
    from app.models.company import Company

    result = await db.execute(select(Company).where(Company.user_id == user_id))
    return result.scalar_one_or_none()


def get_request_messages(
    accept_language: Annotated[str | None, Header()] = None,
):
    """Message catalogue in the caller's language."""
    from app.services.messages import get_messages

    return get_messages(accept_language)


async def require_company(db: AsyncSession, user, messages):
    """Tenant scope for company-only endpoints; 404 when the user owns no company."""
    company = await get_company_for_user(db, user.id)
    if company is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=messages("company_not_found"))
    return company
