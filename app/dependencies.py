from typing import Optional
from fastapi import Depends, Header, HTTPException, status, Request
from jose import JWTError
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.core.security import verify_token
from app.core.config import settings
from app.crud.user import user as user_crud


def _bearer_token(request: Request) -> Optional[str]:
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):]


async def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
) -> User:
    """
    Resolve the authenticated user from the Authorization Bearer header.

    The token's tenant claim must still match the user's tenant, so a token
    issued before a user moved tenants is rejected.

    Raises:
        HTTPException: 401 for a missing, invalid or stale token, 403 for an
            inactive user
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = _bearer_token(request)
    if token is None:
        raise credentials_exception

    try:
        claims = verify_token(token)
        user_id = int(claims["id"])
    except (JWTError, KeyError, TypeError, ValueError):
        raise credentials_exception

    user = user_crud.get(db, user_id)
    if user is None or claims.get("tenant_id") != user.tenant_id:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user"
        )

    return user


def verify_admin_key(api_key_header: str = Header(...)):
    """Guard for operator-only provisioning endpoints."""
    if api_key_header != settings.ADMIN_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid admin API key"
        )
