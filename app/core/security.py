from typing import Optional
from datetime import timedelta
from jose import jwt
import bcrypt
from app.core.config import settings
from app.utils.time import utcnow


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Encode claims into a signed JWT.

    Args:
        claims: Token payload
        expires_delta: Lifetime of the token. Defaults to
            ACCESS_TOKEN_EXPIRE_MINUTES.

    Returns:
        Encoded JWT string
    """
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {**claims, "exp": utcnow() + lifetime}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_user_access_token(user) -> str:
    """Issue the session token returned by signup and login."""
    return create_access_token(
        {
            "id": str(user.id),
            "email": user.email,
            "tenant_id": user.tenant_id,
        }
    )


def verify_token(token: str) -> dict:
    """
    Decode a JWT and return its claims.

    Raises:
        JWTError: If the signature is invalid or the token has expired
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
