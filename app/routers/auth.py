from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.security import create_user_access_token
from app.core.logging_config import logger
from app.crud.user import user as user_crud
from app.schemas.user import LoginRequest, LoginResponse, UserResponse

router = APIRouter()


@router.post("/verify-credentials", response_model=LoginResponse)
def verify_credentials(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Log a tenant user in.

    Returns the user and a fresh JWT. Unverified email addresses may still
    log in; `email_verified` tells the client to show a reminder.

    Raises:
        HTTPException: 401 on bad credentials, 403 for a deactivated user
    """
    user = user_crud.authenticate(db, email=credentials.email, password=credentials.password)
    if user is None:
        logger.info(f"Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
        )

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Inactive user")

    return LoginResponse(
        user=UserResponse.model_validate(user),
        access_token=create_user_access_token(user)
    )
