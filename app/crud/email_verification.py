from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from app.models.email_verification import EmailVerificationToken

VERIFICATION_TOKEN_TTL = timedelta(hours=24)


class CRUDEmailVerificationToken:
    """CRUD operations for email verification tokens."""

    def __init__(self):
        self.model = EmailVerificationToken

    def get_by_token(self, db: Session, token: str) -> Optional[EmailVerificationToken]:
        stmt = select(EmailVerificationToken).where(EmailVerificationToken.token == token)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def replace_for_user(self, db: Session, *, user_id: int, token: str) -> EmailVerificationToken:
        """
        Issue a fresh token for a user, dropping any earlier ones.

        Args:
            db: Database session
            user_id: User the token verifies
            token: Random token value

        Returns:
            Created EmailVerificationToken instance
        """
        db.execute(delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user_id))
        db_token = EmailVerificationToken(
            user_id=user_id,
            token=token,
            expires_at=datetime.now(timezone.utc) + VERIFICATION_TOKEN_TTL
        )
        db.add(db_token)
        db.commit()
        db.refresh(db_token)
        return db_token

    def remove(self, db: Session, *, token_id: int) -> None:
        db.execute(delete(EmailVerificationToken).where(EmailVerificationToken.id == token_id))
        db.commit()

    def remove_for_user(self, db: Session, *, user_id: int, commit: bool = True) -> None:
        db.execute(delete(EmailVerificationToken).where(EmailVerificationToken.user_id == user_id))
        if commit:
            db.commit()


# Create singleton instance
email_verification_token = CRUDEmailVerificationToken()
