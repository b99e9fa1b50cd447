from typing import Optional
import secrets
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import ValidationError
from app.core.logging_config import logger
from app.crud import user as user_crud, email_verification_token as token_crud
from app.schemas.onboarding import VerifyEmailResponse
from app.utils.mailer import Mailer, mailer as default_mailer
from app.utils.time import as_utc, utcnow


class EmailVerificationService:
    """Issues and redeems email verification tokens for newly signed-up owners."""

    def __init__(self, mailer: Optional[Mailer] = None):
        self.mailer = mailer or default_mailer

    def send_verification_email(self, db: Session, user_id: int) -> bool:
        """
        Issue a new 24-hour token for the user and email the verification link.

        Unknown or already verified users are skipped. Earlier tokens are
        replaced.

        Returns:
            True if an email was sent
        """
        user = user_crud.get(db, user_id)
        if user is None:
            logger.warning(f"User {user_id} not found for verification email")
            return False

        if user.email_verified:
            return False

        token = token_crud.replace_for_user(db, user_id=user.id, token=secrets.token_hex(32))

        if not self.mailer.is_configured:
            logger.warning("SMTP not configured, skipping verification email")
            return False

        verify_url = f"{settings.FRONTEND_URL}/app/verify-email?token={token.token}"
        business_name = user.tenant.name if user.tenant else "your store"
        sent = self.mailer.send(
            recipients=[user.email],
            subject=f"Verify your email for {business_name}",
            text_body=(
                f"Welcome to {business_name}!\n\n"
                f"Please confirm your email address by opening the link below:\n{verify_url}\n\n"
                f"This link expires in 24 hours."
            ),
            html_body=(
                f"<p>Welcome to {business_name}!</p>"
                f"<p>Please confirm your email address: <a href=\"{verify_url}\">Verify email</a></p>"
                f"<p>This link expires in 24 hours.</p>"
            )
        )
        if sent:
            logger.info(f"Verification email sent to {user.email}")
        return sent

    def verify_email(self, db: Session, token: str) -> VerifyEmailResponse:
        """
        Redeem a verification token.

        Raises:
            ValidationError: If the token is unknown or has expired
        """
        record = token_crud.get_by_token(db, token)
        if record is None:
            raise ValidationError("Invalid or expired verification token")

        if as_utc(record.expires_at) < utcnow():
            token_crud.remove(db, token_id=record.id)
            raise ValidationError("Verification token has expired. Please request a new one.")

        user = record.user
        token_crud.remove_for_user(db, user_id=user.id, commit=False)
        user_crud.mark_email_verified(db, user=user)

        logger.info(f"Email verified for user {user.email}")
        return VerifyEmailResponse(success=True, email=user.email)


def send_verification_email_worker(user_id: int) -> bool:
    """Worker function sending the verification email with its own session."""
    from app.database import SessionLocal

    db = SessionLocal()
    try:
        return email_verification_service.send_verification_email(db, user_id)
    finally:
        db.close()


# Create singleton instance
email_verification_service = EmailVerificationService()
