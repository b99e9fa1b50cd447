from typing import Optional
from sqlalchemy.orm import Session
from sqlalchemy import select
from app.models.user import User
from app.core.security import get_password_hash, verify_password
from app.utils.time import utcnow


class CRUDUser:
    """
    CRUD operations for tenant users.

    Users are looked up globally by email (login, signup uniqueness), so this
    class does not go through the tenant-scoped CRUDBase.
    """

    def __init__(self):
        self.model = User

    def get(self, db: Session, user_id: int) -> Optional[User]:
        return db.get(User, user_id)

    def get_by_email(self, db: Session, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        return db.execute(stmt).scalar_one_or_none()

    def get_in_tenant(self, db: Session, user_id: int, tenant_id: int) -> Optional[User]:
        """Return the user only when it belongs to the given tenant."""
        stmt = select(User).where(User.id == user_id, User.tenant_id == tenant_id)
        return db.execute(stmt).scalar_one_or_none()

    def authenticate(self, db: Session, *, email: str, password: str) -> Optional[User]:
        """
        Look up a user by email and check the password.

        Returns:
            The user when the credentials match, otherwise None. Inactive
            users are returned; the caller decides how to reject them.
        """
        user = self.get_by_email(db, email=email)
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    def add_to_tenant(
        self,
        db: Session,
        *,
        email: str,
        password: str,
        tenant_id: int,
        role: str = "admin"
    ) -> User:
        """
        Stage a new user inside the caller's transaction.

        The row is flushed, not committed, so a unique-email violation
        surfaces in the caller's transaction and rolls back with it.

        Args:
            db: Database session with an open transaction
            email: Login email
            password: Plain text password (stored as a bcrypt hash)
            tenant_id: Owning tenant
            role: Role within the tenant

        Returns:
            The flushed User with its id assigned
        """
        db_user = User(
            email=email,
            hashed_password=get_password_hash(password),
            tenant_id=tenant_id,
            role=role,
            is_active=True
        )
        db.add(db_user)
        db.flush()
        return db_user

    def mark_email_verified(self, db: Session, *, user: User) -> User:
        user.email_verified = True
        user.email_verified_at = utcnow()
        db.add(user)
        db.commit()
        db.refresh(user)
        return user


# Create singleton instance
user = CRUDUser()
