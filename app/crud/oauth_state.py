from datetime import datetime, timedelta, timezone
from typing import Optional
from sqlalchemy import delete, select
from sqlalchemy.orm import Session
from app.models.oauth_state import OAuthState

# OAuth redirects must come back within this window
OAUTH_STATE_TTL = timedelta(minutes=10)


class CRUDOAuthState:
    """CRUD operations for single-use OAuth state tokens."""

    def __init__(self):
        self.model = OAuthState

    def get(self, db: Session, state: str) -> Optional[OAuthState]:
        stmt = select(OAuthState).where(OAuthState.id == state)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def create(self, db: Session, *, state: str, tenant_id: int, now: Optional[datetime] = None) -> OAuthState:
        now = now or datetime.now(timezone.utc)
        db_state = OAuthState(id=state, tenant_id=tenant_id, expires_at=now + OAUTH_STATE_TTL)
        db.add(db_state)
        db.commit()
        db.refresh(db_state)
        return db_state

    def remove(self, db: Session, *, state: str) -> bool:
        """
        Delete a state token.

        Returns:
            True if a row was deleted, False if it was already gone
        """
        result = db.execute(delete(OAuthState).where(OAuthState.id == state))
        db.commit()
        return result.rowcount > 0

    def claim(self, db: Session, state: str) -> Optional[OAuthState]:
        """
        Consume a state token so at most one callback can use it.

        Returns:
            The detached state as it was before deletion, or None if it is
            unknown or a concurrent request deleted it first
        """
        db_state = self.get(db, state)
        if db_state is None:
            return None
        db.expunge(db_state)  # Keep its values readable after the delete commits
        if not self.remove(db, state=state):
            return None
        return db_state


# Create singleton instance
oauth_state = CRUDOAuthState()
