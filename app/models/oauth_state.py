from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.time import as_utc


class OAuthState(Base):
    """
    Single-use, time-bound state token binding an OAuth redirect to a tenant.

    Expiry is checked at read time against expires_at; a row that is past
    expiry is treated as absent even if it has not been deleted yet.
    """
    __tablename__ = "oauth_state"

    id = Column(String(64), primary_key=True)  # 256-bit random value, hex encoded
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)

    tenant = relationship("Tenant", back_populates="oauth_states")

    def is_expired(self, now: datetime) -> bool:
        return now >= as_utc(self.expires_at)
