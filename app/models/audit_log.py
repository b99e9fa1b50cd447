from sqlalchemy import Column, Integer, String, ForeignKey, JSON
from app.database import Base, TimestampMixin


class AuditLog(Base, TimestampMixin):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    event_key = Column(String, unique=True, nullable=False)  # Makes one-off entries idempotent
    action = Column(String, nullable=False)
    doc_type = Column(String, nullable=False)
    doc_name = Column(String, nullable=False)
    meta = Column(JSON, nullable=True)
