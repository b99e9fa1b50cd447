from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin


class Account(Base, TimestampMixin):
    """Chart of accounts entry, unique per tenant by code."""
    __tablename__ = "account"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_account_tenant_code"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    root_type = Column(String, nullable=False)  # Asset, Liability, Equity, Income, Expense
    account_type = Column(String, nullable=False)
    is_group = Column(Boolean, nullable=False, default=False)
    parent_account_id = Column(Integer, ForeignKey("account.id"), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    parent = relationship("Account", remote_side=[id])
