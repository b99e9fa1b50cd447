from sqlalchemy import Column, Integer, String, Boolean
from app.database import Base, TimestampMixin


class Uom(Base, TimestampMixin):
    """Unit of measure. Global, shared by every tenant."""
    __tablename__ = "uom"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
