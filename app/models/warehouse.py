from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin


class Warehouse(Base, TimestampMixin):
    __tablename__ = "warehouse"
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_warehouse_tenant_code"),)

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Set after all locations exist; plain ids to avoid a warehouse <-> location FK cycle
    default_receiving_location_id = Column(Integer, nullable=True)
    default_picking_location_id = Column(Integer, nullable=True)

    locations = relationship("Location", back_populates="warehouse", cascade="all, delete-orphan")


class Location(Base, TimestampMixin):
    __tablename__ = "location"
    __table_args__ = (
        UniqueConstraint("tenant_id", "warehouse_id", "code", name="uq_location_tenant_warehouse_code"),
    )

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, ForeignKey("tenant.id", ondelete="CASCADE"), nullable=False, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouse.id", ondelete="CASCADE"), nullable=False)
    parent_id = Column(Integer, ForeignKey("location.id"), nullable=True)
    code = Column(String, nullable=False)
    name = Column(String, nullable=False)
    path = Column(String, nullable=False)
    is_pickable = Column(Boolean, nullable=False, default=True)
    is_putaway = Column(Boolean, nullable=False, default=True)
    is_staging = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    warehouse = relationship("Warehouse", back_populates="locations")
    parent = relationship("Location", remote_side=[id])
