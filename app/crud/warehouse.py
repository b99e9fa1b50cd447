from typing import Optional
from sqlalchemy.orm import Session
from app.crud.base import CRUDBase
from app.models.warehouse import Warehouse, Location


class CRUDWarehouse(CRUDBase[Warehouse]):
    unique_fields = ("tenant_id", "code")

    def set_default_locations(
        self,
        db: Session,
        *,
        warehouse: Warehouse,
        receiving_location_id: Optional[int],
        picking_location_id: Optional[int]
    ) -> Warehouse:
        """
        Point the warehouse at its default receiving/picking locations.

        Does NOT commit - leaves transaction control to callers.
        """
        warehouse.default_receiving_location_id = receiving_location_id
        warehouse.default_picking_location_id = picking_location_id
        db.add(warehouse)
        db.flush()
        return warehouse


class CRUDLocation(CRUDBase[Location]):
    unique_fields = ("tenant_id", "warehouse_id", "code")


# Create singleton instances
warehouse = CRUDWarehouse(Warehouse)
location = CRUDLocation(Location)
