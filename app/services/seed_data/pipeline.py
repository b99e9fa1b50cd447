from datetime import datetime, timezone
from typing import Dict, Optional
import time
import traceback
from sqlalchemy.orm import Session
from app.core.logging_config import logger
from app.crud import (
    tenant as tenant_crud,
    account as account_crud,
    warehouse as warehouse_crud,
    location as location_crud,
    uom as uom_crud,
    doc_type as doc_type_crud,
    doc_perm as doc_perm_crud,
    audit_log as audit_log_crud,
)
from app.schemas.provisioning import PROVISIONING_STEPS, ProvisioningStatus, ProvisioningStatusRecord
from app.services.status_store import ProvisioningStatusStore, status_store as default_status_store
from app.services.seed_data.defaults import (
    DEFAULT_CHART_OF_ACCOUNTS,
    DEFAULT_WAREHOUSE,
    DEFAULT_LOCATIONS,
    DEFAULT_RECEIVING_LOCATION,
    DEFAULT_PICKING_LOCATION,
    DEFAULT_UOMS,
    DEFAULT_DOC_TYPES,
)


class SeedPipeline:
    """
    Seeds the reference data a freshly created tenant needs.

    Every write is an upsert keyed by a natural unique key, so the whole
    pipeline can be re-run from the first step after a failure without
    duplicating rows. Each step commits on its own; a failure leaves the
    earlier steps' rows in place.
    """

    def __init__(self, status_store: Optional[ProvisioningStatusStore] = None):
        self.status_store = status_store or default_status_store

    def seed_accounts(self, db: Session, tenant_id: int) -> int:
        """
        Seed the default chart of accounts.

        Parents are listed before children, so each parent's id is resolved
        from the accounts written earlier in the same pass.

        Returns:
            Number of accounts in the default chart
        """
        ids_by_code: Dict[str, int] = {}
        for code, name, root_type, account_type, is_group, parent_code in DEFAULT_CHART_OF_ACCOUNTS:
            account = account_crud.upsert(
                db,
                values={
                    "tenant_id": tenant_id,
                    "code": code,
                    "name": name,
                    "root_type": root_type,
                    "account_type": account_type,
                    "is_group": is_group,
                    "parent_account_id": ids_by_code.get(parent_code) if parent_code else None,
                    "is_active": True,
                }
            )
            ids_by_code[code] = account.id

        logger.debug(f"Seeded {len(DEFAULT_CHART_OF_ACCOUNTS)} accounts for tenant {tenant_id}")
        return len(DEFAULT_CHART_OF_ACCOUNTS)

    def seed_warehouse(self, db: Session, tenant_id: int) -> int:
        """
        Seed the main warehouse and its location tree.

        Default receiving/picking locations are set only after every location
        exists.

        Returns:
            Number of locations in the default layout
        """
        warehouse = warehouse_crud.upsert(
            db,
            values={
                "tenant_id": tenant_id,
                "code": DEFAULT_WAREHOUSE["code"],
                "name": DEFAULT_WAREHOUSE["name"],
                "is_active": True,
            }
        )

        ids_by_code: Dict[str, int] = {}
        for code, name, path, parent_code, is_pickable, is_putaway, is_staging in DEFAULT_LOCATIONS:
            location = location_crud.upsert(
                db,
                values={
                    "tenant_id": tenant_id,
                    "warehouse_id": warehouse.id,
                    "code": code,
                    "name": name,
                    "path": path,
                    "parent_id": ids_by_code.get(parent_code) if parent_code else None,
                    "is_pickable": is_pickable,
                    "is_putaway": is_putaway,
                    "is_staging": is_staging,
                    "is_active": True,
                }
            )
            ids_by_code[code] = location.id

        warehouse_crud.set_default_locations(
            db,
            warehouse=warehouse,
            receiving_location_id=ids_by_code.get(DEFAULT_RECEIVING_LOCATION),
            picking_location_id=ids_by_code.get(DEFAULT_PICKING_LOCATION)
        )

        logger.debug(f"Seeded warehouse with {len(DEFAULT_LOCATIONS)} locations for tenant {tenant_id}")
        return len(DEFAULT_LOCATIONS)

    def seed_uoms(self, db: Session) -> int:
        """Seed global units of measure (shared by all tenants)."""
        for code, name in DEFAULT_UOMS:
            uom_crud.upsert(db, values={"code": code, "name": name, "is_active": True})

        logger.debug(f"Seeded {len(DEFAULT_UOMS)} UOMs")
        return len(DEFAULT_UOMS)

    def seed_defaults(self, db: Session, tenant_id: int) -> int:
        """
        Seed global document types with their role permissions, then record
        a single "tenant provisioned" audit entry for the tenant.

        Returns:
            Number of document types in the default set
        """
        for doc in DEFAULT_DOC_TYPES:
            doc_type_crud.upsert(
                db,
                values={
                    "name": doc["name"],
                    "module": doc["module"],
                    "is_single": doc.get("is_single", False),
                    "is_child": doc.get("is_child", False),
                    "description": doc.get("description"),
                }
            )
            for role, flags in doc["permissions"].items():
                doc_perm_crud.upsert(
                    db,
                    values={
                        "id": f"{doc['name']}-{role}",
                        "doc_type_name": doc["name"],
                        "role": role,
                        **flags,
                    }
                )

        audit_log_crud.upsert(
            db,
            values={
                "event_key": f"tenant_provisioned:{tenant_id}",
                "tenant_id": tenant_id,
                "action": "CREATE",
                "doc_type": "Tenant",
                "doc_name": str(tenant_id),
                "meta": {
                    "event": "tenant_provisioned",
                    "timestamp": datetime.now(timezone.utc).isoformat(),
                },
            }
        )

        logger.debug(f"Seeded defaults for tenant {tenant_id}")
        return len(DEFAULT_DOC_TYPES)

    def _enter_step(self, tenant_id: int, status: ProvisioningStatus) -> None:
        step = PROVISIONING_STEPS[status]
        self.status_store.advance(
            tenant_id,
            ProvisioningStatusRecord(
                tenant_id=tenant_id,
                status=step.status,
                progress=step.progress,
                current_step=step.label,
            )
        )

    def run(self, db: Session, tenant_id: int) -> ProvisioningStatusRecord:
        """
        Run every seeding step for a tenant and publish progress.

        On success the tenant is activated and the status becomes READY.
        On any failure the status becomes FAILED (progress kept at the
        failing step), the tenant is deactivated and the error is logged.
        Errors are not re-raised: the status record is the outcome.

        Args:
            db: Database session owned by the caller
            tenant_id: Tenant to seed

        Returns:
            The final status record (READY or FAILED)
        """
        current = self.status_store.get(tenant_id)
        tenant = tenant_crud.get(db, tenant_id)
        if current.status == ProvisioningStatus.READY and tenant is not None and tenant.is_active:
            logger.info(f"Tenant {tenant_id} is already provisioned, skipping seed pipeline")
            return current

        start_time = time.monotonic()
        try:
            # Tenant and admin user are created synchronously before the pipeline
            # is submitted; these steps only confirm they are in place.
            self._enter_step(tenant_id, ProvisioningStatus.CREATING_TENANT)
            if tenant is None:
                raise LookupError(f"Tenant {tenant_id} not found")

            self._enter_step(tenant_id, ProvisioningStatus.CREATING_USER)
            if not tenant.users:
                raise LookupError(f"Tenant {tenant_id} has no admin user")

            self._enter_step(tenant_id, ProvisioningStatus.SEEDING_ACCOUNTS)
            self.seed_accounts(db, tenant_id)
            db.commit()

            self._enter_step(tenant_id, ProvisioningStatus.SEEDING_WAREHOUSE)
            self.seed_warehouse(db, tenant_id)
            db.commit()

            self._enter_step(tenant_id, ProvisioningStatus.SEEDING_UOMS)
            self.seed_uoms(db)
            db.commit()

            self._enter_step(tenant_id, ProvisioningStatus.SEEDING_DEFAULTS)
            self.seed_defaults(db, tenant_id)
            db.commit()

            tenant_crud.update(db, tenant=tenant, values={"is_active": True})

            ready = PROVISIONING_STEPS[ProvisioningStatus.READY]
            record = self.status_store.advance(
                tenant_id,
                ProvisioningStatusRecord(
                    tenant_id=tenant_id,
                    status=ready.status,
                    progress=ready.progress,
                    current_step=ready.label,
                    completed_at=datetime.now(timezone.utc),
                )
            )
            logger.info(
                f"Tenant {tenant_id} provisioned successfully in {time.monotonic() - start_time:.1f}s"
            )
            return record

        except Exception as e:
            logger.error(f"Provisioning failed for tenant {tenant_id}: {str(e)}")
            logger.error(traceback.format_exc())
            db.rollback()
            return self._mark_failed(db, tenant_id, e)

    def _mark_failed(self, db: Session, tenant_id: int, error: Exception) -> ProvisioningStatusRecord:
        failed = self.status_store.get(tenant_id).model_copy(
            update={
                "status": ProvisioningStatus.FAILED,
                "current_step": "Provisioning failed",
                "error": str(error) or error.__class__.__name__,
                "completed_at": None,
            }
        )
        try:
            self.status_store.advance(tenant_id, failed)
        except Exception as update_error:
            logger.error(f"Failed to record FAILED status for tenant {tenant_id}: {str(update_error)}")

        try:
            tenant = tenant_crud.get(db, tenant_id)
            if tenant is not None:
                tenant_crud.update(db, tenant=tenant, values={"is_active": False})
        except Exception as update_error:
            db.rollback()
            logger.error(f"Failed to deactivate tenant {tenant_id}: {str(update_error)}")

        return failed


# Create singleton instance
seed_pipeline = SeedPipeline()
