from typing import Optional, Tuple
import redis
from sqlalchemy.orm import Session
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.tasks import TaskQueue, report_job_failure, task_queue as default_task_queue
from app.crud import tenant as tenant_crud
from app.models.tenant import Tenant, PaymentProvider
from app.models.user import User
from app.schemas.provisioning import (
    PROVISIONING_STEPS,
    CreateTenantRequest,
    CreateTenantResponse,
    ProvisioningStatus,
    ProvisioningStatusRecord,
)
from app.services.status_store import ProvisioningStatusStore, status_store as default_status_store


class ProvisioningService:
    """
    Service layer for tenant provisioning.

    Tenant and admin user are created synchronously inside one serializable
    transaction; the seed pipeline then runs as a detached RQ job and
    reports progress through the status store.
    """

    def __init__(
        self,
        status_store: Optional[ProvisioningStatusStore] = None,
        task_queue: Optional[TaskQueue] = None
    ):
        self.crud = tenant_crud
        self.status_store = status_store or default_status_store
        self.task_queue = task_queue or default_task_queue

    def create_tenant_with_user(
        self,
        db: Session,
        *,
        business_name: str,
        owner_email: str,
        owner_password: str,
        domain: str,
        base_currency: str = "USD",
        payment_provider: PaymentProvider = PaymentProvider.NONE
    ) -> Tuple[Tenant, User]:
        """
        Atomically create a tenant and its admin user.

        Args:
            db: Database session with no transaction in progress
            business_name: Tenant business name
            owner_email: Admin user email
            owner_password: Admin user password
            domain: Unique subdomain
            base_currency: ISO currency code
            payment_provider: Provider chosen at signup

        Returns:
            Tuple of (Tenant, User)

        Raises:
            ConflictError: If the domain or email is already taken
        """
        tenant, user = self.crud.create_with_user(
            db,
            business_name=business_name,
            email=owner_email,
            password=owner_password,
            domain=domain,
            base_currency=base_currency,
            payment_provider=payment_provider
        )
        logger.info(f"Created tenant {tenant.id} ({domain}) with admin user {user.id}")
        return tenant, user

    def start_seed_pipeline(self, tenant_id: int) -> Optional[str]:
        """Submit the seed pipeline for a tenant as a detached job."""
        return self.task_queue.submit(
            run_seed_pipeline_worker,
            tenant_id,
            description=f"Seed pipeline for tenant {tenant_id}",
            on_failure=report_seed_pipeline_failure
        )

    def create_tenant(self, db: Session, request: CreateTenantRequest) -> CreateTenantResponse:
        """
        Create a tenant and queue its seed pipeline.

        Returns immediately; provisioning progress is available from
        get_provisioning_status.
        """
        tenant, _ = self.create_tenant_with_user(
            db,
            business_name=request.business_name,
            owner_email=request.owner_email,
            owner_password=request.owner_password,
            domain=request.domain,
            base_currency=request.base_currency
        )

        self.status_store.set(tenant.id, ProvisioningStatusRecord(tenant_id=tenant.id))
        self.start_seed_pipeline(tenant.id)

        return CreateTenantResponse(tenant_id=tenant.id, status=ProvisioningStatus.PENDING)

    def get_provisioning_status(self, db: Session, tenant_id: int) -> ProvisioningStatusRecord:
        """
        Get the provisioning progress for a tenant.

        The status record expires an hour after its last write; an active
        tenant without a record is reported as READY. Anything else without
        a record is reported as PENDING, never as an error.
        """
        record = self.status_store.find(tenant_id)
        if record is not None:
            return record

        tenant = self.crud.get(db, tenant_id)
        if tenant is not None and tenant.is_active:
            ready = PROVISIONING_STEPS[ProvisioningStatus.READY]
            return ProvisioningStatusRecord(
                tenant_id=tenant_id,
                status=ready.status,
                progress=ready.progress,
                current_step=ready.label
            )

        return ProvisioningStatusRecord(tenant_id=tenant_id)

    def retry_provisioning(
        self,
        db: Session,
        tenant_id: int,
        request: CreateTenantRequest
    ) -> CreateTenantResponse:
        """
        Re-run the seed pipeline for a tenant that is not yet provisioned.

        Any status short of READY is reset, including an attempt stuck
        mid-step because its worker died. The pipeline restarts from the
        first step; every write is an upsert, so rows from an earlier
        attempt are reused rather than duplicated.

        Raises:
            NotFoundError: If the tenant does not exist
            ValidationError: If the request does not describe this tenant
        """
        tenant = self.crud.get(db, tenant_id)
        if tenant is None:
            raise NotFoundError(f"Tenant {tenant_id} not found")

        if request.domain != tenant.domain:
            raise ValidationError(f'Domain "{request.domain}" does not match tenant {tenant_id}')

        if tenant.is_active:
            logger.info(f"Retry requested for tenant {tenant_id}, which is already provisioned")
            return CreateTenantResponse(tenant_id=tenant_id, status=ProvisioningStatus.READY)

        self.status_store.restart(
            tenant_id,
            ProvisioningStatusRecord(
                tenant_id=tenant_id,
                status=ProvisioningStatus.PENDING,
                progress=0,
                current_step="Retrying provisioning..."
            )
        )
        self.start_seed_pipeline(tenant_id)
        logger.info(f"Retrying provisioning for tenant {tenant_id}")

        return CreateTenantResponse(tenant_id=tenant_id, status=ProvisioningStatus.PENDING)


def report_seed_pipeline_failure(job, connection, type, value, traceback):
    """
    rq failure callback for the seed job.

    Records FAILED for failures the pipeline cannot report itself, such as
    the job timeout interrupting a step, so the tenant can be retried.
    """
    report_job_failure(job, connection, type, value, traceback)
    tenant_id = job.args[0]
    try:
        default_status_store.fail(tenant_id, f"{getattr(type, '__name__', type)}: {value}")
    except (redis.exceptions.RedisError, InvalidTransitionError) as e:
        logger.error(f"Failed to record FAILED status for tenant {tenant_id}: {str(e)}")

def run_seed_pipeline_worker(tenant_id: int) -> str:
    """
    Worker function to run the seed pipeline.

    Runs in the RQ worker process with its own database session.

    Returns:
        Final provisioning status value
    """
    from app.database import SessionLocal
    from app.services.seed_data import seed_pipeline

    db = SessionLocal()
    try:
        logger.info(f"Worker started seed pipeline for tenant {tenant_id}")
        record = seed_pipeline.run(db, tenant_id)
        return record.status.value
    finally:
        db.close()


# Create singleton instance
provisioning_service = ProvisioningService()
