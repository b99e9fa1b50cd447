from typing import Optional
from sqlalchemy.orm import Session
from app.core.exceptions import NotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.security import create_user_access_token
from app.core.tasks import TaskQueue, task_queue as default_task_queue
from app.crud import tenant as tenant_crud
from app.models.tenant import OnboardingStep, PaymentProvider, PaymentProviderStatus
from app.schemas.onboarding import (
    CompleteOnboardingResponse,
    OnboardingStatusResponse,
    SignupRequest,
    SignupResponse,
)
from app.schemas.provisioning import ProvisioningStatus
from app.services.email_verification import send_verification_email_worker
from app.services.payment_reconciliation import PaymentReconciliationService, payment_reconciliation_service
from app.services.provisioning import ProvisioningService, provisioning_service
from app.utils.time import utcnow


class OnboardingService:
    """
    Service layer for self-service tenant onboarding.

    Ties signup, provisioning progress and payment provider status together
    into the flow a new merchant walks through.
    """

    def __init__(
        self,
        provisioning: Optional[ProvisioningService] = None,
        reconciliation: Optional[PaymentReconciliationService] = None,
        task_queue: Optional[TaskQueue] = None
    ):
        self.provisioning = provisioning or provisioning_service
        self.reconciliation = reconciliation or payment_reconciliation_service
        self.task_queue = task_queue or default_task_queue

    def signup(self, db: Session, request: SignupRequest) -> SignupResponse:
        """
        Create a tenant and its owner, then start provisioning.

        The tenant and user are committed before anything else happens, so
        the returned token is always usable. Seeding and the verification
        email run as detached jobs; failing to enqueue them is logged only.

        Args:
            db: Database session with no transaction in progress
            request: Signup details

        Returns:
            SignupResponse with the tenant id and an access token

        Raises:
            ConflictError: If the subdomain or email is already taken
        """
        tenant, user = self.provisioning.create_tenant_with_user(
            db,
            business_name=request.business_name,
            owner_email=request.email,
            owner_password=request.password,
            domain=request.subdomain,
            base_currency=request.base_currency,
            payment_provider=request.payment_provider
        )

        access_token = create_user_access_token(user)

        self.provisioning.start_seed_pipeline(tenant.id)
        self.task_queue.submit(
            send_verification_email_worker,
            user.id,
            description=f"Verification email for user {user.id}"
        )

        logger.info(f"Tenant {tenant.id} signed up with {request.payment_provider.value}")
        return SignupResponse(tenant_id=tenant.id, access_token=access_token)

    def get_status(self, db: Session, tenant_id: int) -> OnboardingStatusResponse:
        """
        Get the combined onboarding, provisioning and payment status.

        A Stripe tenant still waiting on its account is polled directly, in
        case a webhook was missed. Poll failures fall back to the cached
        values.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = tenant_crud.get(db, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")

        provisioning = self.provisioning.get_provisioning_status(db, tenant_id)

        if (
            tenant.payment_provider == PaymentProvider.STRIPE
            and tenant.stripe_connect_account_id
            and tenant.payment_provider_status != PaymentProviderStatus.ACTIVE
        ):
            try:
                self.reconciliation.refresh_payment_status(db, tenant_id)
            except Exception as e:
                db.rollback()
                logger.warning(f"Could not refresh Stripe status for tenant {tenant_id}: {e}")

        return OnboardingStatusResponse(
            tenant_id=tenant.id,
            business_name=tenant.name,
            subdomain=tenant.domain,
            onboarding_step=tenant.onboarding_step,
            provisioning_status=provisioning.status,
            provisioning_progress=provisioning.progress,
            current_step=provisioning.current_step,
            provisioning_error=provisioning.error,
            payment_provider=tenant.payment_provider,
            payment_provider_status=tenant.payment_provider_status,
            stripe_charges_enabled=bool(tenant.stripe_charges_enabled),
            stripe_payouts_enabled=bool(tenant.stripe_payouts_enabled),
            stripe_details_submitted=bool(tenant.stripe_details_submitted),
            square_merchant_id=tenant.square_merchant_id,
            onboarding_completed_at=tenant.onboarding_completed_at
        )

    def complete_onboarding(self, db: Session, tenant_id: int) -> CompleteOnboardingResponse:
        """
        Mark onboarding as complete.

        Raises:
            NotFoundError: If the tenant does not exist
            ValidationError: If provisioning has not finished, or the chosen
                payment provider is not active yet
        """
        tenant = tenant_crud.get(db, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")

        provisioning = self.provisioning.get_provisioning_status(db, tenant_id)
        if provisioning.status != ProvisioningStatus.READY:
            raise ValidationError("Provisioning is not yet complete")

        if (
            tenant.payment_provider != PaymentProvider.NONE
            and tenant.payment_provider_status != PaymentProviderStatus.ACTIVE
        ):
            raise ValidationError("Payment provider must be fully configured before completing onboarding")

        tenant_crud.set_onboarding_step(db, tenant=tenant, step=OnboardingStep.COMPLETED, commit=False)
        if tenant.onboarding_completed_at is None:
            tenant_crud.update(db, tenant=tenant, values={"onboarding_completed_at": utcnow()}, commit=False)
        db.commit()

        logger.info(f"Tenant {tenant_id} completed onboarding")
        return CompleteOnboardingResponse(success=True)


# Create singleton instance
onboarding_service = OnboardingService()
