from typing import Any, Dict, Optional, Tuple
from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.exc import DBAPIError, IntegrityError
from app.core.exceptions import ConflictError
from app.core.logging_config import logger
from app.core.transitions import (
    ONBOARDING_STEP_TRANSITIONS,
    PAYMENT_STATUS_TRANSITIONS,
    ensure_transition,
)
from app.models.tenant import Tenant, OnboardingStep, PaymentProvider, PaymentProviderStatus
from app.models.user import User
from app.crud.user import user as user_crud

# SQLSTATE raised by PostgreSQL when a serializable transaction loses a race
SERIALIZATION_FAILURE = "40001"


def _is_serialization_failure(error: DBAPIError) -> bool:
    return getattr(error.orig, "pgcode", None) == SERIALIZATION_FAILURE


class CRUDTenant:
    """
    CRUD operations for Tenant model.

    Note: Tenant model doesn't have tenant_id (it IS the tenant),
    so we don't inherit from CRUDBase.
    """

    def __init__(self):
        self.model = Tenant

    def get(self, db: Session, tenant_id: int) -> Optional[Tenant]:
        stmt = select(Tenant).where(Tenant.id == tenant_id)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_by_domain(self, db: Session, domain: str) -> Optional[Tenant]:
        stmt = select(Tenant).where(Tenant.domain == domain)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def get_by_stripe_account(self, db: Session, account_id: str) -> Optional[Tenant]:
        stmt = select(Tenant).where(Tenant.stripe_connect_account_id == account_id)
        result = db.execute(stmt)
        return result.scalar_one_or_none()

    def create_with_user(
        self,
        db: Session,
        *,
        business_name: str,
        email: str,
        password: str,
        domain: str,
        base_currency: str = "USD",
        payment_provider: PaymentProvider = PaymentProvider.NONE
    ) -> Tuple[Tenant, User]:
        """
        Create a tenant and its initial admin user atomically.

        Both uniqueness checks and both inserts run inside one SERIALIZABLE
        transaction, so two concurrent signups for the same domain or email
        cannot both commit. The session must not have a transaction in
        progress.

        Args:
            db: Database session
            business_name: Tenant business name
            email: Admin user email (also the tenant owner email)
            password: Admin user password (will be hashed)
            domain: Unique tenant subdomain
            base_currency: ISO currency code
            payment_provider: Provider the tenant intends to connect

        Returns:
            Tuple of (created Tenant, created User)

        Raises:
            ConflictError: If the domain or email is taken, or a concurrent
                transaction won the race
        """
        try:
            with db.begin():
                db.connection(execution_options={"isolation_level": "SERIALIZABLE"})

                if self.get_by_domain(db, domain):
                    raise ConflictError(f'Domain "{domain}" is already taken')

                existing_owner = db.execute(
                    select(Tenant.id).where(Tenant.email == email)
                ).first()
                if existing_owner or user_crud.get_by_email(db, email=email):
                    raise ConflictError(f'Email "{email}" is already registered')

                tenant = Tenant(
                    name=business_name,
                    domain=domain,
                    email=email,
                    base_currency=base_currency,
                    is_active=False,  # Activated after seeding completes
                    payment_provider=payment_provider,
                    payment_provider_status=PaymentProviderStatus.NONE,
                    onboarding_step=OnboardingStep.PROVISIONING,
                )
                db.add(tenant)
                db.flush()  # Get tenant.id without committing

                # Committed together with the tenant
                user = user_crud.add_to_tenant(db, email=email, password=password, tenant_id=tenant.id)
        except IntegrityError as e:
            logger.warning(f"Signup for domain {domain} hit a unique constraint: {e.orig}")
            raise ConflictError(f'Domain "{domain}" or email "{email}" is already registered')
        except DBAPIError as e:
            if _is_serialization_failure(e):
                logger.warning(f"Signup for domain {domain} lost a serialization race")
                raise ConflictError(f'Domain "{domain}" or email "{email}" is already registered')
            raise

        db.refresh(tenant)
        db.refresh(user)
        return tenant, user

    def update(self, db: Session, *, tenant: Tenant, values: Dict[str, Any], commit: bool = True) -> Tenant:
        for field, value in values.items():
            setattr(tenant, field, value)
        db.add(tenant)
        if commit:
            db.commit()
            db.refresh(tenant)
        else:
            db.flush()
        return tenant

    def set_onboarding_step(
        self,
        db: Session,
        *,
        tenant: Tenant,
        step: OnboardingStep,
        commit: bool = True
    ) -> Tenant:
        """Move the onboarding step along its transition table."""
        ensure_transition(ONBOARDING_STEP_TRANSITIONS, tenant.onboarding_step, step, "onboarding step")
        return self.update(db, tenant=tenant, values={"onboarding_step": step}, commit=commit)

    def set_payment_status(
        self,
        db: Session,
        *,
        tenant: Tenant,
        status: PaymentProviderStatus,
        force: bool = False,
        commit: bool = True
    ) -> Tenant:
        """
        Move the payment provider status along its transition table.

        force=True skips the table; only provider revocation uses it.
        """
        if not force:
            ensure_transition(
                PAYMENT_STATUS_TRANSITIONS, tenant.payment_provider_status, status, "payment provider status"
            )
        return self.update(db, tenant=tenant, values={"payment_provider_status": status}, commit=commit)


# Create singleton instance
tenant = CRUDTenant()
