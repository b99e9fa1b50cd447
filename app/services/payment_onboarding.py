from datetime import datetime, timedelta
from typing import Optional
import secrets
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.encryption import TokenCipher, token_cipher as default_cipher
from app.core.exceptions import (
    ExternalProviderError,
    ForbiddenError,
    InvalidOAuthStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.transitions import PAYMENT_STATUS_TRANSITIONS, can_transition
from app.crud import tenant as tenant_crud, user as user_crud, oauth_state as oauth_state_crud
from app.models.tenant import Tenant, OnboardingStep, PaymentProvider, PaymentProviderStatus
from app.schemas.onboarding import PaymentInitiateResponse
from app.services.payment_providers import (
    SquareOAuthClient,
    StripeConnectClient,
    square_oauth_client,
    stripe_connect_client,
)
from app.utils.time import as_utc, utcnow

# Access tokens expiring sooner than this are refreshed before use
TOKEN_REFRESH_THRESHOLD = timedelta(hours=1)


class PaymentOnboardingService:
    """
    Service layer for connecting a tenant to its payment provider.

    Stripe tenants are sent to a hosted Express onboarding link; Square
    tenants go through an OAuth2 authorization-code redirect whose state
    token is stored server-side and consumed exactly once.
    """

    def __init__(
        self,
        stripe_client: Optional[StripeConnectClient] = None,
        square_client: Optional[SquareOAuthClient] = None,
        cipher: Optional[TokenCipher] = None
    ):
        self.stripe = stripe_client or stripe_connect_client
        self.square = square_client or square_oauth_client
        self.cipher = cipher or default_cipher

    def _get_tenant(self, db: Session, tenant_id: int) -> Tenant:
        tenant = tenant_crud.get(db, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")
        return tenant

    def initiate(self, db: Session, tenant_id: int, user_id: int) -> PaymentInitiateResponse:
        """
        Start payment provider onboarding and return the URL to redirect to.

        Args:
            db: Database session
            tenant_id: Tenant being onboarded
            user_id: Authenticated user starting the flow

        Returns:
            PaymentInitiateResponse with the provider URL

        Raises:
            NotFoundError: If the tenant does not exist
            ForbiddenError: If the user is not a member of the tenant
            ValidationError: If no provider is configured or access was revoked
        """
        tenant = self._get_tenant(db, tenant_id)

        user = user_crud.get_in_tenant(db, user_id=user_id, tenant_id=tenant_id)
        if user is None:
            raise ForbiddenError()

        if tenant.payment_provider == PaymentProvider.NONE:
            raise ValidationError("No payment provider configured")

        if tenant.payment_provider_status == PaymentProviderStatus.DISABLED:
            raise ValidationError("Payment provider access has been revoked")

        if tenant.payment_provider == PaymentProvider.STRIPE:
            url = self._initiate_stripe(db, tenant, user.email)
        else:
            url = self._initiate_square(db, tenant)

        if tenant.onboarding_step == OnboardingStep.PROVISIONING:
            tenant_crud.set_onboarding_step(db, tenant=tenant, step=OnboardingStep.PAYMENT)

        logger.info(f"Initiated {tenant.payment_provider.value} onboarding for tenant {tenant_id}")
        return PaymentInitiateResponse(url=url, provider=tenant.payment_provider)

    def _mark_onboarding(self, db: Session, tenant: Tenant, values: dict) -> None:
        if tenant.payment_provider_status == PaymentProviderStatus.NONE:
            values["payment_provider_status"] = PaymentProviderStatus.ONBOARDING
        tenant_crud.update(db, tenant=tenant, values=values)

    def _initiate_stripe(self, db: Session, tenant: Tenant, email: str) -> str:
        account_id = tenant.stripe_connect_account_id
        if not account_id:
            account_id = self.stripe.create_express_account(
                tenant_id=tenant.id,
                email=email,
                business_name=tenant.name
            )
            # Stored before the link is requested so a failed link call reuses this account
            self._mark_onboarding(db, tenant, {"stripe_connect_account_id": account_id})
        elif tenant.payment_provider_status == PaymentProviderStatus.NONE:
            self._mark_onboarding(db, tenant, {})

        return self.stripe.create_onboarding_link(
            account_id,
            return_url=f"{settings.FRONTEND_URL}/onboarding/{tenant.id}/complete?provider=stripe",
            refresh_url=f"{settings.FRONTEND_URL}/onboarding/{tenant.id}"
        )

    def _initiate_square(self, db: Session, tenant: Tenant) -> str:
        state = secrets.token_hex(32)
        # Fails with ConfigurationError before anything is stored
        url = self.square.authorization_url(state)

        oauth_state_crud.create(db, state=state, tenant_id=tenant.id)
        self._mark_onboarding(db, tenant, {})
        return url

    def handle_square_callback(
        self,
        db: Session,
        code: str,
        state: str,
        now: Optional[datetime] = None
    ) -> int:
        """
        Complete the Square OAuth flow.

        The state token is claimed (deleted) before anything else happens,
        so concurrent callbacks carrying the same state exchange the code at
        most once. Expiry and provider failure therefore also consume it.

        Args:
            db: Database session
            code: Authorization code from Square
            state: State token echoed back by Square
            now: Current time (tests pin it)

        Returns:
            The tenant id the state was issued for

        Raises:
            InvalidOAuthStateError: If the state is unknown, expired or its tenant is gone
            ExternalProviderError: If the token exchange or merchant lookup fails
        """
        now = now or utcnow()

        oauth_state = oauth_state_crud.claim(db, state)
        if oauth_state is None:
            raise InvalidOAuthStateError("Invalid or expired OAuth state")

        tenant_id = oauth_state.tenant_id
        if oauth_state.is_expired(now):
            raise InvalidOAuthStateError("OAuth state expired, please try again")

        tenant = tenant_crud.get(db, tenant_id)
        if tenant is None:
            raise InvalidOAuthStateError("Invalid tenant")

        try:
            if not can_transition(
                PAYMENT_STATUS_TRANSITIONS, tenant.payment_provider_status, PaymentProviderStatus.ACTIVE
            ):
                raise InvalidTransitionError(
                    f"Cannot connect Square while payment status is {tenant.payment_provider_status.value}"
                )

            tokens = self.square.exchange_code(code)
            merchant = self.square.fetch_merchant(tokens.access_token)

            values = {
                "square_access_token": self.cipher.encrypt(tokens.access_token),
                "square_refresh_token": self.cipher.encrypt(tokens.refresh_token) if tokens.refresh_token else None,
                "square_access_token_expiry": tokens.expires_at,
                "square_merchant_id": merchant.merchant_id,
                "square_location_id": merchant.location_id,
                "payment_provider_status": PaymentProviderStatus.ACTIVE,
            }
            if tenant.onboarding_step == OnboardingStep.PAYMENT:
                values["onboarding_step"] = OnboardingStep.PAYMENT_COMPLETE
            tenant_crud.update(db, tenant=tenant, values=values)
        except Exception as e:
            db.rollback()
            logger.error(f"Square OAuth callback failed for tenant {tenant_id}: {e}")
            raise

        logger.info(f"Square OAuth complete for tenant {tenant_id}, merchant {merchant.merchant_id}")
        return tenant_id

    def refresh_access_token(self, db: Session, tenant_id: int, now: Optional[datetime] = None) -> str:
        """
        Refresh the tenant's Square access token.

        Concurrent refreshes for one tenant are not serialized; the last
        write wins and every token it returns is valid.

        Returns:
            The new plaintext access token

        Raises:
            ValidationError: If the tenant has no refresh token
            ExternalProviderError: If Square fails or returns a token that is
                already inside the refresh threshold
        """
        now = now or utcnow()
        tenant = self._get_tenant(db, tenant_id)
        if not tenant.square_refresh_token:
            raise ValidationError("No Square refresh token available")

        tokens = self.square.refresh(self.cipher.decrypt(tenant.square_refresh_token))

        if tokens.expires_at < now + TOKEN_REFRESH_THRESHOLD:
            logger.error(
                f"Square refresh for tenant {tenant_id} returned a token expiring at {tokens.expires_at}"
            )
            raise ExternalProviderError(provider="square")

        values = {
            "square_access_token": self.cipher.encrypt(tokens.access_token),
            "square_access_token_expiry": tokens.expires_at,
        }
        if tokens.refresh_token:
            values["square_refresh_token"] = self.cipher.encrypt(tokens.refresh_token)
        tenant_crud.update(db, tenant=tenant, values=values)

        logger.info(f"Refreshed Square token for tenant {tenant_id}")
        return tokens.access_token

    def get_valid_access_token(self, db: Session, tenant_id: int, now: Optional[datetime] = None) -> str:
        """
        Return a Square access token valid for at least another hour,
        refreshing it first when needed.
        """
        now = now or utcnow()
        tenant = self._get_tenant(db, tenant_id)
        if not tenant.square_access_token:
            raise ValidationError("No Square access token available")

        expiry = as_utc(tenant.square_access_token_expiry)
        if expiry is not None and expiry < now + TOKEN_REFRESH_THRESHOLD:
            return self.refresh_access_token(db, tenant_id, now=now)

        return self.cipher.decrypt(tenant.square_access_token)

    def get_stripe_dashboard_link(self, db: Session, tenant_id: int) -> str:
        tenant = self._get_tenant(db, tenant_id)
        if not tenant.stripe_connect_account_id:
            raise ValidationError("No Stripe account connected")
        return self.stripe.create_login_link(tenant.stripe_connect_account_id)


# Create singleton instance
payment_onboarding_service = PaymentOnboardingService()
