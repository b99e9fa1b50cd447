from typing import Optional
from urllib.parse import quote
from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session
from app.database import get_db
from app.core.config import settings
from app.core.exceptions import (
    ConfigurationError,
    ExternalProviderError,
    InvalidOAuthStateError,
    OnboardingError,
)
from app.core.logging_config import logger
from app.core.tenant_context import get_authorized_tenant_id
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.onboarding import (
    CompleteOnboardingResponse,
    DashboardLinkResponse,
    OnboardingStatusResponse,
    PaymentInitiateResponse,
    PaymentRefreshResponse,
    SignupRequest,
    SignupResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from app.services.email_verification import email_verification_service
from app.services.onboarding import onboarding_service
from app.services.payment_onboarding import payment_onboarding_service
from app.services.payment_reconciliation import payment_reconciliation_service

router = APIRouter()


def _payment_error_redirect(reason: str) -> RedirectResponse:
    return RedirectResponse(
        url=f"{settings.FRONTEND_URL}/onboarding/payment-error?reason={quote(reason)}",
        status_code=status.HTTP_302_FOUND
    )


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(request: SignupRequest, db: Session = Depends(get_db)):
    """
    Public signup. Creates the tenant and owner, starts provisioning and
    returns an access token straight away.
    """
    return onboarding_service.signup(db, request)


@router.post("/verify-email", response_model=VerifyEmailResponse)
def verify_email(request: VerifyEmailRequest, db: Session = Depends(get_db)):
    return email_verification_service.verify_email(db, request.token)


@router.get("/square/callback")
def square_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    error: Optional[str] = None,
    db: Session = Depends(get_db)
):
    """
    Square OAuth redirect target.

    Always answers with a redirect to the frontend: the completion page on
    success, the payment error page with a reason code otherwise.
    """
    if error or not code or not state:
        logger.warning(f"Square OAuth callback without code/state (error={error})")
        return _payment_error_redirect(error or "missing_code")

    try:
        tenant_id = payment_onboarding_service.handle_square_callback(db, code, state)
    except InvalidOAuthStateError:
        return _payment_error_redirect("invalid_state")
    except ExternalProviderError:
        return _payment_error_redirect("provider_error")
    except ConfigurationError:
        return _payment_error_redirect("not_configured")
    except OnboardingError as e:
        logger.warning(f"Square OAuth callback rejected: {e.detail}")
        return _payment_error_redirect("invalid_request")

    return RedirectResponse(
        url=f"{settings.FRONTEND_URL}/onboarding/{tenant_id}/complete?provider=square",
        status_code=status.HTTP_302_FOUND
    )


@router.get("/{tenant_id}/status", response_model=OnboardingStatusResponse)
def get_onboarding_status(tenant_id: int, db: Session = Depends(get_db)):
    """Poll provisioning and onboarding status. Public."""
    return onboarding_service.get_status(db, tenant_id)


@router.post("/{tenant_id}/payment/initiate", response_model=PaymentInitiateResponse)
def initiate_payment(
    tenant_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get the URL that starts payment provider onboarding.

    Membership of the tenant is checked by the service, which answers 403
    for users of another tenant.
    """
    return payment_onboarding_service.initiate(db, tenant_id, current_user.id)


@router.post("/{tenant_id}/complete", response_model=CompleteOnboardingResponse)
def complete_onboarding(
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_authorized_tenant_id)
):
    return onboarding_service.complete_onboarding(db, _tenant_id)


@router.get("/{tenant_id}/payment/refresh", response_model=PaymentRefreshResponse)
def refresh_payment_status(
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_authorized_tenant_id)
):
    """Poll Stripe directly for the account status, for when webhooks don't arrive."""
    return payment_reconciliation_service.refresh_payment_status(db, _tenant_id)


@router.get("/{tenant_id}/stripe/dashboard", response_model=DashboardLinkResponse)
def get_stripe_dashboard(
    db: Session = Depends(get_db),
    _tenant_id: int = Depends(get_authorized_tenant_id)
):
    """Get a login link to the tenant's Stripe Express dashboard."""
    url = payment_onboarding_service.get_stripe_dashboard_link(db, _tenant_id)
    return DashboardLinkResponse(url=url)
