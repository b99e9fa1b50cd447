from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field
from app.models.tenant import OnboardingStep, PaymentProvider, PaymentProviderStatus
from app.schemas.provisioning import ProvisioningStatus


class SignupRequest(BaseModel):
    """Request schema for public self-service signup"""
    business_name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)
    subdomain: str = Field(
        ...,
        min_length=3,
        max_length=50,
        pattern=r"^[a-z0-9-]+$",
        description="Subdomain: lowercase letters, numbers, and hyphens only"
    )
    base_currency: str = Field(default="USD", min_length=3, max_length=3)
    payment_provider: PaymentProvider = PaymentProvider.NONE


class SignupResponse(BaseModel):
    tenant_id: int
    access_token: str


class OnboardingStatusResponse(BaseModel):
    """Merged onboarding, provisioning and payment status for a tenant"""
    tenant_id: int
    business_name: str
    subdomain: str
    onboarding_step: OnboardingStep
    provisioning_status: ProvisioningStatus
    provisioning_progress: int
    current_step: Optional[str] = None
    provisioning_error: Optional[str] = None
    payment_provider: PaymentProvider
    payment_provider_status: PaymentProviderStatus
    stripe_charges_enabled: bool = False
    stripe_payouts_enabled: bool = False
    stripe_details_submitted: bool = False
    square_merchant_id: Optional[str] = None
    onboarding_completed_at: Optional[datetime] = None


class PaymentInitiateResponse(BaseModel):
    url: str
    provider: PaymentProvider


class CompleteOnboardingResponse(BaseModel):
    success: bool


class PaymentRefreshResponse(BaseModel):
    status: PaymentProviderStatus
    charges_enabled: Optional[bool] = None
    payouts_enabled: Optional[bool] = None
    details_submitted: Optional[bool] = None


class DashboardLinkResponse(BaseModel):
    url: str


class VerifyEmailRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class VerifyEmailResponse(BaseModel):
    success: bool
    email: EmailStr


class WebhookAck(BaseModel):
    received: bool
