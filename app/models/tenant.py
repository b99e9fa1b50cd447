import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, Enum
from sqlalchemy.orm import relationship
from app.database import Base, TimestampMixin


class PaymentProvider(str, enum.Enum):
    NONE = "none"
    STRIPE = "stripe"
    SQUARE = "square"


class PaymentProviderStatus(str, enum.Enum):
    NONE = "none"
    ONBOARDING = "onboarding"
    ACTIVE = "active"
    DISABLED = "disabled"


class OnboardingStep(str, enum.Enum):
    PROVISIONING = "provisioning"
    PAYMENT = "payment"
    PAYMENT_COMPLETE = "payment_complete"
    COMPLETED = "completed"


class Tenant(Base, TimestampMixin):
    __tablename__ = "tenant"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    domain = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    base_currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=False)  # Flipped once seeding completes

    # Onboarding state machine
    payment_provider = Column(Enum(PaymentProvider), nullable=False, default=PaymentProvider.NONE)
    payment_provider_status = Column(
        Enum(PaymentProviderStatus), nullable=False, default=PaymentProviderStatus.NONE
    )
    onboarding_step = Column(Enum(OnboardingStep), nullable=False, default=OnboardingStep.PROVISIONING)
    onboarding_completed_at = Column(DateTime(timezone=True), nullable=True)

    # Stripe Connect
    stripe_connect_account_id = Column(String, unique=True, index=True, nullable=True)
    stripe_charges_enabled = Column(Boolean, nullable=False, default=False)
    stripe_payouts_enabled = Column(Boolean, nullable=False, default=False)
    stripe_details_submitted = Column(Boolean, nullable=False, default=False)
    stripe_last_event_at = Column(DateTime(timezone=True), nullable=True)  # Stripe clock, webhooks only

    # Square OAuth (tokens are ciphertext)
    square_access_token = Column(Text, nullable=True)
    square_refresh_token = Column(Text, nullable=True)
    square_access_token_expiry = Column(DateTime(timezone=True), nullable=True)
    square_merchant_id = Column(String, nullable=True)
    square_location_id = Column(String, nullable=True)

    users = relationship("User", back_populates="tenant")
    oauth_states = relationship("OAuthState", back_populates="tenant", cascade="all, delete-orphan")
