from app.services.provisioning import provisioning_service
from app.services.onboarding import onboarding_service
from .payment_onboarding import payment_onboarding_service
from .payment_reconciliation import payment_reconciliation_service
from .email_verification import email_verification_service

__all__ = [
    "provisioning_service",
    "onboarding_service",
    "payment_onboarding_service",
    "payment_reconciliation_service",
    "email_verification_service",
]
