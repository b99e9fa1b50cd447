"""
Error taxonomy for provisioning and payment onboarding.

Every error is an HTTPException so the service layer can raise it directly,
the same way the rest of the API raises HTTPException, and FastAPI renders it.
"""

from typing import Optional
from fastapi import HTTPException, status


class OnboardingError(HTTPException):
    """Base class for domain errors raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class ValidationError(OnboardingError):
    """Malformed input or unmet precondition. Raised before any state change."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"


class InvalidTransitionError(ValidationError):
    default_detail = "Illegal state transition"


class InvalidOAuthStateError(ValidationError):
    default_detail = "Invalid or expired OAuth state"


class WebhookVerificationError(ValidationError):
    default_detail = "Invalid signature"


class ConflictError(OnboardingError):
    """Domain or email already taken, or a concurrent signup won the race."""

    status_code = status.HTTP_409_CONFLICT
    default_detail = "Resource already exists"


class NotFoundError(OnboardingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ExternalProviderError(OnboardingError):
    """
    A payment provider call failed or timed out.

    The full provider detail is logged where the error is raised; the caller
    only ever sees the generic message. Safe to retry.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed, please try again"

    def __init__(self, detail: Optional[str] = None, provider: Optional[str] = None):
        super().__init__(detail)
        self.provider = provider


class ConfigurationError(OnboardingError):
    """Provider credentials or secrets are missing at the deployment level."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Service is not configured"


class ForbiddenError(OnboardingError):
    """The caller is authenticated but does not belong to the tenant."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "User does not belong to this tenant"
