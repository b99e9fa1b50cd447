"""
Stripe Connect client.

Wraps the stripe library calls used by Express onboarding: account creation,
hosted onboarding links, dashboard login links, account retrieval and
webhook signature verification.
"""

import json
from typing import Any, Dict, Optional
import stripe
from pydantic import BaseModel
from app.core.config import settings
from app.core.exceptions import ConfigurationError, ExternalProviderError, WebhookVerificationError
from app.core.logging_config import logger


class StripeAccountSnapshot(BaseModel):
    """Capability flags of a connected account as observed at one moment."""
    account_id: str
    charges_enabled: bool = False
    payouts_enabled: bool = False
    details_submitted: bool = False

    @classmethod
    def from_account(cls, account: Any) -> "StripeAccountSnapshot":
        """Build from a stripe Account object or an event's data.object dict."""
        if isinstance(account, dict):
            get = account.get
        else:
            def get(name, default=None):
                return getattr(account, name, default)
        return cls(
            account_id=get("id"),
            charges_enabled=bool(get("charges_enabled", False)),
            payouts_enabled=bool(get("payouts_enabled", False)),
            details_submitted=bool(get("details_submitted", False)),
        )


class StripeConnectClient:
    """Client for the Stripe Connect API."""

    def __init__(self, api_key: Optional[str] = None):
        """
        Initialize Stripe Connect client.

        Args:
            api_key: Stripe secret key (defaults to env var). A missing key is
                only reported when a call is made.
        """
        self._api_key = api_key
        self._http_client_configured = False

    @property
    def api_key(self) -> str:
        key = self._api_key or settings.STRIPE_SECRET_KEY
        if not key:
            logger.error("Stripe is not configured: STRIPE_SECRET_KEY not set")
            raise ConfigurationError("Stripe is not configured")
        if not self._http_client_configured:
            stripe.default_http_client = stripe.RequestsClient(timeout=settings.PROVIDER_TIMEOUT_SECONDS)
            self._http_client_configured = True
        return key

    def _provider_error(self, action: str, error: Exception) -> ExternalProviderError:
        logger.error(f"Stripe {action} failed: {error}")
        return ExternalProviderError(provider="stripe")

    def create_express_account(self, *, tenant_id: int, email: str, business_name: str) -> str:
        """
        Create an Express connected account for a tenant.

        Returns:
            The new Stripe account id
        """
        api_key = self.api_key
        try:
            account = stripe.Account.create(
                api_key=api_key,
                type="express",
                email=email,
                business_type="company",
                company={"name": business_name},
                metadata={"tenantId": str(tenant_id)},
                capabilities={
                    "card_payments": {"requested": True},
                    "transfers": {"requested": True},
                },
            )
        except stripe.StripeError as e:
            raise self._provider_error("account creation", e)

        logger.info(f"Created Stripe Connect account {account.id} for tenant {tenant_id}")
        return account.id

    def create_onboarding_link(self, account_id: str, *, return_url: str, refresh_url: str) -> str:
        """Create a hosted account_onboarding link and return its URL."""
        api_key = self.api_key
        try:
            link = stripe.AccountLink.create(
                api_key=api_key,
                account=account_id,
                refresh_url=refresh_url,
                return_url=return_url,
                type="account_onboarding",
            )
        except stripe.StripeError as e:
            raise self._provider_error("account link creation", e)
        return link.url

    def create_login_link(self, account_id: str) -> str:
        """Create an Express dashboard login link and return its URL."""
        api_key = self.api_key
        try:
            link = stripe.Account.create_login_link(account_id, api_key=api_key)
        except stripe.StripeError as e:
            raise self._provider_error("login link creation", e)
        return link.url

    def retrieve_account(self, account_id: str) -> StripeAccountSnapshot:
        api_key = self.api_key
        try:
            account = stripe.Account.retrieve(account_id, api_key=api_key)
        except stripe.StripeError as e:
            raise self._provider_error(f"account retrieval for {account_id}", e)
        return StripeAccountSnapshot.from_account(account)

    def construct_event(self, payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
        """
        Verify a webhook signature over the exact raw bytes and parse the event.

        Args:
            payload: Raw request body, unmodified
            signature: Value of the Stripe-Signature header
            secret: Endpoint signing secret

        Returns:
            The event as a plain dict

        Raises:
            WebhookVerificationError: If the signature is missing or invalid,
                or the payload is not JSON
        """
        if not signature:
            raise WebhookVerificationError("Missing Stripe-Signature header")

        body = payload.decode("utf-8", errors="replace")
        try:
            stripe.WebhookSignature.verify_header(
                body, signature, secret, settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS
            )
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise WebhookVerificationError("Invalid signature")

        try:
            return json.loads(body)
        except ValueError as e:
            logger.error(f"Webhook payload is not valid JSON: {e}")
            raise WebhookVerificationError("Invalid payload")


# Create singleton instance
stripe_connect_client = StripeConnectClient()
