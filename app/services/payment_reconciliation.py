from datetime import datetime, timezone
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import ConfigurationError, NotFoundError, WebhookVerificationError
from app.core.logging_config import logger
from app.core.transitions import PAYMENT_STATUS_TRANSITIONS, can_transition
from app.crud import tenant as tenant_crud
from app.models.tenant import Tenant, PaymentProvider, PaymentProviderStatus
from app.schemas.onboarding import PaymentRefreshResponse, WebhookAck
from app.services.payment_providers import StripeAccountSnapshot, StripeConnectClient, stripe_connect_client
from app.utils.time import as_utc

ACCOUNT_UPDATED = "account.updated"
ACCOUNT_DEAUTHORIZED = "account.application.deauthorized"


def derive_payment_status(charges_enabled: bool, details_submitted: bool) -> PaymentProviderStatus:
    """An account is active once it can take charges and has submitted its details."""
    if charges_enabled and details_submitted:
        return PaymentProviderStatus.ACTIVE
    return PaymentProviderStatus.ONBOARDING


def apply_account_snapshot(
    db: Session,
    tenant: Tenant,
    snapshot: StripeAccountSnapshot,
    event_created: Optional[datetime] = None
) -> bool:
    """
    Apply a provider observation of a connected account to the tenant.

    Shared by the webhook and the on-demand poll so both paths follow the
    same rule. The status only moves along its transition table: an active
    account is never demoted back to onboarding.

    Ordering uses Stripe's own clock only. Webhook events carry their
    `created` time and are compared against the last event applied; an
    event older than that one is ignored. A poll is a direct read of the
    current account, so it is always applied and leaves the event
    watermark untouched.

    Args:
        db: Database session
        tenant: Tenant owning the account
        snapshot: Capability flags read from Stripe
        event_created: The webhook event's `created` time, None for a poll

    Returns:
        True if the snapshot was applied, False if the event was stale
    """
    values: Dict[str, Any] = {}
    if event_created is not None:
        last_event_at = as_utc(tenant.stripe_last_event_at)
        if last_event_at is not None and event_created < last_event_at:
            logger.info(
                f"Ignoring stale Stripe event for tenant {tenant.id}: "
                f"created {event_created.isoformat()}, last applied {last_event_at.isoformat()}"
            )
            return False
        values["stripe_last_event_at"] = event_created

    current = tenant.payment_provider_status
    target = derive_payment_status(snapshot.charges_enabled, snapshot.details_submitted)

    values.update({
        "stripe_charges_enabled": snapshot.charges_enabled,
        "stripe_payouts_enabled": snapshot.payouts_enabled,
        "stripe_details_submitted": snapshot.details_submitted,
    })
    if current == PaymentProviderStatus.NONE:
        # none -> onboarding -> active, collapsed into one write
        values["payment_provider_status"] = target
    elif can_transition(PAYMENT_STATUS_TRANSITIONS, current, target):
        values["payment_provider_status"] = target

    tenant_crud.update(db, tenant=tenant, values=values)

    logger.info(
        f"Updated tenant {tenant.id}: charges={snapshot.charges_enabled}, "
        f"payouts={snapshot.payouts_enabled}, status={tenant.payment_provider_status.value}"
    )
    return True


class PaymentReconciliationService:
    """
    Keeps the tenant's cached Stripe account status in step with Stripe.

    Two paths feed it: signed Connect webhooks, and an on-demand poll used
    when webhooks are late or lost.
    """

    def __init__(self, stripe_client: Optional[StripeConnectClient] = None):
        self.stripe = stripe_client or stripe_connect_client

    def handle_webhook(self, db: Session, raw_body: Optional[bytes], signature: Optional[str]) -> WebhookAck:
        """
        Verify and process a Stripe Connect webhook.

        Args:
            db: Database session
            raw_body: Exact request bytes the signature was computed over
            signature: Stripe-Signature header value

        Returns:
            WebhookAck, also for event types that are not handled

        Raises:
            ConfigurationError: If the webhook secret is not configured
            WebhookVerificationError: If the body is missing or the signature is invalid
        """
        secret = settings.STRIPE_CONNECT_WEBHOOK_SECRET
        if not secret:
            logger.error("STRIPE_CONNECT_WEBHOOK_SECRET not configured")
            raise ConfigurationError("Webhook not configured")

        if not raw_body:
            raise WebhookVerificationError("Raw body is required")

        event = self.stripe.construct_event(raw_body, signature, secret)
        event_type = event.get("type")
        logger.info(f"Received Stripe Connect webhook: {event_type}")

        created = event.get("created")
        event_created = datetime.fromtimestamp(created, tz=timezone.utc) if created else None
        data_object = (event.get("data") or {}).get("object") or {}

        if event_type == ACCOUNT_UPDATED:
            self._handle_account_updated(db, StripeAccountSnapshot.from_account(data_object), event_created)
        elif event_type == ACCOUNT_DEAUTHORIZED:
            # data.object is the application; the connected account is on the event
            account_id = event.get("account") or data_object.get("id")
            self._handle_account_deauthorized(db, account_id, event_created)
        else:
            logger.info(f"Unhandled event type: {event_type}")

        return WebhookAck(received=True)

    def _handle_account_updated(
        self, db: Session, snapshot: StripeAccountSnapshot, event_created: Optional[datetime]
    ) -> None:
        tenant = tenant_crud.get_by_stripe_account(db, snapshot.account_id)
        if tenant is None:
            logger.warning(f"No tenant found for Stripe account {snapshot.account_id}")
            return
        apply_account_snapshot(db, tenant, snapshot, event_created)

    def _handle_account_deauthorized(
        self, db: Session, account_id: Optional[str], event_created: Optional[datetime]
    ) -> None:
        tenant = tenant_crud.get_by_stripe_account(db, account_id) if account_id else None
        if tenant is None:
            logger.warning(f"No tenant found for deauthorized Stripe account {account_id}")
            return

        # Revocation disables from any state
        tenant_crud.set_payment_status(
            db, tenant=tenant, status=PaymentProviderStatus.DISABLED, force=True, commit=False
        )
        values: Dict[str, Any] = {"stripe_charges_enabled": False, "stripe_payouts_enabled": False}
        last_event_at = as_utc(tenant.stripe_last_event_at)
        if event_created is not None and (last_event_at is None or event_created > last_event_at):
            values["stripe_last_event_at"] = event_created
        tenant_crud.update(db, tenant=tenant, values=values)
        logger.info(f"Deauthorized Stripe account for tenant {tenant.id}")

    def refresh_payment_status(
        self,
        db: Session,
        tenant_id: int
    ) -> PaymentRefreshResponse:
        """
        Poll Stripe for the tenant's account and reconcile.

        Tenants without a Stripe account get their cached status back.

        Raises:
            NotFoundError: If the tenant does not exist
            ExternalProviderError: If Stripe cannot be reached; nothing is changed
        """
        tenant = tenant_crud.get(db, tenant_id)
        if tenant is None:
            raise NotFoundError("Tenant not found")

        if tenant.payment_provider != PaymentProvider.STRIPE or not tenant.stripe_connect_account_id:
            return PaymentRefreshResponse(status=tenant.payment_provider_status)

        snapshot = self.stripe.retrieve_account(tenant.stripe_connect_account_id)
        apply_account_snapshot(db, tenant, snapshot)
        logger.info(f"Refreshed Stripe status for tenant {tenant_id}")

        return PaymentRefreshResponse(
            status=tenant.payment_provider_status,
            charges_enabled=tenant.stripe_charges_enabled,
            payouts_enabled=tenant.stripe_payouts_enabled,
            details_submitted=tenant.stripe_details_submitted,
        )


# Create singleton instance
payment_reconciliation_service = PaymentReconciliationService()
