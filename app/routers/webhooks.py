from typing import Optional
from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session
from app.database import get_db
from app.schemas.onboarding import WebhookAck
from app.services.payment_reconciliation import payment_reconciliation_service

router = APIRouter()


@router.post("/stripe-connect", response_model=WebhookAck)
async def stripe_connect_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Receive Stripe Connect account webhooks.

    The signature is checked against the raw request bytes, so the body is
    read directly instead of through a pydantic model.
    """
    raw_body = await request.body()
    return payment_reconciliation_service.handle_webhook(db, raw_body, stripe_signature)
