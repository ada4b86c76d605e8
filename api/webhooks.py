"""
Instagram webhook endpoints.

POST deliveries are verified, acknowledged right away and processed by a
background task; the sender never sees processing errors.
"""
import json
import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Header, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse

from services.webhook_service import (
    process_webhook_events,
    verify_signature,
    verify_subscription
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.get("/instagram", response_class=PlainTextResponse)
def verify_instagram_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge")
):
    """Subscription handshake: echo hub.challenge when the verify token matches."""
    challenge = verify_subscription(hub_mode, hub_verify_token, hub_challenge)
    if challenge is None:
        logger.warning("Webhook verification failed (mode=%s)", hub_mode)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")

    logger.info("Webhook verified")
    return PlainTextResponse(challenge)


@router.post("/instagram", status_code=status.HTTP_200_OK)
async def receive_instagram_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    x_hub_signature_256: Optional[str] = Header(default=None),
    x_hub_signature: Optional[str] = Header(default=None)
):
    """
    Receive Instagram events.

    The signature is checked against the raw body before anything is parsed.
    """
    raw_body = await request.body()

    if not verify_signature(raw_body, x_hub_signature_256, x_hub_signature):
        logger.warning("Rejected webhook with missing or invalid signature")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid signature")

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload")

    background_tasks.add_task(process_webhook_events, payload)
    return {"status": "received"}
