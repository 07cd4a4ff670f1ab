"""
LINE webhook endpoint.

LINE expects a fast 200, so the delivery is acknowledged as soon as the
signature checks out; events are processed on the background task runner.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import ValidationError

from app.api.deps import ServicesDep
from app.config import sanitize_error
from app.schemas.items import SuccessResponse
from app.schemas.line import LineWebhookBody
from app.services.webhook import handle_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/webhook", tags=["webhook"])


@router.post("", response_model=SuccessResponse)
async def receive_webhook(
    request: Request,
    services: ServicesDep,
    x_line_signature: Annotated[str | None, Header()] = None,
) -> SuccessResponse:
    """Verify the X-Line-Signature header and hand the events off."""
    raw_body = await request.body()

    if not services.line.verify_signature(raw_body, x_line_signature):
        logger.warning("Rejected webhook delivery with invalid signature")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid signature",
        )

    try:
        body = LineWebhookBody.model_validate_json(raw_body)
    except ValidationError as e:
        logger.error("Malformed webhook body: %s", e.error_count())
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=sanitize_error(e, generic_message="Internal error"),
        )

    if body.events:
        services.tasks.spawn(handle_events(services, body.events), name="line-webhook")

    return SuccessResponse()


@router.get("")
async def webhook_status() -> dict[str, str]:
    """Liveness check used when registering the webhook URL."""
    return {"status": "ok", "service": "Second Brain Webhook"}
