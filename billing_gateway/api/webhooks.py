# billing_gateway/api/webhooks.py
from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from billing_gateway.core.deps import get_context, get_event_log, get_provider
from billing_gateway.core.event_log import EventLog
from billing_gateway.core.settings import settings
from billing_gateway.payments.base import BaseProvider
from billing_gateway.payments.context import ProviderContext
from billing_gateway.payments.errors import WebhookVerificationError

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])
log = structlog.get_logger(__name__)


@router.post("/{slug}")
async def receive_webhook(
    slug: str,
    request: Request,
    provider: BaseProvider = Depends(get_provider),
    ctx: ProviderContext = Depends(get_context),
    events: EventLog = Depends(get_event_log),
):
    """
    Authenticate, normalize and de-duplicate one delivery.
      - bad signature / stale timestamp / non-JSON body -> 400 with the reason
      - unmapped event type -> acknowledged and dropped
      - repeated providerEventId -> acknowledged as deduped
    """
    # must be the exact bytes the vendor signed
    payload = await request.body()

    secret = settings.webhook_secret_for(slug)
    if not secret:
        log.error("webhook_secret_missing", provider=slug)
        raise HTTPException(status_code=503, detail=f"Webhook secret for '{slug}' is not configured")

    try:
        event = provider.construct_event(
            ctx.with_config(settings.provider_config(slug)),
            payload,
            request.headers,
            secret,
            tolerance=settings.WEBHOOK_TOLERANCE_SECONDS,
        )
    except WebhookVerificationError as e:
        log.warning("webhook_rejected", provider=slug, reason=e.reason, detail=e.detail)
        raise HTTPException(status_code=400, detail={"code": e.code.value, "reason": e.reason})

    ack = provider.get_webhook_response()
    if event is None:
        log.info("webhook_ignored", provider=slug)
        return JSONResponse(ack.body, status_code=ack.status_code)

    if not await events.record_if_new(provider=slug, event_id=event.provider_event_id, event_type=event.type.value):
        log.info("webhook_duplicate", provider=slug, event_id=event.provider_event_id)
        return JSONResponse({**ack.body, "deduped": True}, status_code=ack.status_code)

    log.info(
        "webhook_received",
        provider=slug,
        event_id=event.provider_event_id,
        event_type=event.type.value,
        resource_id=event.resource_id,
    )
    return JSONResponse({**ack.body, "eventType": event.type.value}, status_code=ack.status_code)
