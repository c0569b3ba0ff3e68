import orjson
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from karma_api.core.exceptions import ReconcileError
from karma_api.core.logging import get_logger
from karma_api.deps import get_reconciler
from karma_api.services.reconcile import WebhookReconciler

router = APIRouter()
log = get_logger(__name__)


@router.post("/webhook", response_class=PlainTextResponse)
async def payment_webhook(request: Request, reconciler: WebhookReconciler = Depends(get_reconciler)):
    """Address-activity webhook. 200 "OK" for every credit or benign skip; 400 only on faults."""
    body = await request.body()
    try:
        payload = orjson.loads(body) if body else None
    except orjson.JSONDecodeError:
        log.warning("webhook_bad_json", size=len(body))
        return PlainTextResponse("Error processing webhook", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        await reconciler.reconcile(payload)
    except ReconcileError:
        log.exception("webhook_failed")
        return PlainTextResponse("Error processing webhook", status_code=status.HTTP_400_BAD_REQUEST)
    return PlainTextResponse("OK")
