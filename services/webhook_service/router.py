from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.container import AppContainer, get_container
from shared.config.database import get_db

from .schemas import extract_notification
from .service import WebhookService

router = APIRouter(tags=["Webhook"])


def get_webhook_service(container: AppContainer = Depends(get_container)) -> WebhookService:
    return WebhookService(container.payment_gateway)


async def _read_body(request: Request):
    # IPN-style deliveries carry everything in the query string and no JSON body
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/webhook")
async def receive_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    webhooks: WebhookService = Depends(get_webhook_service),
):
    body = await _read_body(request)
    notification = extract_notification(request.query_params, body)
    result = await webhooks.handle(db, notification)
    return JSONResponse(status_code=result.status_code, content={"message": result.message})
