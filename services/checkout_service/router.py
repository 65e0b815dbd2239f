import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.container import AppContainer, get_container
from shared.config.database import get_db

from .schemas import PreferenceRequest, PreferenceResponse
from .service import CheckoutService

router = APIRouter(tags=["Checkout"])
logger = structlog.get_logger(__name__)


def get_checkout_service(container: AppContainer = Depends(get_container)) -> CheckoutService:
    return CheckoutService(container.settings, container.payment_gateway)


@router.post("/create_preference", response_model=PreferenceResponse)
async def create_preference(
    payload: PreferenceRequest,
    db: AsyncSession = Depends(get_db),
    checkout: CheckoutService = Depends(get_checkout_service),
):
    result = await checkout.create_preference(db, payload)
    return PreferenceResponse(redirectUrl=result.redirect_url)


# Back-redirect targets handed to the payment provider
@router.get("/success")
@router.get("/failure")
@router.get("/pending")
async def payment_return(request: Request):
    outcome = request.url.path.strip("/")
    params = dict(request.query_params)
    logger.info("checkout.returned", outcome=outcome, params=params)
    return {"outcome": outcome, "params": params}
