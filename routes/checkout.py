from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

import schemas
from services import ServiceContainer, get_container
from .limiter import limiter

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])


@router.post("", response_model=schemas.ApiResponse[schemas.CheckoutResult])
@limiter.limit("10/minute")
async def checkout(
    request: Request,
    data: schemas.CheckoutRequest,
    container: ServiceContainer = Depends(get_container)
):
    """Create the order and payment, then open the PayDunya invoice in one call"""
    order_data = schemas.OrderCreate(**data.model_dump(exclude={"payment_method"}))
    result = await run_in_threadpool(container.checkout.checkout, order_data, data.payment_method)

    if result.payment_url is None:
        # The order and payment exist; the storefront retries through /paydunya/initialize
        envelope = schemas.ApiResponse(
            success=False,
            data=result,
            error=result.payment.error_message or "Payment initialization failed",
        )
        return JSONResponse(status_code=502, content=jsonable_encoder(envelope))
    return schemas.ApiResponse(data=result)
