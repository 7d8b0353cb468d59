from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
import structlog

import schemas
from errors import StorefrontError, ValidationError
from services import PaydunyaService, ServiceContainer, get_container
from .limiter import limiter

router = APIRouter(prefix="/api/paydunya", tags=["PayDunya"])

logger = structlog.get_logger(__name__)


@router.post("/initialize", response_model=schemas.ApiResponse[schemas.PaydunyaInitializeResponse])
@limiter.limit("20/minute")
async def initialize_payment(
    request: Request,
    data: schemas.PaydunyaInitializeRequest,
    container: ServiceContainer = Depends(get_container)
):
    """
    Open a PayDunya checkout invoice for the order's payment.
    Retrying after a cancel or failure reuses the same payment.
    """
    payment = await run_in_threadpool(
        container.checkout.initialize_payment,
        data.order_id,
        data.payment_id,
        data.payment_method,
        data.total,
    )
    return schemas.ApiResponse(data=schemas.PaydunyaInitializeResponse(
        payment_url=payment.gateway_invoice_url,
        token=payment.gateway_token,
        transaction_id=payment.transaction_id,
        payment_id=payment.id,
    ))


@router.post("/callback", response_model=schemas.ApiResponse[schemas.CallbackAck])
async def paydunya_callback(
    request: Request,
    container: ServiceContainer = Depends(get_container)
):
    """
    Handle PayDunya callbacks.
    Anything past body validation is acknowledged with 200 so PayDunya stops
    retrying; reconciliation problems are logged for manual review.
    """
    try:
        payload = await request.json()
    except ValueError:
        raise ValidationError("Callback body must be valid JSON")
    callback = PaydunyaService.parse_callback(payload)

    try:
        ack = await run_in_threadpool(container.checkout.handle_callback, callback)
    except StorefrontError as e:
        logger.warning("callback.reconciliation_failed", order_id=callback.order_id,
                       status=callback.status, error_type=type(e).__name__, error=e.message)
        ack = schemas.CallbackAck(applied=False, detail=e.message, order_id=callback.order_id)
    except Exception:
        logger.exception("callback.reconciliation_failed", order_id=callback.order_id,
                         status=callback.status)
        ack = schemas.CallbackAck(
            applied=False, detail="Received, pending manual review", order_id=callback.order_id
        )
    return schemas.ApiResponse(data=ack)


@router.get("/status/{order_id}", response_model=schemas.ApiResponse[schemas.Payment])
async def payment_status(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Payment state for an order, refreshed from PayDunya while it is in flight"""
    payment = await run_in_threadpool(container.checkout.refresh_status, order_id)
    return schemas.ApiResponse(data=payment)


@router.post("/return/{order_id}/cancel", response_model=schemas.ApiResponse[schemas.Payment])
async def cancel_return(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Customer left the PayDunya page through the cancel link"""
    payment = await run_in_threadpool(container.checkout.cancel_return, order_id)
    return schemas.ApiResponse(data=payment)


@router.get("/return/{order_id}/success", response_model=schemas.ApiResponse[schemas.ReturnOutcome])
async def success_return(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Customer came back through the success link; only a completed payment counts"""
    outcome = await run_in_threadpool(container.checkout.success_return, order_id)
    return schemas.ApiResponse(data=outcome)
