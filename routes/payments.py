from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool

import schemas
from services import ServiceContainer, get_container

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post("", response_model=schemas.ApiResponse[schemas.Payment])
async def create_payment(
    payment_data: schemas.PaymentCreate,
    container: ServiceContainer = Depends(get_container)
):
    """Create a payment record for an existing order"""
    payment = await run_in_threadpool(container.checkout.create_payment, payment_data.model_dump())
    return schemas.ApiResponse(data=payment)


@router.get("/by-order/{order_id}", response_model=schemas.ApiResponse[schemas.Payment])
async def get_payment_by_order(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Latest payment created or updated for an order"""
    payment = await run_in_threadpool(container.payment_store.get_by_order_id, order_id)
    return schemas.ApiResponse(data=payment)


@router.get("/{payment_id}", response_model=schemas.ApiResponse[schemas.Payment])
async def get_payment(
    payment_id: str,
    container: ServiceContainer = Depends(get_container)
):
    payment = await run_in_threadpool(container.payment_store.get, payment_id)
    return schemas.ApiResponse(data=payment)


@router.put("/{payment_id}", response_model=schemas.ApiResponse[schemas.Payment])
async def update_payment(
    payment_id: str,
    payment_update: schemas.PaymentUpdate,
    container: ServiceContainer = Depends(get_container)
):
    """Patch a payment; status changes follow the payment state machine"""
    payment = await run_in_threadpool(
        container.checkout.update_payment, payment_id, payment_update.model_dump(exclude_unset=True)
    )
    return schemas.ApiResponse(data=payment)
