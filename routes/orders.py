from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

import schemas
from services import ServiceContainer, get_container
from .limiter import limiter

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("", response_model=schemas.ApiResponse[schemas.Order])
@limiter.limit("10/minute")
async def create_order(
    request: Request,
    order_data: schemas.OrderCreate,
    container: ServiceContainer = Depends(get_container)
):
    """Create a new order; the total is computed from the items and order type"""
    order = await run_in_threadpool(container.orders.create_order, order_data)
    return schemas.ApiResponse(data=order)


@router.get("/{order_id}", response_model=schemas.ApiResponse[schemas.Order])
async def get_order(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Get a single order by ID (order tracking)"""
    order = await run_in_threadpool(container.orders.get_order, order_id)
    return schemas.ApiResponse(data=order)


@router.put("/{order_id}", response_model=schemas.ApiResponse[schemas.Order])
@limiter.limit("30/minute")
async def update_order(
    request: Request,
    order_id: str,
    order_update: schemas.OrderUpdate,
    container: ServiceContainer = Depends(get_container)
):
    """Correct customer details on an order"""
    order = await run_in_threadpool(container.orders.update_order, order_id, order_update)
    return schemas.ApiResponse(data=order)
