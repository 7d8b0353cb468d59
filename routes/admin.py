from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from typing import List, Optional

import schemas
from auth import get_current_active_admin
from services import ServiceContainer, get_container

router = APIRouter(
    prefix="/api/admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_active_admin)],
)


@router.get("/orders", response_model=schemas.ApiResponse[List[schemas.Order]])
async def get_orders(
    skip: int = 0,
    limit: int = 100,
    status_filter: Optional[str] = None,  # e.g. "preparing" or "confirmed,preparing"
    search: Optional[str] = None,  # Search by order number
    container: ServiceContainer = Depends(get_container)
):
    """Get all orders (Admin only)"""
    orders = await run_in_threadpool(container.orders.get_orders, status_filter, search, skip, limit)
    return schemas.ApiResponse(data=orders)


@router.get("/dashboard-stats", response_model=schemas.ApiResponse[schemas.DashboardStats])
async def get_dashboard_stats(container: ServiceContainer = Depends(get_container)):
    """Get dashboard statistics (Admin only)"""
    stats = await run_in_threadpool(container.orders.get_dashboard_stats)
    return schemas.ApiResponse(data=stats)


@router.post("/orders/{order_id}/advance", response_model=schemas.ApiResponse[schemas.Order])
async def advance_order(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Move the order to the next fulfillment step"""
    order = await run_in_threadpool(container.fulfillment.advance, order_id)
    return schemas.ApiResponse(data=order)


@router.put("/orders/{order_id}/status", response_model=schemas.ApiResponse[schemas.Order])
async def set_order_status(
    order_id: str,
    status_update: schemas.OrderStatusUpdate,
    container: ServiceContainer = Depends(get_container)
):
    """Jump to a non-terminal status (Admin only)"""
    order = await run_in_threadpool(container.fulfillment.set_status, order_id, status_update.status)
    return schemas.ApiResponse(data=order)


@router.post("/orders/{order_id}/cancel", response_model=schemas.ApiResponse[schemas.Order])
async def cancel_order(
    order_id: str,
    container: ServiceContainer = Depends(get_container)
):
    """Cancel an order that is not delivered yet (Admin only)"""
    order = await run_in_threadpool(container.fulfillment.cancel, order_id, "Cancelled by staff")
    return schemas.ApiResponse(data=order)
