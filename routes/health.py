from fastapi import APIRouter, Depends, Request

from services import ServiceContainer, get_container
from stores import SqlOrderStore
from .limiter import limiter

router = APIRouter(tags=["Health"])


@router.get("/")
@limiter.limit("100/minute")
async def root(request: Request):
    return {
        "status": "online",
        "message": "Chicken Master API is running",
        "version": "1.0.0"
    }


@router.get("/health")
@limiter.limit("100/minute")
async def health_check(request: Request, container: ServiceContainer = Depends(get_container)):
    """Liveness plus which store backs orders and whether PayDunya keys are set"""
    return {
        "status": "healthy",
        "store": "sql" if isinstance(container.order_store, SqlOrderStore) else "memory",
        "paydunya_configured": bool(getattr(container.gateway, "is_configured", False)),
    }
