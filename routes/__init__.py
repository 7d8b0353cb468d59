from fastapi import APIRouter
from .auth import router as auth_router
from .orders import router as orders_router
from .payments import router as payments_router
from .paydunya import router as paydunya_router
from .checkout import router as checkout_router
from .admin import router as admin_router
from .health import router as health_router

# Create main API router
api_router = APIRouter()

# Include all route modules
api_router.include_router(auth_router, tags=["Authentication"])
api_router.include_router(orders_router, tags=["Orders"])
api_router.include_router(payments_router, tags=["Payments"])
api_router.include_router(paydunya_router, tags=["PayDunya"])
api_router.include_router(checkout_router, tags=["Checkout"])
api_router.include_router(admin_router, tags=["Admin"])
api_router.include_router(health_router, tags=["Health"])

__all__ = ["api_router"]
