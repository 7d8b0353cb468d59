from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException
import os
from typing import Optional
from dotenv import load_dotenv
import structlog

from errors import StorefrontError
from logging_config import configure_logging
from routes import api_router
from routes.limiter import limiter
from services import ServiceContainer, build_container

load_dotenv()

logger = structlog.get_logger(__name__)


def error_response(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message or "Request failed"},
        headers=headers,
    )


async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.warning("request.failed", path=request.url.path, error_type=type(exc).__name__,
                       error=exc.message)
    return error_response(exc.status_code, exc.message)


async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'] if part != 'body')}: {err['msg']}"
        for err in exc.errors()
    )
    return error_response(400, f"Invalid request: {problems}")


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return error_response(429, f"Rate limit exceeded: {exc.detail}")


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("request.unhandled_error", path=request.url.path)
    return error_response(500, "Internal server error")


def create_app(container: Optional[ServiceContainer] = None) -> FastAPI:
    app = FastAPI(title="Chicken Master API", version="1.0.0")

    # Orders and payments live in these stores for the lifetime of the app
    app.state.container = container or build_container()

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # CORS Configuration
    origins = os.getenv("CORS_ORIGINS", "http://localhost:8080,http://localhost:3000").split(",")
    # Strip whitespace from origins
    origins = [origin.strip() for origin in origins if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include all routes
    app.include_router(api_router)
    return app


configure_logging()
app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
