from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os

from api.deps import Services, build_services
from api.orders import router as orders_router
from api.payments import router as payments_router
from api.products import router as products_router
from api.users import auth_router, router as users_router
from utils.config import get_settings
from utils.errors import (
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    GatewayUnavailableError,
    InvalidTransitionError,
    NotFoundError,
    SignatureMismatchError,
    StorefrontError,
    UpstreamFailureError,
    ValidationError,
)

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

# Most specific class wins; lookup walks the exception's MRO
ERROR_STATUS_CODES = {
    ValidationError: 400,
    SignatureMismatchError: 400,
    AuthenticationError: 401,
    ForbiddenError: 403,
    NotFoundError: 404,
    InvalidTransitionError: 409,
    ConflictError: 409,
    GatewayUnavailableError: 503,
    UpstreamFailureError: 502,
}


def create_app(services: Services | None = None) -> FastAPI:
    app = FastAPI(title="Storefront API", version="0.1.0")
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router, prefix="/api/auth", tags=["auth"])
    app.include_router(users_router, prefix="/api/users", tags=["users"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    app.include_router(orders_router, prefix="/api/orders", tags=["orders"])
    app.include_router(payments_router, prefix="/api/payments", tags=["payments"])

    @app.on_event("startup")
    def startup_event():
        if app.state.services is None:
            settings = get_settings()
            app.state.services = build_services(settings)
            logger.info(f"Storefront API ready (gateway configured: {settings.gateway_configured})")

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
        status_code = next(
            (ERROR_STATUS_CODES[cls] for cls in type(exc).__mro__ if cls in ERROR_STATUS_CODES), 500
        )
        detail = str(exc)
        if isinstance(exc, UpstreamFailureError) and not isinstance(exc, GatewayUnavailableError):
            # Details were logged where the failure happened
            detail = "Something went wrong, please try again"
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail, "error_type": type(exc).__name__},
            headers=headers,
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("api.main:app", host=settings.api_host, port=settings.api_port, reload=True)
