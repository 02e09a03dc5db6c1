import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.db import AsyncSessionLocal, Base, engine
from .core.request_context import AuthenticationError, AuthorizationError
from .core.responses import ErrorCodes, error_response, success_response
from .seed import seed_initial_data
from .shipping_api import router as shipping_router
from .shipping_facade import (
    PackageConflictError,
    PackageNotFoundError,
    ShippingError,
    ShippingValidationError,
)
from .tenancy.context import StoreNotFoundError


settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Shipping Configuration API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shipping_router)


# ────────────────────────────────────────────────────────────────
# Error mapping
# ────────────────────────────────────────────────────────────────

@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(exc.code, exc.message),
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(AuthorizationError)
async def authorization_error_handler(request: Request, exc: AuthorizationError):
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=error_response(exc.code, exc.message),
    )


@app.exception_handler(StoreNotFoundError)
async def store_not_found_handler(request: Request, exc: StoreNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=error_response(ErrorCodes.STORE_NOT_FOUND, exc.message, {"store": exc.store_code}),
    )


@app.exception_handler(ShippingError)
async def shipping_error_handler(request: Request, exc: ShippingError):
    if isinstance(exc, PackageNotFoundError):
        status_code, code = status.HTTP_404_NOT_FOUND, ErrorCodes.RESOURCE_NOT_FOUND
        details = {"code": exc.package_code}
    elif isinstance(exc, PackageConflictError):
        status_code, code = status.HTTP_409_CONFLICT, ErrorCodes.ALREADY_EXISTS
        details = {"code": exc.package_code}
    elif isinstance(exc, ShippingValidationError):
        status_code, code = 422, ErrorCodes.INVALID_INPUT
        details = {"field": exc.field} if exc.field else None
    else:
        logger.error(f"Unhandled shipping error: {exc.message}")
        status_code, code, details = status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorCodes.INTERNAL_ERROR, None

    return JSONResponse(status_code=status_code, content=error_response(code, exc.message, details))


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content=error_response(
            ErrorCodes.VALIDATION_ERROR,
            "Request data failed validation",
            {"errors": jsonable_encoder(exc.errors())},
        ),
    )


# ────────────────────────────────────────────────────────────────
# Lifecycle
# ────────────────────────────────────────────────────────────────

@app.on_event("startup")
async def on_startup():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    if settings.seed_default_store:
        async with AsyncSessionLocal() as session:
            await seed_initial_data(session)


@app.get("/health")
async def health():
    return success_response({"service": "shipping-config"})
