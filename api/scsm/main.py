"""SCSM Entitlements API - Main Application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scsm.auth.dependencies import set_session_service_getter
from scsm.auth.router import router as auth_router
from scsm.auth.service import SessionService
from scsm.config import get_settings
from scsm.core.context import get_request_id
from scsm.core.database import init_async_cassandra, shutdown_async_cassandra
from scsm.core.exceptions import EntitlementError, GatewayError
from scsm.core.locks import UserLocks
from scsm.core.logging import configure_structlog, get_logger
from scsm.core.middleware import RequestContextMiddleware
from scsm.core.redis import init_redis, shutdown_redis
from scsm.enrollments.store import CassandraUserStore
from scsm.health.router import router as health_router
from scsm.orders.router import router as orders_router
from scsm.orders.router import set_order_service_getter
from scsm.orders.service import OrderService
from scsm.payments.gateway import CashfreeGateway
from scsm.payments.router import router as payments_router
from scsm.payments.router import set_payment_service_getter
from scsm.payments.service import PaymentService
from scsm.usage.router import router as usage_router
from scsm.usage.router import set_usage_service_getter
from scsm.usage.service import UsageService


# Configure logging early (before creating logger)
settings = get_settings()
configure_structlog(settings, file_output=not settings.is_testing)

logger = get_logger(__name__)


# HTTP status per error code
ERROR_STATUS_MAP = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "not_found": status.HTTP_404_NOT_FOUND,
    "auth_error": status.HTTP_401_UNAUTHORIZED,
    "access_denied": status.HTTP_403_FORBIDDEN,
    "no_active_course": status.HTTP_403_FORBIDDEN,
    "no_attempts_left": status.HTTP_403_FORBIDDEN,
    "payment_not_confirmed": status.HTTP_402_PAYMENT_REQUIRED,
    "gateway_error": status.HTTP_502_BAD_GATEWAY,
    "storage_error": status.HTTP_503_SERVICE_UNAVAILABLE,
}


# Application state for dependency injection
class AppState:
    """Application state container."""

    cassandra_session: Any = None
    redis: Any = None
    session_service: SessionService | None = None
    order_service: OrderService | None = None
    payment_service: PaymentService | None = None
    usage_service: UsageService | None = None


app_state = AppState()


def _require(service: Any, name: str) -> Any:
    if service is None:
        msg = f"{name} not initialized"
        raise RuntimeError(msg)
    return service


def get_session_service() -> SessionService:
    """Get SessionService instance from app state."""
    return _require(app_state.session_service, "SessionService")


def get_order_service() -> OrderService:
    """Get OrderService instance from app state."""
    return _require(app_state.order_service, "OrderService")


def get_payment_service() -> PaymentService:
    """Get PaymentService instance from app state."""
    return _require(app_state.payment_service, "PaymentService")


def get_usage_service() -> UsageService:
    """Get UsageService instance from app state."""
    return _require(app_state.usage_service, "UsageService")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "starting_application",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
    )

    # Redis is optional: without it locks are per process
    if settings.redis_enabled:
        try:
            app_state.redis = await init_redis(settings)
        except Exception as e:
            logger.warning(
                "redis_init_skipped",
                error=str(e),
                message="Running with in-process locks only",
            )
    app.state.redis = app_state.redis

    locks = UserLocks(
        redis=app_state.redis,
        timeout=settings.redis_lock_timeout_seconds,
    )

    gateway = CashfreeGateway(settings)
    if not gateway.is_configured:
        logger.warning("cashfree_not_configured")

    try:
        app_state.cassandra_session = await init_async_cassandra(settings)
        store = CassandraUserStore(
            session=app_state.cassandra_session,
            keyspace=settings.cassandra_keyspace,
        )

        app_state.session_service = SessionService(
            store=store,
            secret_key=settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
            token_lifetime=timedelta(hours=settings.auth_session_token_expire_hours),
            locks=locks,
        )
        app_state.order_service = OrderService(
            store=store,
            gateway=gateway,
            locks=locks,
            course_prices=settings.course_prices,
            validity_days=settings.enrollment_validity_days,
            default_attempts=settings.enrollment_default_attempts,
            currency=settings.order_currency,
            default_center_name=settings.default_center_name,
        )
        app_state.payment_service = PaymentService(
            store=store,
            gateway=gateway,
            sessions=app_state.session_service,
            locks=locks,
        )
        app_state.usage_service = UsageService(store=store, locks=locks)
        logger.info("entitlement_services_initialized")
    except Exception as e:
        logger.warning(
            "database_init_skipped",
            error=str(e),
            message="Running without database connection",
        )

    yield

    # Shutdown
    logger.info("shutting_down_application")
    await shutdown_redis()
    await shutdown_async_cassandra()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    # Never expose stack traces in responses; handlers below log details
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Course entitlements, payments and student sessions",
        debug=False,
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        openapi_url="/openapi.json" if settings.is_development else None,
    )

    # Request context middleware (must be added first - outermost)
    app.add_middleware(
        RequestContextMiddleware,
        log_requests=settings.log_requests,
        exclude_paths=settings.log_exclude_paths,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        max_age=settings.cors_max_age,
    )

    def _get_request_id_safe(request: Request) -> str | None:
        """Get request_id from request state or context."""
        if hasattr(request.state, "request_id"):
            return request.state.request_id
        return get_request_id()

    @app.exception_handler(EntitlementError)
    async def entitlement_error_handler(
        request: Request, exc: EntitlementError
    ) -> ORJSONResponse:
        """Map service errors to HTTP statuses with one table."""
        status_code = ERROR_STATUS_MAP.get(exc.code, status.HTTP_400_BAD_REQUEST)
        log_method = (
            logger.error
            if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
            else logger.info
        )
        log_method(
            "entitlement_error",
            code=exc.code,
            message=exc.message,
            status_code=status_code,
            path=request.url.path,
        )

        content: dict[str, Any] = {
            "error": True,
            "code": exc.code,
            "message": exc.message,
            "status_code": status_code,
            "request_id": _get_request_id_safe(request),
        }
        if isinstance(exc, GatewayError) and exc.details is not None:
            content["details"] = exc.details

        return ORJSONResponse(status_code=status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> ORJSONResponse:
        """Handle HTTP exceptions with safe error messages."""
        logger.warning(
            "http_exception",
            status_code=exc.status_code,
            detail=str(exc.detail),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": str(exc.detail)
                if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR
                else "Internal server error",
                "status_code": exc.status_code,
                "request_id": _get_request_id_safe(request),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> ORJSONResponse:
        """Handle request body validation errors (safe to expose)."""
        logger.warning(
            "validation_error",
            errors=exc.errors(),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": True,
                "code": "validation_error",
                "message": "Validation error",
                "status_code": 422,
                "request_id": _get_request_id_safe(request),
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in err.get("loc", [])),
                        "message": err.get("msg", "Invalid value"),
                    }
                    for err in exc.errors()
                ],
            },
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(
        request: Request, exc: Exception
    ) -> ORJSONResponse:
        """Catch-all handler: log details, return a generic message."""
        logger.exception(
            "unhandled_exception",
            error_type=type(exc).__name__,
            error_message=str(exc),
            path=request.url.path,
            method=request.method,
        )

        return ORJSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": True,
                "message": "An unexpected error occurred. Please try again later.",
                "status_code": 500,
                "request_id": _get_request_id_safe(request),
            },
        )

    app.include_router(health_router)
    app.include_router(orders_router)
    app.include_router(payments_router)
    app.include_router(auth_router)
    app.include_router(usage_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {"message": "SCSM Entitlements API", "version": settings.app_version}

    return app


set_session_service_getter(get_session_service)
set_order_service_getter(get_order_service)
set_payment_service_getter(get_payment_service)
set_usage_service_getter(get_usage_service)


app = create_app()
