"""FastAPI application entrypoint."""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from truck_social import __version__
from truck_social.exceptions import (
    ConflictError,
    NotFoundError,
    SchedulingError,
    StorageError,
    ValidationError,
)
from truck_social.logging_config import configure_logging, get_logger
from truck_social.middleware.correlation_id import CorrelationIdMiddleware
from truck_social.middleware.rate_limit import RateLimitMiddleware
from truck_social.routers import (
    campaigns_router,
    health_router,
    posts_router,
    social_router,
)
from truck_social.schemas.common import ErrorResponse

logger = get_logger(__name__)

# Most specific first: ValidationError is also a ValueError, NotFoundError a LookupError.
_ERROR_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StorageError, 503),
)


def status_for(exc: SchedulingError) -> int:
    """HTTP status for a scheduling error (500 for unmapped subclasses)."""
    for cls, code in _ERROR_STATUS:
        if isinstance(exc, cls):
            return code
    return 500


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown: logging."""
    configure_logging()
    logger.info("app_started", version=__version__)
    yield
    logger.info("app_shutdown")


app = FastAPI(
    title="Food Truck Social Scheduler",
    version=__version__,
    lifespan=lifespan,
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health_router)
app.include_router(campaigns_router)
app.include_router(posts_router)
app.include_router(social_router)


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    """Typed service errors -> ErrorResponse body with the mapped status."""
    status_code = status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "request.scheduling_error",
        path=request.url.path,
        status_code=status_code,
        code=exc.code,
        error=exc.message,
    )
    body = ErrorResponse(detail=exc.message, code=exc.code, extra=exc.extra or None)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@app.get("/")
def root() -> dict[str, str]:
    """Root endpoint: app name and version."""
    return {"name": "truck_social", "version": __version__}
