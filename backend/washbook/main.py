import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .config import settings
from .database import init_db
from .errors import DomainError
from .middleware.access_log import access_log_middleware
from .redis_client import redis_client
from .routers import audit_log, bookings, dashboard, operating_hours, services, slots, tenants

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.create_tables_on_startup:
        init_db()
    logger.info(f"washbook started (environment={settings.environment})")
    yield


app = FastAPI(title="Car Wash Booking API", lifespan=lifespan)

app.middleware("http")(access_log_middleware)

app.include_router(tenants.router)
app.include_router(operating_hours.router)
app.include_router(services.router)
app.include_router(slots.router)
app.include_router(bookings.router)
app.include_router(dashboard.router)
app.include_router(audit_log.router)


# ===== Error mapping =====

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity conflict on {request.method} {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=409,
        content={"detail": "Resource conflicts with existing data.", "code": "conflict"},
    )


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"Database error on {request.method} {request.url.path}")
    detail = "Internal server error." if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail, "code": "internal_error"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    detail = "Internal server error." if settings.is_production else str(exc)
    return JSONResponse(status_code=500, content={"detail": detail, "code": "internal_error"})


@app.get("/health")
def health():
    try:
        redis_ok = bool(redis_client.ping())
    except Exception as e:
        logger.warning(f"Redis ping failed: {e}")
        redis_ok = False
    return {"status": "ok", "redis": redis_ok}
