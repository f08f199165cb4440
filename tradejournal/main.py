import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from tradejournal.core.auth import get_current_user
from tradejournal.core.config import settings
from tradejournal.core.exceptions import (
    MentorBusy,
    MentorUnavailable,
    NotFound,
    StorageError,
    ValidationFailed,
    WithdrawalRejected,
)
from tradejournal.core.logging_config import setup_logging
from tradejournal.models.db import engine, init_models
from tradejournal.routers import accounts, dashboard, mentor, payouts, strategies, trades, trading_plan
from tradejournal.services.ai_client_manager import get_circuit_breaker_status

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on start, release the pool on shutdown."""
    await init_models()
    logger.info(f"{settings.APP_NAME} started | db={settings.DB_TYPE} | auth={settings.AUTH_ENABLED}")
    yield
    await engine.dispose()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan, default_response_class=ORJSONResponse)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1024)


# -------- error mapping --------

@app.exception_handler(ValidationFailed)
async def validation_failed_handler(request: Request, exc: ValidationFailed):
    body = {"detail": str(exc)}
    if isinstance(exc, WithdrawalRejected) and exc.max_withdrawal is not None:
        body["max_withdrawal"] = exc.max_withdrawal
    return ORJSONResponse(status_code=400, content=body)


@app.exception_handler(NotFound)
async def not_found_handler(request: Request, exc: NotFound):
    return ORJSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return ORJSONResponse(status_code=503, content={"detail": "storage unavailable, nothing was saved"})


@app.exception_handler(MentorUnavailable)
async def mentor_unavailable_handler(request: Request, exc: MentorUnavailable):
    return ORJSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(MentorBusy)
async def mentor_busy_handler(request: Request, exc: MentorBusy):
    return ORJSONResponse(status_code=409, content={"detail": str(exc)})


# -------- routes --------

app.include_router(accounts.router, prefix="/api/v1", tags=["accounts"], dependencies=[Depends(get_current_user)])
app.include_router(trades.router, prefix="/api/v1", tags=["trades"], dependencies=[Depends(get_current_user)])
app.include_router(payouts.router, prefix="/api/v1", tags=["payouts"], dependencies=[Depends(get_current_user)])
app.include_router(dashboard.router, prefix="/api/v1", tags=["dashboard"], dependencies=[Depends(get_current_user)])
app.include_router(strategies.router, prefix="/api/v1", tags=["strategies"], dependencies=[Depends(get_current_user)])
app.include_router(trading_plan.router, prefix="/api/v1", tags=["trading plan"], dependencies=[Depends(get_current_user)])
app.include_router(mentor.router, prefix="/api/v1", tags=["mentor"], dependencies=[Depends(get_current_user)])


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "ai_circuit_breakers": get_circuit_breaker_status(),
    }
