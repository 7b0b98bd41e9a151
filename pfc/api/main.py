"""PFC Ledger API — FastAPI application with a DB-backed ledger store."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from pfc.logging_config import setup_logging
setup_logging()

from fastapi import Depends, FastAPI
from fastapi import Request as FastAPIRequest
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import Settings, settings as default_settings
from pfc import __version__
from pfc.api.pfc import router as pfc_router
from pfc.db.ledger import LedgerStore, get_store
from pfc.errors import INTERNAL_ERROR_BODY, InvalidInput, LedgerError
from pfc.middleware.metrics import MetricsMiddleware
from pfc.middleware.request_id import RequestIDMiddleware
from pfc.middleware.timeout import RequestTimeoutMiddleware

logger = logging.getLogger(__name__)


def _init_sentry(settings: Settings) -> None:
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
        integrations=[
            FastApiIntegration(),
            SqlalchemyIntegration(),
            LoggingIntegration(level=logging.WARNING, event_level=logging.ERROR),
        ],
        send_default_pii=False,
    )


def create_app(settings: Settings | None = None, store: LedgerStore | None = None) -> FastAPI:
    """Build the application.

    Pass ``store`` to serve an already-open LedgerStore; otherwise the
    lifespan opens one from DATABASE_URL and closes it on shutdown.
    """
    settings = settings or default_settings

    if settings.SENTRY_DSN:
        _init_sentry(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        from pfc.startup_checks import validate_settings
        validate_settings(settings)

        owns_store = app.state.store is None
        if owns_store:
            app.state.store = LedgerStore.from_url(settings.DATABASE_URL, settings)
        if settings.AUTO_CREATE_TABLES:
            await app.state.store.create_tables()
            logger.info("Database tables ready")

        yield

        if owns_store:
            logger.info("Shutting down — draining connections...")
            await app.state.store.close()
            app.state.store = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title="PFC Ledger API",
        version=__version__,
        description="Daily proteins / fats / carbs totals keyed by calendar date",
        lifespan=lifespan,
    )
    app.state.store = store

    # Innermost: the deadline wraps only the handler and its store calls
    app.add_middleware(RequestTimeoutMiddleware, timeout=settings.REQUEST_TIMEOUT_SECONDS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.include_router(pfc_router)

    @app.get("/health")
    async def health(store: LedgerStore = Depends(get_store)):
        """Deep health check — validates DB connectivity."""
        db_status = "connected" if await store.ping() else "error"
        status = "ok" if db_status == "connected" else "degraded"
        return {"status": status, "db": db_status, "version": __version__}

    @app.get("/ready")
    async def readiness(store: LedgerStore = Depends(get_store)):
        """Readiness probe for orchestrators. Returns 503 if not ready to serve traffic."""
        if not await store.ping():
            return JSONResponse(status_code=503, content={"ready": False, "reason": "database unavailable"})
        return {"ready": True}

    _register_error_handlers(app)
    return app


# --- Structured Error Responses ---

def _register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: FastAPIRequest, exc: LedgerError):
        """Every ledger error carries its own status code and error code."""
        if isinstance(exc, InvalidInput):
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: FastAPIRequest, exc: RequestValidationError):
        """Malformed JSON or a body that is not an object is a plain client error."""
        errors = []
        for err in exc.errors():
            field = " → ".join(str(loc) for loc in err["loc"]) if err.get("loc") else "unknown"
            errors.append({"field": field, "message": err["msg"]})
        return JSONResponse(status_code=400, content={
            "error": "invalid_input",
            "message": "Invalid request data",
            "details": errors,
        })

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: FastAPIRequest, exc: StarletteHTTPException):
        """Consistent error envelope for routing errors (404, 405, ...)."""
        return JSONResponse(status_code=exc.status_code, headers=exc.headers, content={
            "error": exc.detail if isinstance(exc.detail, str) else "error",
            "message": exc.detail,
        })

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: FastAPIRequest, exc: Exception):
        """Last-resort catch-all (errors raised outside RequestIDMiddleware) — never leak stack traces."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


app = create_app()


def run() -> None:
    """Serve the module-level app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "pfc.api.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        timeout_keep_alive=int(default_settings.REQUEST_TIMEOUT_SECONDS),
        log_config=None,
    )


if __name__ == "__main__":
    run()
