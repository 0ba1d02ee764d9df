# cacs_api/main.py
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cacs_api.config import Settings
from cacs_api.database import database_status, init_db, make_engine, make_session_factory
from cacs_api.errors import ServiceUnavailable
from cacs_api.middleware import BodySizeLimitMiddleware
from cacs_api.routes.auth import router as auth_router
from cacs_api.routes.forms import router as forms_router
from cacs_api.utils.mailer import SMTPMailer
from cacs_api.utils.notifier import Notifier
from cacs_api.utils.tokenJWT import TOKEN_HEADER

logger = logging.getLogger(__name__)


def _error_body(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}


def _configure_logging(settings: Settings):
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_startup_config(settings: Settings):
    if not settings.is_production:
        if not settings.JWT_SECRET:
            logger.warning("JWT_SECRET not set: signin and protected routes will answer 500 until it is configured")
        if not settings.DATABASE_URL:
            logger.warning("DATABASE_URL not set, using %s", settings.database_url)
        return
    missing = settings.missing_production_vars()
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")


def register_exception_handlers(app: FastAPI, settings: Settings):
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body("Invalid request data", errors=jsonable_encoder(exc.errors())),
        )

    @app.exception_handler(OperationalError)
    async def database_unavailable(request: Request, exc: OperationalError):
        logger.error("Database unavailable during %s %s: %s", request.method, request.url.path, exc)
        err = ServiceUnavailable()
        return JSONResponse(status_code=err.status_code, content=_error_body(err.detail))

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error during %s %s", request.method, request.url.path)
        extra = {"error": str(exc)} if settings.is_development else {}
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("Something went wrong!", **extra),
        )


def create_app(settings: Optional[Settings] = None, notifier: Optional[Notifier] = None) -> FastAPI:
    settings = settings or Settings()
    _configure_logging(settings)
    _check_startup_config(settings)

    engine = make_engine(settings.database_url)
    if notifier is None:
        notifier = Notifier(
            SMTPMailer(settings),
            maxsize=settings.NOTIFY_QUEUE_SIZE,
            max_retries=settings.NOTIFY_MAX_RETRIES,
            retry_delay=settings.NOTIFY_RETRY_DELAY,
            workers=settings.NOTIFY_WORKERS,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            init_db(engine)
        except OperationalError as exc:
            # Outside production keep serving; /health reports the outage and
            # database-backed routes answer 503 until it comes back
            if settings.is_production:
                raise
            logger.error("Database unavailable at startup: %s", exc)
        notifier.start()
        logger.info("CACS API started (environment=%s)", settings.ENVIRONMENT)
        try:
            yield
        finally:
            notifier.stop()
            engine.dispose()

    app = FastAPI(title="CACS Backend API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.notifier = notifier

    # CORS Configuration: any origin while developing, the configured list in production
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", TOKEN_HEADER],
    )

    app.add_middleware(BodySizeLimitMiddleware, max_body_size=settings.MAX_BODY_SIZE)

    register_exception_handlers(app, settings)

    app.include_router(auth_router)
    app.include_router(forms_router)

    @app.get("/health")
    def health():
        db_state = database_status(engine)
        return {
            "success": True,
            "status": "OK" if db_state == "connected" else "WARNING",
            "message": "Server is running",
            "database": db_state,
            "environment": settings.ENVIRONMENT.lower(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/")
    def read_root():
        return {"success": True, "message": "CACS Backend API"}

    return app


def run():
    settings = Settings()
    uvicorn.run("cacs_api.main:create_app", factory=True, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
