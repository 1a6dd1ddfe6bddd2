"""
FastAPI application factory
"""
import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

from app.api.v1 import amplifications, messages, milestones, stats, stripe_webhook, subscriptions, wishes
from app.config import get_settings
from app.errors import DandyError, UpstreamError
from app.infrastructure.db.session import check_db_connection

logging.basicConfig(level=get_settings().LOG_LEVEL)
logger = logging.getLogger(__name__)


class ErrorLoggingMiddleware(BaseHTTPMiddleware):
    """Last line of defence: log the traceback, answer 500 with a JSON body"""

    async def dispatch(self, request, call_next):
        try:
            return await call_next(request)
        except Exception:
            tb_str = traceback.format_exc()
            logger.error(f"\n{'='*60}\nERROR on {request.method} {request.url.path}\n{tb_str}{'='*60}")
            return JSONResponse({"error": "Internal server error", "code": "internal_error"}, status_code=500)


async def dandy_error_handler(request: Request, exc: DandyError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"Database error on {request.method} {request.url.path}: {str(exc)}")
    error = UpstreamError("Database request failed")
    return JSONResponse(error.to_dict(), status_code=error.status_code)


def create_app() -> FastAPI:
    """
    Application factory - builds and configures the FastAPI app

    Returns:
        Configured FastAPI app
    """
    settings = get_settings()

    app = FastAPI(
        title="Dandy Wishes",
        debug=settings.DEBUG,
    )

    app.add_middleware(ErrorLoggingMiddleware)

    # The auth gateway stores user_id in this signed cookie
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SECRET_KEY
    )

    app.add_exception_handler(DandyError, dandy_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)

    app.include_router(wishes.router)
    app.include_router(amplifications.router)
    app.include_router(milestones.router)
    app.include_router(messages.router)
    app.include_router(subscriptions.router)
    app.include_router(stripe_webhook.router)
    app.include_router(stats.router)

    # Health checks
    @app.get("/health", response_class=PlainTextResponse, tags=["system"])
    def health():
        """Health check endpoint"""
        return "ok"

    @app.get("/ready", response_class=PlainTextResponse, tags=["system"])
    def ready():
        """Readiness check endpoint (checks the database is reachable)"""
        check_db_connection()
        return "ok"

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
