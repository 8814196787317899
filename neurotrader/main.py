from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
from datetime import datetime
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
import logging
import traceback

from neurotrader.config import settings
from neurotrader.db.database import init_db, set_storage_available
from neurotrader.exceptions import (
    DuplicateError,
    NeuroTraderError,
    NotFoundError,
    StorageUnavailable,
    UpstreamUnavailable,
    ValidationError,
)
from neurotrader.limiter import API_SCOPE, enforce_api_limit, limiter
from neurotrader.routers.agent import router as agent_router
from neurotrader.routers.users import router as users_router
from neurotrader.routers.waitlist import router as waitlist_router, admin_router as waitlist_admin_router
from neurotrader.services.agent_relay import get_agent

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

CHAT_PATH = "/api/agent/chat"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info(f"Starting NeuroTrader API (database: {settings.DB_PATH})")
    try:
        init_db()
        set_storage_available(True)
    except SQLAlchemyError as e:
        if settings.STRICT_STORAGE:
            raise
        # Keep serving; database-backed routes answer 503
        logger.error(f"Database initialization failed, continuing without storage: {str(e)}")
        set_storage_available(False)

    agent = get_agent()
    probe = getattr(agent, "probe", None)
    if probe is not None:
        probe()
    logger.info(f"Agent strategy: {settings.AGENT_STRATEGY}")
    yield
    # Shutdown
    logger.info("Shutting down NeuroTrader API")


app = FastAPI(
    title="NeuroTrader API",
    description="Chat sessions, agent relay, user profiles and waitlist for the NeuroTrader dashboard",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)


def _error_body(error: str, message: str | None = None, **extra) -> dict:
    body = {"error": error}
    if message:
        body["message"] = message
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def _debug_trace(exc: Exception) -> list | None:
    if not settings.DEBUG:
        return None
    return traceback.format_exception(type(exc), exc, exc.__traceback__)


@app.exception_handler(NeuroTraderError)
async def service_error_handler(request: Request, exc: NeuroTraderError):
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=400, content=_error_body(exc.message))
    if isinstance(exc, NotFoundError):
        return JSONResponse(status_code=404, content=_error_body(exc.message))
    if isinstance(exc, DuplicateError):
        return JSONResponse(status_code=409, content=_error_body("Already registered", exc.message))
    if isinstance(exc, UpstreamUnavailable):
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "Failed to process your request",
                exc.message,
                tip="Please try again in a moment.",
                details=exc.reason if settings.DEBUG else None,
            ),
        )
    if isinstance(exc, StorageUnavailable):
        return JSONResponse(
            status_code=503,
            content=_error_body(
                "Database service unavailable",
                "This service is currently unavailable. Please try again later.",
            ),
        )

    logger.error(f"Unhandled service error on {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "Internal server error",
            exc.message if settings.DEBUG else None,
            trace=_debug_trace(exc.__cause__ or exc),
        ),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(status_code=400, content=_error_body("Invalid request"))

    first = errors[0]
    location = [
        str(part) for part in first.get("loc", ())
        if part not in ("body", "query", "path") and not isinstance(part, int)
    ]
    field = location[-1] if location else "Request body"
    if first.get("type") == "missing":
        message = f"{field} is required"
    else:
        message = f"Invalid value for {field}: {first.get('msg', 'invalid')}"
    return JSONResponse(status_code=400, content=_error_body(message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content=_error_body(str(exc.detail)))


@app.exception_handler(RateLimitExceeded)
def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    if exc.limit.scope != API_SCOPE and request.url.path == CHAT_PATH:
        error = "Too many chat requests, please try again after a minute."
    else:
        error = "Too many requests, please try again later."
    logger.warning(f"Rate limit hit on {request.url.path} by {request.client.host if request.client else '?'}")
    return JSONResponse(status_code=429, content=_error_body(error, f"Rate limit exceeded: {exc.detail}"))


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled API error on {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "Internal server error",
            str(exc) if settings.DEBUG else None,
            trace=_debug_trace(exc),
        ),
    )


api_dependencies = [Depends(enforce_api_limit)]
app.include_router(agent_router, dependencies=api_dependencies)
app.include_router(users_router, dependencies=api_dependencies)
app.include_router(waitlist_router, dependencies=api_dependencies)
app.include_router(waitlist_admin_router, dependencies=api_dependencies)


@app.get("/")
async def root():
    return {
        "status": "online",
        "message": "NeuroTrader API is running",
        "version": "1.0.0",
        "endpoints": {
            "chat": CHAT_PATH,
            "session": "/api/agent/session",
            "history": "/api/agent/session/{session_id}/history",
            "profile": "/api/users/profile",
            "transactions": "/api/users/transactions",
            "waitlist": "/api/waitlist/join",
            "admin": "/api/admin/waitlist",
            "docs": "/docs",
        },
    }


@app.get("/health")
async def health():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
