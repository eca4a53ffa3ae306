"""
Price Survey Administration API

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricesurvey.api.middleware.rate_limit import RateLimitMiddleware
from pricesurvey.api.middleware.request_id import RequestIdMiddleware
from pricesurvey.api.v1 import router as api_v1_router
from pricesurvey.config import get_auth_config, get_settings
from pricesurvey.database import async_session_maker, close_db, init_db
from pricesurvey.kernel.errors import IdentityError
from pricesurvey.kernel.identity.identity_service import IdentityService
from pricesurvey.kernel.identity.jwt import TokenIssuer
from pricesurvey.logging_config import configure_logging, get_logger
from pricesurvey.schemas.common import HealthResponse

settings = get_settings()
logger = get_logger(__name__)


async def seed_bootstrap_admin() -> None:
    """Create the configured first administrator when it does not exist."""
    async with async_session_maker() as session:
        identity = IdentityService.for_session(session, TokenIssuer(get_auth_config()))
        if await identity.ensure_bootstrap_admin(settings):
            await session.commit()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan handler.

    Runs startup and shutdown tasks.
    """
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    await seed_bootstrap_admin()
    logger.info("Database initialized")

    yield

    logger.info("Shutting down...")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.project_name,
    description="""
    Price Survey Administration API

    Authentication and session lifecycle for administrators, self-registered
    users and field operatives.

    ## Invariants

    1. Every protected request re-loads the actor; a valid signature alone never authorizes
    2. Disabling or deleting an actor ends its refresh session in the same write
    3. Each refresh token rotates exactly once
    4. Credential failures never say which part was wrong
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

_cors_origins = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

# add_middleware stacks innermost-first: CORS added last wraps everything
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_headers(request: Request) -> dict:
    req_id = getattr(request.state, "request_id", None)
    return {"X-Request-ID": req_id} if req_id else {}


@app.exception_handler(IdentityError)
async def identity_exception_handler(request: Request, exc: IdentityError):
    """Map the identity error taxonomy onto status codes."""
    headers = _error_headers(request)
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers["WWW-Authenticate"] = "Bearer"
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    headers = {**(exc.headers or {}), **_error_headers(request)}
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
):
    """Handle request validation errors."""
    errors = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": "Validation error", "errors": errors},
        headers=_error_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(
    request: Request,
    exc: Exception,
):
    """Handle unexpected exceptions."""
    logger.exception("Unhandled exception: %s", exc)
    req_id = getattr(request.state, "request_id", None)
    if settings.debug:
        content = {"detail": str(exc), "type": type(exc).__name__, "request_id": req_id}
    else:
        content = {"detail": "Internal server error", "request_id": req_id}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
        headers=_error_headers(request),
    )


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check application health."""
    return HealthResponse(status="ok", version=settings.version)


app.include_router(
    api_v1_router,
    prefix=settings.api_v1_prefix,
)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pricesurvey.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
