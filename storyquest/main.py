"""
StoryQuest Progression Service

FastAPI application entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from storyquest.config import get_settings
from storyquest.database import close_db, init_db, ping_database
from storyquest.api.errors import register_exception_handlers
from storyquest.api.middleware.request_id import RequestIdMiddleware
from storyquest.api.v1 import router as api_v1_router
from storyquest.schemas.common import HealthResponse
from storyquest.logging_config import configure_logging, get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Logging and schema on startup, connection pool teardown on shutdown."""
    configure_logging(
        log_level=settings.log_level,
        environment=settings.environment,
        debug=settings.debug,
    )

    logger.info("Starting %s v%s", settings.project_name, settings.version)
    await init_db()
    # Curriculum is loaded on first use and then kept on app.state
    app.state.curriculum_tree = None

    yield

    logger.info("Shutting down")
    await close_db()


app = FastAPI(
    title=settings.project_name,
    description="""
    Decides which therapeutic stories a child may open, and when.

    - **Curriculum**: blocks, months, weeks and the stories on days 1, 3 and 5
    - **Access**: per-story decisions with subscription, prerequisite and 24h cooldown gates
    - **Progress**: completion ledger and per-month progress bars
    - **Rewards**: the weekly bonus cartoon, unlocked by finishing every story of the week
    """,
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)
app.state.curriculum_tree = None

_cors_origins = list(settings.cors_origins)

# Last added is outermost: CORS wraps the request id middleware
app.add_middleware(RequestIdMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _cors_headers(request: Request) -> Dict[str, str]:
    """Responses built by exception handlers can skip CORSMiddleware, so they carry these."""
    origin = request.headers.get("origin", "")
    if origin in _cors_origins:
        allow_origin = origin
    else:
        allow_origin = _cors_origins[0] if _cors_origins else "*"
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Credentials": "true",
        "Access-Control-Allow-Methods": "*",
        "Access-Control-Allow-Headers": "*",
    }


register_exception_handlers(app, _cors_headers, debug=settings.debug)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request):
    database_ok = await ping_database()
    return HealthResponse(
        status="ok" if database_ok else "degraded",
        version=settings.version,
        database="connected" if database_ok else "unavailable",
        curriculum_loaded=getattr(request.app.state, "curriculum_tree", None) is not None,
    )


@app.get("/", tags=["Root"])
async def root():
    return {
        "name": settings.project_name,
        "version": settings.version,
        "docs": "/docs" if settings.debug else "disabled",
        "api": {"v1": settings.api_v1_prefix},
    }


app.include_router(api_v1_router, prefix=settings.api_v1_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storyquest.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
