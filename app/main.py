import logging
from contextlib import asynccontextmanager

try:
    import sentry_sdk
except ModuleNotFoundError:  # Sentry optional in local/test envs
    sentry_sdk = None
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

try:
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration
except ModuleNotFoundError:  # Sentry optional during local dev/tests
    FastApiIntegration = None
    LoggingIntegration = None

from app.api.routes import auth, feed, health, swipes, workspaces
from app.config import settings
from app.services.feed.assembler import get_feed_assembler
from app.services.swipes.repositories import get_swipe_repository
from app.services.workspaces.service import ensure_users

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    if sentry_sdk and FastApiIntegration and LoggingIntegration and settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            integrations=[
                FastApiIntegration(auto_enabling_instrumentations=False),
                LoggingIntegration(level=logging.INFO),
            ],
            traces_sample_rate=0.1,
            environment=settings.environment,
        )
        logger.info("Sentry initialized")

    repository = get_swipe_repository()
    if settings.seed_users:
        ensure_users(repository, settings.seed_users)

    # Load datasets eagerly so the first feed request does not pay for it.
    assembler = get_feed_assembler()
    stats = assembler.stats()
    logger.info(
        f"Dataset: {stats['archive_count']} archive, {stats['recent_count']} recent fundraises"
    )

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application")
    repository.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Swipe-to-match review of startup fundraise announcements",
    lifespan=lifespan,
    debug=settings.debug,
)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests."""
    logger.info(f"{request.method} {request.url.path}")
    response = await call_next(request)
    logger.info(f"Response status: {response.status_code}")
    return response


app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(workspaces.router, prefix="/api/workspaces", tags=["workspaces"])
app.include_router(feed.router, prefix="/api", tags=["feed", "progress"])
app.include_router(swipes.router, prefix="/api", tags=["swipes", "matches"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.environment,
    }
