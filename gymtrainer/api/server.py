"""FastAPI application setup"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from gymtrainer import config
from gymtrainer.api.routes import router
from gymtrainer.api.middleware import setup_cors, setup_rate_limiting, setup_request_metrics
from gymtrainer.exceptions import GymTrainerError
from gymtrainer.gamification.streak_system import StreakPolicy
from gymtrainer.services import init_container, is_initialized, reset_container

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, config.LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def build_storage():
    """Repository and catalog for the configured STORAGE_BACKEND"""
    if config.STORAGE_BACKEND == "memory":
        from gymtrainer.db.memory import InMemoryCatalog, InMemoryRepository
        from gymtrainer.gamification.catalog import DEFAULT_ACHIEVEMENTS, STANDARD_REWARDS

        if config.SEED_CATALOG:
            catalog = InMemoryCatalog(DEFAULT_ACHIEVEMENTS, STANDARD_REWARDS)
        else:
            catalog = InMemoryCatalog()
        return InMemoryRepository(), catalog

    from gymtrainer.db.connection import db
    from gymtrainer.db.postgres import PostgresCatalog, PostgresRepository
    return PostgresRepository(db), PostgresCatalog(db)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for FastAPI application"""
    # Startup
    logger.info("Starting API server...")

    owns_container = not is_initialized()
    uses_pool = owns_container and config.STORAGE_BACKEND == "postgres"

    if owns_container:
        config.validate_config()
        if uses_pool:
            from gymtrainer.db.connection import db
            await db.init_pool()
            logger.info("Database pool initialized")

        repository, catalog = build_storage()
        init_container(repository, catalog, StreakPolicy(config.STREAK_SAME_DAY_POLICY))
        logger.info(f"Storage backend: {config.STORAGE_BACKEND}")

    yield

    # Shutdown
    logger.info("Shutting down API server...")
    if owns_container:
        reset_container()
    if uses_pool:
        from gymtrainer.db.connection import db
        await db.close_pool()
        logger.info("Database pool closed")


def create_api_application() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Gym Trainer Gamification API",
        description="Points, streaks, achievements, rewards and leaderboards",
        version="1.0.0",
        lifespan=lifespan
    )

    # Setup middleware
    setup_cors(app)
    setup_rate_limiting(app)
    if config.ENABLE_PROMETHEUS:
        setup_request_metrics(app)

    # Include routes
    app.include_router(router)

    @app.exception_handler(GymTrainerError)
    async def gym_trainer_exception_handler(request: Request, exc: GymTrainerError):
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_dict()
        )

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "detail": str(exc)}
        )

    logger.info("FastAPI application created")

    return app
