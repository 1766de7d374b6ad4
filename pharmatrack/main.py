from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from pharmatrack.core.config import settings
from pharmatrack.core.exceptions import register_exception_handlers
from pharmatrack.core.logging import setup_logging
from pharmatrack.api.v1.api import api_router
from pharmatrack.domain.auth.service import AuthenticationService
from pharmatrack.domain.drugs.repository import DrugRepository
from pharmatrack.domain.drugs.seed import build_demo_drugs
from pharmatrack.domain.drugs.store import DrugStore
from pharmatrack.domain.operations.seed import seed_operations
from pharmatrack.infrastructure.database import SessionLocal, close_db, init_db


def build_store() -> DrugStore:
    """Load the drug store, seeding demo batches into an empty database"""
    store = DrugStore(DrugRepository(SessionLocal))
    store.init(seed=build_demo_drugs() if settings.SEED_DEMO_DATA else None)
    store.update_expiry_status()
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging(settings)
    init_db()

    app.state.store = build_store()
    db = SessionLocal()
    try:
        AuthenticationService(db).ensure_demo_users()
        if settings.SEED_DEMO_DATA:
            seed_operations(db)
    finally:
        db.close()
    logger.info(f"{settings.PROJECT_NAME} started")

    yield

    app.state.store.close()
    close_db()
    logger.info(f"{settings.PROJECT_NAME} stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Set all CORS enabled origins
    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
