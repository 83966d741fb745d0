from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .config import settings
from .database import engine, Base
from .routers import costing, rates

logger = logging.getLogger("wirecost")

BASE_REVISION = "3f1c9a7d2b64"
ALEMBIC_INI = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")

# New tables only; column changes go through migrations
Base.metadata.create_all(bind=engine)


def _needs_base_stamp(table_names) -> bool:
    """Costing tables from create_all() but no alembic_version: stamp before upgrading."""
    return "alembic_version" not in table_names and "sheets" in table_names


def _run_migrations():
    """Upgrade the costing schema to the latest Alembic revision."""
    from alembic import command
    from alembic.config import Config
    from sqlalchemy import inspect

    if not os.path.exists(ALEMBIC_INI):
        logger.info("No alembic.ini at %s, skipping migrations", ALEMBIC_INI)
        return

    alembic_cfg = Config(ALEMBIC_INI)
    alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
    try:
        if _needs_base_stamp(inspect(engine).get_table_names()):
            logger.info("Costing tables predate Alembic, stamping %s", BASE_REVISION)
            command.stamp(alembic_cfg, BASE_REVISION)
        command.upgrade(alembic_cfg, "head")
        logger.info("Costing schema at head")
    except Exception as e:
        # Startup continues on the create_all() schema
        logger.warning("Alembic migration failed: %s", e)


app = FastAPI(
    title=settings.APP_NAME,
    description="Wire and cord costing sheet — copper/PVC weights, bundle and cord cost",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(costing.router, prefix="/api")
app.include_router(rates.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "wirecost"}


@app.on_event("startup")
def auto_migrate():
    """Run pending Alembic migrations on startup."""
    _run_migrations()


@app.on_event("startup")
def auto_seed():
    """Seed default material rates and the Costing sheet on first run."""
    from .database import SessionLocal
    from .routers.costing import get_costing_service
    db = SessionLocal()
    try:
        rates.seed_default_rates(db)
        get_costing_service(db).ensure_sheet()
    finally:
        db.close()
