# storefront/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from storefront.api import include_routers
from storefront.data.database import Base, engine, SessionLocal
from storefront.data.seed import seed
from storefront.utils.settings import SEED_CATALOG
from storefront.utils.logging import get_logger

# import all models before create_all
import storefront.data.models  # noqa: F401

logger = get_logger(__name__)


def init_db(bind=engine):
    logger.info(f"Initializing database, tables: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if SEED_CATALOG:
        db = SessionLocal()
        try:
            seed(db)
        finally:
            db.close()
    logger.info("Storefront started")
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="Storefront",
        version="1.0.0",
        lifespan=lifespan,
    )

    include_routers(app)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
