# catalog/main.py

"""
FastAPI Catalog Service API.
Manages categories and the products filed under them: creation, retrieval,
filtered listing, optimistic-concurrency updates and deletion.
"""
import logging
import os
import sys
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.exc import OperationalError

from . import models  # noqa: F401  registers the tables on Base.metadata
from .db import Base, engine
from .logging_config import configure_logging
from .responses import register_error_handlers
from .routers import categories, products

logger = logging.getLogger(__name__)


def create_tables(max_retries=10, retry_delay_seconds=5):
    """
    Ensures database tables exist, retrying while PostgreSQL is still
    coming up.
    """
    for i in range(max_retries):
        try:
            logger.info(
                f"Attempting to connect to PostgreSQL and create tables (attempt {i+1}/{max_retries})..."
            )
            Base.metadata.create_all(bind=engine)
            logger.info("Successfully connected to PostgreSQL and ensured tables exist.")
            return
        except OperationalError as e:
            logger.warning(f"Failed to connect to PostgreSQL: {e}")
            if i < max_retries - 1:
                logger.info(f"Retrying in {retry_delay_seconds} seconds...")
                time.sleep(retry_delay_seconds)
            else:
                logger.critical(
                    f"Failed to connect to PostgreSQL after {max_retries} attempts. Exiting application."
                )
                sys.exit(1)
        except Exception as e:
            logger.critical(
                f"An unexpected error occurred during database startup: {e}",
                exc_info=True,
            )
            sys.exit(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(
        level=os.getenv("LOG_LEVEL", "INFO"),
        json_logs=os.getenv("LOG_FORMAT", "console") == "json",
    )
    logger.info(f"Catalog Service starting, database engine: {engine.url!r}")
    create_tables()

    yield

    logger.info("Catalog Service shutting down...")
    engine.dispose()


app = FastAPI(
    title="Catalog Service API",
    description="Manages products and their categories",
    version="1.0.0",
    lifespan=lifespan,
)

register_error_handlers(app)
app.include_router(categories.router)
app.include_router(products.router)
