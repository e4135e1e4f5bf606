# catalog/db.py

"""
Database configuration and session management for the catalog service.
"""
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


def _int_env(key, default):
    """Reads an integer environment variable, falling back to the default."""
    value = os.getenv(key, "")
    try:
        return int(value)
    except ValueError:
        return default


# Read DB settings from environment variables, with defaults for local/dev
POSTGRES_USER = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
POSTGRES_DB = os.getenv("POSTGRES_DB", "postgres")
POSTGRES_HOST = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT = os.getenv("POSTGRES_PORT", "5432")

# A full DATABASE_URL wins over the individual settings
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    "postgresql://"
    f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@"
    f"{POSTGRES_HOST}:{POSTGRES_PORT}/{POSTGRES_DB}",
)

# Pool bounds. Open connections beyond the idle ones are overflow.
DB_MAX_OPEN_CONN = _int_env("DB_MAX_OPEN_CONN", 25)
DB_MAX_IDLE_CONN = _int_env("DB_MAX_IDLE_CONN", 25)
DB_MAX_IDLE_TIME = _int_env("DB_MAX_IDLE_TIME", 25)  # minutes

# Upper bound for every repository operation, in seconds
DB_QUERY_TIMEOUT = _int_env("DB_QUERY_TIMEOUT", 5)

# pool_pre_ping=True helps maintain healthy connections in a pool
engine = create_engine(
    DATABASE_URL,
    pool_size=DB_MAX_IDLE_CONN,
    max_overflow=max(DB_MAX_OPEN_CONN - DB_MAX_IDLE_CONN, 0),
    pool_recycle=DB_MAX_IDLE_TIME * 60,
    pool_pre_ping=True,
)

# autocommit=False ensures transactions must be committed explicitly.
# autoflush=False means changes aren't flushed to DB until commit or explicit flush.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for the ORM table definitions
Base = declarative_base()


def get_db():
    """
    Dependency to provide a new database session for FastAPI endpoints.
    A session is created for each request and automatically closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
