"""
Database connection management for the Motor Care CRM.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import os
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal are initialized by configure_engine()
engine = None
SessionLocal = None


def _normalize_url(url):
    # Render's postgres:// vs postgresql:// URL format
    if url and url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def configure_engine(database_url=None, **engine_options):
    """
    Create the SQLAlchemy engine and session factory.

    Args:
        database_url: Connection string, defaults to DATABASE_URL
        engine_options: Extra keyword arguments for create_engine

    Returns:
        The configured engine
    """
    global engine, SessionLocal

    url = _normalize_url(database_url or os.environ.get('DATABASE_URL'))
    if not url:
        logger.error("DATABASE_URL environment variable is not set!")
        raise RuntimeError(
            "DATABASE_URL not configured. Cannot connect to database. "
            "Please set the DATABASE_URL environment variable."
        )

    if engine is not None:
        engine.dispose()

    if url.startswith('sqlite'):
        options = {'connect_args': {'check_same_thread': False}}
        if url in ('sqlite://', 'sqlite:///:memory:'):
            # A single shared connection keeps the in-memory database alive
            options['poolclass'] = StaticPool
        engine = create_engine(url, **options)
        event.listen(engine, 'connect', _enable_sqlite_foreign_keys)
    else:
        options = {
            'poolclass': QueuePool,
            'pool_size': 5,
            'max_overflow': 10,
            'pool_pre_ping': True,
            'pool_recycle': 300,
        }
        options.update(engine_options)
        engine = create_engine(url, **options)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
    logger.info(f"Database engine created for {engine.url.get_backend_name()}")
    return engine


def get_engine():
    """Get or create the SQLAlchemy engine."""
    if engine is None:
        configure_engine()
    return engine


def get_session_factory():
    """Get or create the session factory."""
    if SessionLocal is None:
        configure_engine()
    return SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for getting a database session.
    Commits on success, rolls back on any exception.

    Example:
        with get_db_session() as db:
            customers = db.query(Customer).all()
    """
    session_factory = get_session_factory()
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def init_db():
    """
    Create all tables that do not exist yet.
    Production deployments run Alembic migrations instead.
    """
    # Import models to ensure they're registered with Base
    from database import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created/verified")


def drop_db():
    """Drop every table. Used by the test-suite."""
    from database import models  # noqa: F401

    Base.metadata.drop_all(bind=get_engine())


def reset_engine():
    """Dispose the engine and forget the session factory."""
    global engine, SessionLocal

    if engine is not None:
        engine.dispose()
    engine = None
    SessionLocal = None
