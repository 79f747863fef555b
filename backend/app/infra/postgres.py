import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models.base import Base

logger = logging.getLogger(__name__)

POOL_SIZE = 5
POOL_OVERFLOW = 10
POOL_RECYCLE_SECONDS = 3600

# =========================
# ENGINE CONFIGURATION
# =========================

def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Build an engine for the configured URL.
    PostgreSQL gets a connection pool; in-memory SQLite shares one connection
    across threads so every session sees the same database.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_size=POOL_SIZE,
        max_overflow=POOL_OVERFLOW,
        pool_recycle=POOL_RECYCLE_SECONDS,
    )

# =========================
# SESSION CONFIGURATION
# =========================

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine
    )

# =========================
# DATABASE FUNCTIONS
# =========================

@contextmanager
def db_session(session_factory: sessionmaker):
    """
    Context manager for one unit of work.
    Usage:
        with db_session(factory) as db:
            db.add(row)
    Commits on success, rolls back and re-raises on any error.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db(engine: Engine, drop: bool = False):
    """
    Create all tables based on registered models.
    """
    # Import models here to register them with Base
    from app.models.message import Message  # noqa: F401

    if drop:
        Base.metadata.drop_all(bind=engine)
        logger.info("Dropped all tables")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")


def check_connection(engine: Engine) -> bool:
    """
    Test DB connection.
    """
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False
