import logging
import time
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import Settings, get_settings

logger = logging.getLogger(__name__)

SessionLocal = sessionmaker(autocommit=False, autoflush=False)
Base = declarative_base()

_engine: Optional[Engine] = None


def _attach_slow_query_logging(engine: Engine, threshold: float) -> None:
    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        conn.info.setdefault("query_start_time", []).append(time.time())

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, _cursor, statement, _parameters, context, _executemany):
        total = time.time() - conn.info["query_start_time"].pop(-1)
        if total > threshold:
            logger.warning(f"🐌 Slow query ({total:.2f}s): {statement[:200]}...")

    logger.info(f"📊 Slow query logging enabled (threshold: {threshold}s)")


def build_engine(settings: Settings) -> Engine:
    """Create the pooled engine for the configured database.

    SQLite URLs (local development) get the default pool; everything else
    gets the sized QueuePool with pre-ping and recycling.
    """
    if not settings.database_url:
        raise HTTPException(
            status_code=500,
            detail="Database configuration missing. Set DATABASE_URL to the Postgres connection string.",
        )

    if settings.database_url.startswith("sqlite"):
        engine = create_engine(settings.database_url, connect_args={"check_same_thread": False})
    else:
        try:
            engine = create_engine(
                settings.database_url,
                pool_pre_ping=True,
                pool_recycle=settings.db_pool_recycle,
                pool_size=settings.db_pool_size,
                max_overflow=settings.db_max_overflow,
                pool_timeout=settings.db_pool_timeout,
                echo=False,
            )
        except Exception as e:
            logger.error(f"❌ Failed to create database engine: {e}")
            raise
        logger.info(
            f"📊 Connection pool: size={settings.db_pool_size}, "
            f"max_overflow={settings.db_max_overflow}, timeout={settings.db_pool_timeout}s"
        )

    if settings.db_log_slow_queries:
        _attach_slow_query_logging(engine, settings.db_slow_query_threshold)

    logger.info("✅ Database engine created successfully")
    return engine


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
        SessionLocal.configure(bind=_engine)
    return _engine


def get_db():
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
