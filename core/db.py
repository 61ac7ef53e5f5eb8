import logging
import os
import ssl
import time
import urllib.parse
from contextlib import contextmanager
from typing import Tuple

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL as _CONFIGURED_DATABASE_URL

logger = logging.getLogger(__name__)

# Check if we're in a testing environment
TESTING = os.getenv("TESTING", "false").lower() == "true"


def _resolve_database_url() -> str:
    if _CONFIGURED_DATABASE_URL:
        return _CONFIGURED_DATABASE_URL
    if TESTING:
        logger.warning("Using in-memory SQLite database for testing")
        return "sqlite:///:memory:"
    raise ValueError("DATABASE_URL environment variable is not set")


def _postgres_url_and_ssl(url: str) -> Tuple[str, dict]:
    """
    Rewrite a Postgres URL for the pg8000 driver.

    pg8000 does not understand ``sslmode`` in the query string, so it is
    stripped and turned into an ``ssl_context`` connect argument instead.
    """
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    parsed = urllib.parse.urlparse(url)
    query = urllib.parse.parse_qs(parsed.query)
    ssl_mode = query.pop("sslmode", [None])[0]

    scheme = parsed.scheme
    if "+" not in scheme:
        scheme = "postgresql+pg8000"
    url = urllib.parse.urlunparse(
        (scheme, parsed.netloc, parsed.path, parsed.params, urllib.parse.urlencode(query, doseq=True), "")
    )

    connect_args = {}
    if ssl_mode != "disable" and not TESTING:
        # managed Postgres hosts present certificates we do not pin
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl_context"] = ssl_context
    return url, connect_args


def _build_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {}
        if ":memory:" in url:
            # every session must see the same in-memory database
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=False, connect_args={"check_same_thread": False}, **kwargs)

    url, connect_args = _postgres_url_and_ssl(url)
    return create_engine(
        url,
        pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
        max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "20")),
        pool_timeout=int(os.getenv("DB_POOL_TIMEOUT_SECONDS", "30")),
        pool_recycle=int(os.getenv("DB_POOL_RECYCLE_SECONDS", "300")),
        pool_pre_ping=True,
        echo=False,
        connect_args=connect_args,
    )


DATABASE_URL = _resolve_database_url()
engine = _build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def _install_slow_query_logging(_engine):
    threshold_ms = float(os.getenv("SLOW_DB_QUERY_THRESHOLD_MS", "200"))
    if threshold_ms <= 0:
        return

    slow_logger = logging.getLogger("db.slow_query")

    @event.listens_for(_engine, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._query_start_time = time.perf_counter()

    @event.listens_for(_engine, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_query_start_time", None)
        if start is None:
            return
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        if elapsed_ms >= threshold_ms:
            slow_logger.warning(
                "SLOW_DB_QUERY | ms=%.1f | stmt=%.500s | params=%.500r",
                elapsed_ms,
                " ".join(str(statement).split()),
                parameters,
            )


_install_slow_query_logging(engine)


def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context():
    """Context manager for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables():
    """Create all tables"""
    import models  # noqa: F401  registers the mappers on Base

    Base.metadata.create_all(bind=engine)


def drop_tables():
    """Drop all tables"""
    Base.metadata.drop_all(bind=engine)
