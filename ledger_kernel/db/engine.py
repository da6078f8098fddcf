"""
Module: ledger_kernel.db.engine
Responsibility: process-wide SQLAlchemy engine and session factory for the
    reference persistence collaborator, plus schema helpers.
Architecture position: Kernel > DB.  May import from db/base.py and models/.
    MUST NOT import from ledger_ingestion.

Usage:
    init_engine_from_url(settings.database_url)
    create_tables()
    with session_scope() as session:
        gateway = SqlAlchemyGateway(session)

Failure modes:
    - RuntimeError from get_engine()/get_session() before
      init_engine_from_url().
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """
    Create the engine for ``database_url`` and bind a session factory to it.

    SQLite (file or in-memory ``sqlite://``) shares one connection through
    a StaticPool so an in-memory database survives across sessions; other
    backends get the default pool with pre-ping.  Sessions do not expire
    objects on commit, so ids of created rows stay readable.  A second call
    replaces the first engine.
    """
    global _engine, _session_factory
    url = make_url(database_url)
    dialect = url.get_backend_name()
    if dialect == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        engine = create_engine(url, echo=echo, pool_pre_ping=True)

    if _engine is not None:
        _engine.dispose()
    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    logger.info("engine_initialized", extra={"dialect": dialect, "echo": echo})
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """New session from the factory; the caller closes it."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session that commits on normal exit and rolls back on exception.

    The session is always closed; the exception is re-raised.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def _metadata():
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401 -- registers every table on Base.metadata

    return Base.metadata


def create_tables() -> None:
    """Create every model table that does not exist yet."""
    metadata = _metadata()
    metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(metadata.tables)})


def drop_tables() -> None:
    """Drop every model table. FOR TESTING ONLY."""
    _metadata().drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
