"""
Module: sales_kernel.db.engine
Responsibility: Process-wide engine and session factory for the sales store,
    plus the ``session_scope`` unit of work used by the CLI and tests.
Architecture position: Kernel > DB.  Imports db/base.py and, lazily, the
    model package so ``create_tables`` sees every table.

Invariants enforced:
    - One engine per process; ``init_engine_from_url`` replaces it.
    - ``sqlite://`` (memory) is served through a StaticPool, so separate
      sessions read and write the same database.
    - Sessions keep loaded attributes after commit.

Failure modes:
    - RuntimeError from any accessor used before ``init_engine_from_url``.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sales_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

DEFAULT_DATABASE_URL = "sqlite:///sales360.db"
MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})

_NOT_READY = "Sales database not initialized; call init_engine_from_url() first."

_engine: Engine | None = None
_factory: sessionmaker[Session] | None = None


def _engine_options(database_url: str, echo: bool, pool_pre_ping: bool) -> dict[str, Any]:
    options: dict[str, Any] = {"echo": echo, "pool_pre_ping": pool_pre_ping}
    if not database_url.startswith("sqlite"):
        return options
    # CLI commands and tests may touch the file from more than one thread
    options["connect_args"] = {"check_same_thread": False}
    if database_url in MEMORY_URLS:
        options["poolclass"] = StaticPool
    return options


def init_engine_from_url(
    database_url: str = DEFAULT_DATABASE_URL,
    echo: bool = False,
    pool_pre_ping: bool = True,
) -> Engine:
    """
    Open the sales store at ``database_url`` and bind a session factory to it.

    Args:
        database_url: Any SQLAlchemy URL.  The default is a local SQLite
            file; ``sqlite://`` gives a shared in-memory database.
        echo: Log emitted SQL.
        pool_pre_ping: Check pooled connections before handing them out.
    """
    global _engine, _factory

    _engine = create_engine(
        database_url, **_engine_options(database_url, echo, pool_pre_ping)
    )
    _factory = sessionmaker(bind=_engine, expire_on_commit=False)

    configure_logging()
    logger.info(
        "sales_store_opened",
        extra={
            "dialect": _engine.dialect.name,
            "in_memory": database_url in MEMORY_URLS,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_READY)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _factory is None:
        raise RuntimeError(_NOT_READY)
    return _factory


def get_session() -> Session:
    """Fresh session from the bound factory; the caller closes it."""
    return get_session_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Unit of work: commit when the block finishes, roll back if it raises.

    Services only flush, so everything done inside one block (an import, a
    restore, an undo) lands in a single commit or not at all.
    """
    session = get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        logger.warning("sales_unit_of_work_rolled_back", exc_info=True)
        raise
    else:
        session.commit()
        logger.debug("sales_unit_of_work_committed")
    finally:
        session.close()


def create_tables() -> None:
    from sales_kernel.db.base import Base
    import sales_kernel.models  # noqa: F401  (registers PersistedDomain)

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    from sales_kernel.db.base import Base

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the current engine, if any, and forget the session factory."""
    global _engine, _factory

    engine, _engine, _factory = _engine, None, None
    if engine is not None:
        engine.dispose()


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is None:
        return
    try:
        _engine.dispose()
    except SQLAlchemyError:
        logger.warning("sales_store_dispose_failed", exc_info=True)
