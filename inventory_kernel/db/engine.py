"""
Module: inventory_kernel.db.engine
Responsibility: Engine construction for the server database and the client
    queue database, session factories, and the transactional scope every
    committed unit of work runs in.
Architecture position: Kernel > DB.  May import from db/base.py and the
    kernel models.  MUST NOT import from services/, selectors/ or outer
    packages.  Outer packages register their own tables by importing their
    model modules before calling create_tables().

Backends:
    - PostgreSQL (or any pooled server database) backs the authoritative
      product tables.  Sessions run READ COMMITTED; replay takes explicit
      row locks (SELECT ... FOR UPDATE) per action.
    - SQLite backs the client's durable action queue and the test suite.
      pysqlite opens transactions implicitly and breaks SAVEPOINT nesting,
      so SQLite engines emit their own BEGIN and turn on foreign keys for
      every connection.

Invariants enforced:
    - Services and the reconciliation engine only flush.  session_scope()
      is the one place a transaction is committed or rolled back.
"""

from contextlib import contextmanager
from typing import Callable, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from inventory_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _enable_sqlite_savepoints(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine_for_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Build an engine for ``database_url``.

    ``sqlite:///:memory:`` gets a StaticPool so every session sees the same
    database.  Other SQLite URLs use the dialect's default pool.  Anything
    else is a pooled server connection with pre-ping.

    Pool arguments are ignored for SQLite.
    """
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        kwargs: dict = {"echo": echo}
        if url.database in (None, "", ":memory:"):
            kwargs.update(
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        engine = create_engine(url, **kwargs)
        _enable_sqlite_savepoints(engine)
    else:
        engine = create_engine(
            url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=True,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    logger.info(
        "engine_created",
        extra={"dialect": engine.dialect.name, "database": url.database},
    )
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Session factory whose objects stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(
    session_factory: Callable[[], Session],
) -> Generator[Session, None, None]:
    """
    Run a unit of work in one transaction.

    Commits on normal exit.  On an exception the transaction is rolled
    back, the rollback logged, and the exception re-raised.  The session
    is closed either way.

    Usage:
        with session_scope(factory) as session:
            ProductStore(session).update(product_id, {"location": "B-2"})
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine, tables: list | None = None) -> None:
    """
    Create the mapped tables that do not exist yet.

    Args:
        engine: Target engine.
        tables: Subset of Table objects.  Defaults to every table mapped
            so far: the kernel tables plus any an outer package has
            registered by importing its models.
    """
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401

    Base.metadata.create_all(engine, tables=tables)


def drop_tables(engine: Engine) -> None:
    """Drop every mapped table.  Tests and local resets only."""
    from inventory_kernel.db.base import Base

    Base.metadata.drop_all(engine)
