"""Database connection, session management and the transaction primitive shared by all write paths."""

import logging
import sqlite3
from collections.abc import Callable, Generator, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings
from app.core.context import RequestContext, bind_request_context, get_request_context
from app.core.errors import DisceptoError, InternalError, OperationCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Session.info key tracking how many transaction() blocks are open.
_TX_DEPTH_KEY = "tx_depth"

# PostgreSQL SQLSTATE for query_canceled (statement_timeout fired).
PG_QUERY_CANCELED = "57014"


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Dependency that yields a DB session bound to a fresh request deadline and closes it when done."""
    db = SessionLocal()
    bind_request_context(db, RequestContext())
    try:
        yield db
    finally:
        db.close()


def check_db_connected(db: Session) -> bool:
    """Run a trivial query to verify the database is reachable."""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception:
        return False


def _is_query_canceled(exc: OperationalError) -> bool:
    return getattr(exc.orig, "pgcode", None) == PG_QUERY_CANCELED


def _apply_statement_timeout(session: Session, ctx: RequestContext) -> None:
    """Let PostgreSQL abort a blocked statement once the request budget is spent."""
    if session.get_bind().dialect.name != "postgresql":
        return
    remaining_ms = max(1, int(ctx.remaining() * 1000))
    session.execute(text(f"SET LOCAL statement_timeout = {remaining_ms}"))


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """
    Run a block inside one database transaction.

    The outermost block commits on success and rolls back on any error; nested
    blocks join the outer transaction and never commit on their own. Storage
    errors are re-raised as InternalError (root cause logged), a fired request
    deadline as OperationCancelled.
    """
    depth = session.info.get(_TX_DEPTH_KEY, 0)
    session.info[_TX_DEPTH_KEY] = depth + 1
    outermost = depth == 0
    ctx = get_request_context(session)
    try:
        if outermost and ctx is not None:
            ctx.check()
            _apply_statement_timeout(session, ctx)
        yield session
        if outermost:
            if ctx is not None:
                ctx.check()
            session.commit()
    except DisceptoError:
        if outermost:
            session.rollback()
        raise
    except OperationalError as e:
        if outermost:
            session.rollback()
        if _is_query_canceled(e):
            raise OperationCancelled() from e
        logger.exception("Transaction failed: %s", e)
        raise InternalError("Storage error") from e
    except SQLAlchemyError as e:
        if outermost:
            session.rollback()
        logger.exception("Transaction failed: %s", e)
        raise InternalError("Storage error") from e
    except BaseException:
        if outermost:
            session.rollback()
        raise
    finally:
        session.info[_TX_DEPTH_KEY] = depth


def exec_tx(session: Session, body: Callable[[Session], T]) -> T:
    """Run body(session) in a transaction (see transaction()) and return its result."""
    with transaction(session) as tx:
        return body(tx)
