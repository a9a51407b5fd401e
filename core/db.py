"""
core/db.py -- Shared SQLAlchemy engine factory.

auth/store.py and places/store.py each own their tables but build engines the
same way. They may point at the same DATABASE_URL (the default) or at
separate databases.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or places/.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    WAL (Write-Ahead Logging) allows readers to proceed without blocking
    during writes. Set per-connection because SQLite PRAGMAs are not
    inherited by new connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url.

    SQLite URLs get check_same_thread=False (FastAPI runs sync handlers on a
    thread pool, and pooled connections move between threads) and WAL mode.
    Other backends use SQLAlchemy's default connection pool, which is safe for
    concurrent checkout and release.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine
