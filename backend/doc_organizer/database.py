import logging
import sqlite3
from pathlib import Path

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

logger = logging.getLogger("doc_organizer")


class Base(DeclarativeBase):
    pass


def _set_sqlite_pragmas(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    filename          VARCHAR(255) NOT NULL,
    original_filename VARCHAR(255) NOT NULL,
    category          VARCHAR(50) NOT NULL
                      CHECK(category IN ('personal-ids','educational-docs','work-experience',
                                         'resumes','invoices','insurance',
                                         'bank-statements','others')),
    file_type         VARCHAR(10) NOT NULL CHECK(file_type IN ('pdf','jpg','jpeg','png')),
    file_size         INTEGER NOT NULL,
    file_path         VARCHAR(500) NOT NULL,
    description       TEXT,
    document_number   VARCHAR(100),
    upload_date       TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_category ON documents(category);
CREATE INDEX IF NOT EXISTS idx_upload_date ON documents(upload_date);
CREATE INDEX IF NOT EXISTS idx_filename ON documents(original_filename);
"""


MIGRATIONS = [
    # v0.2: lookups by stored filename
    "CREATE INDEX IF NOT EXISTS idx_stored_filename ON documents(filename)",
]


def init_db(db_path: Path):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(db_path))
    conn.executescript(SCHEMA_SQL)
    for migration in MIGRATIONS:
        try:
            conn.execute(migration)
            conn.commit()
        except sqlite3.OperationalError:
            pass  # already applied
    conn.close()


class Database:
    """Owns the engine and session factory for one SQLite file.

    ``init()`` creates the schema and must run before sessions are handed
    out; ``dispose()`` releases pooled connections on shutdown.
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
        )
        event.listen(self.engine, "connect", _set_sqlite_pragmas)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

    def init(self):
        init_db(self.db_path)
        conn = sqlite3.connect(str(self.db_path))
        result = conn.execute("PRAGMA integrity_check").fetchone()
        conn.close()
        if result and result[0] == "ok":
            logger.info("Database initialized at %s", self.db_path)
        else:
            logger.error("DATABASE INTEGRITY CHECK FAILED: %s", result)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self):
        self.engine.dispose()
        logger.info("Database connection closed")


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
