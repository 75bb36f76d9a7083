"""SQLite engine and schema via SQLAlchemy Core."""

from loopsync.infrastructure.database.engine import MEMORY, create_db_engine, init_database
from loopsync.infrastructure.database.schema import documents, kv_entries, metadata

__all__ = [
    "MEMORY",
    "create_db_engine",
    "documents",
    "init_database",
    "kv_entries",
    "metadata",
]
