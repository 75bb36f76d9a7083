"""SQLAlchemy Core table definitions for loopsync storage.

``kv_entries`` backs the local durable key-value store. ``documents`` backs
the reference remote document store: one row per identity holding the
serialized durable partition and its version.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, Table, Text

metadata = MetaData()

kv_entries = Table(
    "kv_entries",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
    Column("modified", Text, nullable=False),
)

documents = Table(
    "documents",
    metadata,
    Column("identity_id", Text, primary_key=True),
    Column("payload", Text, nullable=False),  # JSON object
    Column("version", Integer, nullable=False, default=0, server_default="0"),
    Column("updated_at", Text, nullable=False),
)
