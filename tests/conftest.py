"""Shared pytest fixtures and test doubles for loopsync tests."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from loopsync.domain.snapshot import Snapshot
from loopsync.infrastructure.database.engine import MEMORY, init_database
from loopsync.infrastructure.identity import IdentityStream
from loopsync.infrastructure.local_store import LocalDurableStore, MemoryKeyValueStorage
from loopsync.infrastructure.remote import OnChange, SqlDocumentStore, Unsubscribe

DEBOUNCE = 0.02


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine() -> Generator[Engine]:
    """In-memory SQLite engine with all tables created."""
    engine = init_database(MEMORY)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def memory_storage() -> MemoryKeyValueStorage:
    return MemoryKeyValueStorage()


@pytest.fixture
def local_store(memory_storage: MemoryKeyValueStorage) -> LocalDurableStore:
    return LocalDurableStore(memory_storage)


@pytest.fixture
def documents(db_engine: Engine) -> SqlDocumentStore:
    return SqlDocumentStore(db_engine)


@pytest.fixture
def remote(documents: SqlDocumentStore) -> RecordingStore:
    """Document store wrapper that records every put and can be told to fail."""
    return RecordingStore(documents)


@pytest.fixture
def identities() -> IdentityStream:
    return IdentityStream()


@pytest.fixture
def _isolated_project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run the CLI from an empty temp directory with no config in scope."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOOPSYNC_CONFIG", raising=False)
    (tmp_path / "loopsync.toml").write_text("[sync]\ndebounce_seconds = 0.0\n")


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class RecordingStore:
    """Wraps a real document store; records puts and injects failures.

    Attributes:
        puts: ``(identity_id, data, version)`` for every put attempted.
        fail_puts: Number of upcoming puts to reject (``put`` returns False).
        fail_gets: When true, ``get`` raises ``ConnectionError``.
    """

    def __init__(self, inner: SqlDocumentStore) -> None:
        self.inner = inner
        self.puts: list[tuple[str, dict[str, Any], int]] = []
        self.gets: list[str] = []
        self.fail_puts = 0
        self.fail_gets = False

    async def get(self, identity_id: str) -> Snapshot | None:
        self.gets.append(identity_id)
        if self.fail_gets:
            msg = "remote unreachable"
            raise ConnectionError(msg)
        return await self.inner.get(identity_id)

    def subscribe(self, identity_id: str, on_change: OnChange) -> Unsubscribe:
        return self.inner.subscribe(identity_id, on_change)

    async def put(self, identity_id: str, data: dict[str, Any], version: int) -> bool:
        self.puts.append((identity_id, data, version))
        if self.fail_puts > 0:
            self.fail_puts -= 1
            return False
        return await self.inner.put(identity_id, data, version)

    def versions(self) -> list[int]:
        return [version for _, _, version in self.puts]
