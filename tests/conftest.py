"""
Pytest configuration for the record store.

Provides fixtures for:
- A fresh database file per test
- Storage engine and router instances bound to it
- A recorder that captures change notifications
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Generator, List

import pytest

from recordstore.config import get_settings
from recordstore.domain.identifiers import Identifier
from recordstore.infrastructure.storage import StorageEngine
from recordstore.router import RecordRouter


class ChangeRecorder:
    """Callable observer that remembers every identifier it was told about."""

    def __init__(self) -> None:
        self.calls: List[Identifier] = []

    def __call__(self, identifier: Identifier) -> None:
        self.calls.append(identifier)

    @property
    def seen(self) -> List[str]:
        return [str(identifier) for identifier in self.calls]


@pytest.fixture(autouse=True)
def _clear_settings_cache() -> Generator[None, None, None]:
    """
    Drop the cached Settings so environment overrides apply per test.
    """
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _restore_root_logging() -> Generator[None, None, None]:
    """
    configure_logging replaces root handlers (the CLI calls it too); put them back.
    """
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "shelter.db"


@pytest.fixture
def storage(db_path: Path) -> StorageEngine:
    return StorageEngine(db_path)


@pytest.fixture
def router(storage: StorageEngine) -> RecordRouter:
    return RecordRouter(storage)


@pytest.fixture
def recorder() -> ChangeRecorder:
    return ChangeRecorder()


@pytest.fixture
def toto() -> dict:
    """
    The sample payload used by ``insert_sample``.
    """
    return {"name": "Toto", "category": "Terrier", "classifier": 1, "measure": 7}
