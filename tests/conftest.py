"""Shared pytest fixtures."""

from __future__ import annotations

import logging
import os

import pytest

# Use litellm's bundled model cost map instead of fetching it over the network
# at import time (the fetch can deadlock imports when offline).
os.environ.setdefault("LITELLM_LOCAL_MODEL_COST_MAP", "True")

from gatewayrag.db.connection import Database
from gatewayrag.db.schema import initialize


@pytest.fixture
def tmp_db(tmp_path):
    """File-based knowledge base in tmp_path with the schema initialized."""
    db = Database(tmp_path / "gatewayrag.db")
    with db.session() as conn:
        initialize(conn)
    return db


@pytest.fixture
def vec():
    """Build a 768-dim vector whose first component is *x*."""

    def _make(x: float, dims: int = 768) -> list[float]:
        return [x] + [0.0] * (dims - 1)

    return _make


@pytest.fixture(autouse=True)
def _restore_root_logger():
    """Undo handlers added by setup_logging() (CLI callback) after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
