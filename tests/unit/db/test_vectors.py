"""Tests for embedding blob encoding."""

from __future__ import annotations

import struct

import pytest

from gatewayrag.db.vectors import EMBEDDING_DIMS, to_blob


def test_to_blob_is_float32():
    blob = to_blob([1.0, 2.0, 3.0], dimensions=3)
    assert len(blob) == 3 * 4
    assert struct.unpack("3f", blob) == (1.0, 2.0, 3.0)


def test_to_blob_default_dimensions(vec):
    assert len(to_blob(vec(0.5))) == EMBEDDING_DIMS * 4


def test_to_blob_wrong_length_raises():
    with pytest.raises(ValueError, match="unexpected embedding size 2"):
        to_blob([0.1, 0.2], dimensions=768)
