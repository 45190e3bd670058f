import os
import sys

import pytest

# Ensure the repository root is on sys.path so tests can import the
# `backend` package regardless of the current working directory pytest uses.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

import backend.app.db as db  # noqa: E402


@pytest.fixture
def temp_db(tmp_path, monkeypatch):
    """Point the store at a fresh SQLite file for the duration of a test."""
    monkeypatch.setattr(db, 'DB_PATH', tmp_path / 'test.db')
    db.init_db()
    return db.DB_PATH
