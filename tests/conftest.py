import os
import sys

# Ensure lattice is importable in tests (e.g., `import services...`).
LATTICE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "lattice"))
if LATTICE_DIR not in sys.path:
    sys.path.insert(0, LATTICE_DIR)

import pytest  # noqa: E402

from db.postgres_db import _build_engine, session_scope_for  # noqa: E402
from db.schema import create_schema  # noqa: E402


@pytest.fixture
def sqlite_engine():
    """Fresh in-memory SQLite database with the pipeline schema."""
    engine = _build_engine("sqlite://")
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    return session_scope_for(sqlite_engine)
