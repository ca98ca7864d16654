"""
Shared pytest fixtures for the reference catalog tests.

Provides:
  - The bundled reference catalog (loaded once per session)
  - An in-memory catalog builder for hand-made records
  - FastAPI TestClient with the catalog dependency wired in
"""

import sys
from pathlib import Path
from typing import Any, Dict, List

import pytest

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

DATA_DIR = PROJECT_ROOT / "data"
SCHEMA_DIR = PROJECT_ROOT / "schemas"


# ---------------------------------------------------------------------------
# Catalog fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def reference_catalog():
    """Catalog built from the bundled data/ and schemas/ directories."""
    from catalog_service import ReferenceCatalog
    from record_store import load_record_store

    records, schemas = load_record_store(DATA_DIR, SCHEMA_DIR, validate=True)
    return ReferenceCatalog.from_records(records, schemas)


def record(record_id: str, name: str, **fields: Any) -> Dict[str, Any]:
    """Minimal valid record with the four mandatory fields."""
    entry = {"id": record_id, "name": name, "source": "Test", "page": 1}
    entry.update(fields)
    return entry


def build_catalog(**schemas: List[Dict[str, Any]]):
    """Build a catalog where every schema is empty except the ones passed.

    Schema ids with dots or dashes are passed with underscores:
    ``build_catalog(chassis_abilities=[...], classes_core=[...])``.
    """
    from catalog_service import ReferenceCatalog
    from constants import SCHEMA_IDS

    records: Dict[str, List[Dict[str, Any]]] = {sid: [] for sid in SCHEMA_IDS}
    by_key = {sid.replace("-", "_").replace(".", "_"): sid for sid in SCHEMA_IDS}
    for key, rows in schemas.items():
        records[by_key[key]] = list(rows)
    return ReferenceCatalog.from_records(records)


@pytest.fixture()
def make_catalog():
    return build_catalog


# ---------------------------------------------------------------------------
# FastAPI TestClient
# ---------------------------------------------------------------------------

@pytest.fixture()
def client(reference_catalog):
    """TestClient over the app with the bundled catalog injected."""
    from fastapi.testclient import TestClient
    from catalog_router import get_catalog
    from main import app

    app.dependency_overrides[get_catalog] = lambda: reference_catalog
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
