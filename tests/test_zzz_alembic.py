"""Alembic migration tests.

File named test_zzz_alembic.py to sort LAST in pytest collection order.
Each test migrates its own SQLite file, so no database server is needed.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

import pytest
from sqlalchemy import create_engine, inspect, text

from recipebox.db import models  # noqa: F401
from recipebox.db.base import Base

ROOT = Path(__file__).resolve().parents[1]
HEAD = "001_initial_schema"


def _alembic(db_path: Path, *args: str) -> subprocess.CompletedProcess[str]:
    env = {**os.environ, "RBX_DATABASE_URL": f"sqlite+aiosqlite:///{db_path}"}
    return subprocess.run(
        [sys.executable, "-m", "alembic", *args],
        cwd=ROOT,
        env=env,
        capture_output=True,
        text=True,
    )


@pytest.fixture
def migrated_db(tmp_path: Path) -> Path:
    db_path = tmp_path / "migrated.db"
    result = _alembic(db_path, "upgrade", "head")
    assert result.returncode == 0, f"alembic upgrade failed: {result.stderr}"
    return db_path


def test_alembic_current_shows_head(migrated_db: Path) -> None:
    """alembic current shows the latest revision."""
    result = _alembic(migrated_db, "current")
    assert result.returncode == 0
    assert HEAD in result.stdout


def test_upgraded_schema_matches_models(migrated_db: Path) -> None:
    """Every mapped table, column and index exists after upgrade head."""
    engine = create_engine(f"sqlite:///{migrated_db}")
    try:
        inspector = inspect(engine)
        assert set(inspector.get_table_names()) - {"alembic_version"} == set(Base.metadata.tables)

        for name, table in Base.metadata.tables.items():
            columns = {col["name"] for col in inspector.get_columns(name)}
            assert columns == set(table.columns.keys()), name
            indexes = {idx["name"] for idx in inspector.get_indexes(name)}
            assert {idx.name for idx in table.indexes} <= indexes, name

        uniques = {uq["name"] for uq in inspector.get_unique_constraints("ratings")}
        assert "uq_ratings_recipe_user" in uniques

        with engine.connect() as conn:
            assert conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one() == HEAD
    finally:
        engine.dispose()
