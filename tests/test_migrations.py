import pathlib

import sqlalchemy as sa
from alembic import command
from alembic.config import Config as AlembicConfig

from cvflow.models import Candidate

ROOT = pathlib.Path(__file__).resolve().parents[1]


def test_migration_creates_candidates_table(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    cfg = AlembicConfig(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))

    command.upgrade(cfg, "head")

    engine = sa.create_engine(url)
    columns = {c["name"] for c in sa.inspect(engine).get_columns("candidates")}
    engine.dispose()
    assert set(Candidate.SERIALIZED) <= columns
