import os
import pathlib
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1]))

from wsgi import app  # noqa: E402
from cvflow.extensions import db  # noqa: E402

config = context.config
if config.config_file_name and os.path.exists(config.config_file_name):
    fileConfig(config.config_file_name, disable_existing_loggers=False)


def _target():
    """Database URL and candidate metadata, read inside the app context."""
    with app.app_context():
        import cvflow.models  # noqa: F401

        url = os.getenv("DATABASE_URL") or app.config["SQLALCHEMY_DATABASE_URI"]
        return url, db.metadata


def run_offline(url, metadata):
    context.configure(url=url, target_metadata=metadata, literal_binds=True,
                      compare_type=True, render_as_batch=True)
    with context.begin_transaction():
        context.run_migrations()


def run_online(url, metadata):
    engine = engine_from_config({"sqlalchemy.url": url}, prefix="sqlalchemy.",
                                poolclass=pool.NullPool)
    with engine.connect() as connection:
        # batch mode so ALTERs work on SQLite
        context.configure(connection=connection, target_metadata=metadata,
                          compare_type=True, render_as_batch=True)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline(*_target())
else:
    run_online(*_target())
