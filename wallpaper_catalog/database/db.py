import logging
import os

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import create_engine
from sqlalchemy.orm import Session as SASession, sessionmaker

Session: sessionmaker | None = None


def get_alembic_config(database_url: str) -> Config:
    scripts_path = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "alembic_db")
    )
    config = Config()
    config.set_main_option("script_location", scripts_path)
    config.set_main_option("sqlalchemy.url", database_url)
    return config


def init_db(database_url: str) -> None:
    """Bring the database up to the latest migration and bind the session factory."""
    global Session

    config = get_alembic_config(database_url)
    engine = create_engine(database_url)

    with engine.connect() as conn:
        context = MigrationContext.configure(conn)
        current_rev = context.get_current_revision()

    script = ScriptDirectory.from_config(config)
    target_rev = script.get_current_head()

    if target_rev is None:
        logging.warning("No target revision found.")
    elif current_rev != target_rev:
        logging.info(f"Upgrading database from {current_rev} to {target_rev}")
        with engine.begin() as conn:
            config.attributes["connection"] = conn
            command.upgrade(config, target_rev)
        logging.info("Database upgrade completed")

    Session = sessionmaker(bind=engine)


def create_session() -> SASession:
    if Session is None:
        raise RuntimeError("Database is not initialized; call init_db() first.")
    return Session()
