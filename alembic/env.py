"""Alembic environment for the MediaVault record store."""

from __future__ import annotations

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from mediavault.db.db_models import Base
from mediavault.search.search_index import INDEX_TABLE
from mediavault.settings import PipelineSettings

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)

target_metadata = Base.metadata


def _database_url() -> str:
    """``MEDIAVAULT_DATABASE_URL`` (or ``.env``) wins over ``sqlalchemy.url``."""
    settings = PipelineSettings()
    if "database_url" in settings.model_fields_set:
        return settings.database_url
    return config.get_main_option("sqlalchemy.url") or settings.database_url


def _include_object(obj, name, type_, reflected, compare_to) -> bool:
    # the FTS5 table and its shadow tables are created by raw SQL in the migration
    return not (type_ == "table" and name.startswith(INDEX_TABLE))


def _configure(**kwargs) -> None:
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        render_as_batch=True,
        include_object=_include_object,
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(url=_database_url(), literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    section = config.get_section(config.config_ini_section, {})
    section["sqlalchemy.url"] = _database_url()
    connectable = engine_from_config(section, prefix="sqlalchemy.", poolclass=pool.NullPool)

    with connectable.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
