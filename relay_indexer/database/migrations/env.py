"""Alembic environment for the relay indexer store

The database URL is resolved the same way as the indexer itself
(INDEXER_DB_URL, then INDEXER_DB_USER/PASSWORD/NAME), unless the caller
already set ``sqlalchemy.url`` on the config.
"""

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from relay_indexer.core.config import build_database_url
from relay_indexer.database.base import Base
from relay_indexer.database.types import EvmAddressType, EvmHashType, TokenAmountType
from relay_indexer.database import tables  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def render_item(type_, obj, autogen_context):
    """Render custom column types with the import they need"""
    if type_ == 'type':
        for custom in (EvmAddressType, EvmHashType, TokenAmountType):
            if isinstance(obj, custom):
                autogen_context.imports.add(f"from relay_indexer.database.types import {custom.__name__}")
                return f"{custom.__name__}()"
    return False


def get_database_url() -> str:
    url = config.get_main_option("sqlalchemy.url")
    if url:
        return url
    return build_database_url(os.environ)


def run_migrations_offline() -> None:
    context.configure(
        url=get_database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_item=render_item,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    config_dict = config.get_section(config.config_ini_section) or {}
    config_dict['sqlalchemy.url'] = get_database_url()

    connectable = engine_from_config(
        config_dict,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_item=render_item,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
