"""
Alembic environment for the CRM schema.

The URL comes from DATABASE_URL (postgres:// is rewritten to postgresql://)
or, failing that, from sqlalchemy.url in alembic.ini.
"""

import os
from logging.config import fileConfig

from sqlalchemy import pool, create_engine
from alembic import context

from database.connection import Base, _normalize_url
from database import models  # noqa: F401 - registers the tables on Base.metadata

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url():
    url = _normalize_url(os.environ.get('DATABASE_URL') or config.get_main_option('sqlalchemy.url'))
    if not url:
        raise RuntimeError("Set DATABASE_URL (or sqlalchemy.url in alembic.ini) to run migrations")
    return url


def _configure_kwargs(url):
    # SQLite cannot ALTER most columns in place
    return {
        'target_metadata': target_metadata,
        'compare_type': True,
        'render_as_batch': url.startswith('sqlite'),
    }


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    url = get_url()
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(url)
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Connect and apply the migrations."""
    url = get_url()
    connectable = create_engine(url, poolclass=pool.NullPool)

    try:
        with connectable.connect() as connection:
            context.configure(connection=connection, **_configure_kwargs(url))
            with context.begin_transaction():
                context.run_migrations()
    finally:
        connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
