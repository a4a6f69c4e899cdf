from __future__ import annotations

import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from roledash.db import Base


config = context.config

if config.config_file_name is not None and config.get_section("loggers"):
    fileConfig(config.config_file_name)


def _normalize_sqlalchemy_url(url: str) -> str:
    """Force a synchronous driver so Alembic can run the migration."""
    if not url:
        return url
    url = url.strip()
    if url.startswith("mysql+aiomysql://"):
        url = "mysql+pymysql://" + url[len("mysql+aiomysql://"):]
    if url.startswith("mysql://"):
        url = "mysql+pymysql://" + url[len("mysql://"):]
    return url.replace("@localhost", "@127.0.0.1")


# Order of precedence: ROLEDASH_DATABASE_URL, the URL set by init_db, a local default.
chosen = (
    os.getenv("ROLEDASH_DATABASE_URL")
    or config.get_main_option("sqlalchemy.url")
    or "mysql+pymysql://roledash@127.0.0.1:3306/roledash"
)
config.set_main_option(
    "sqlalchemy.url", _normalize_sqlalchemy_url(chosen).replace("%", "%%")
)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
        pool_pre_ping=True,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
