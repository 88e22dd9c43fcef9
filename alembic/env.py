"""Alembic environment configuration.

Reads the database URL from lan_linkup.config and registers the LAN Linkup models
so autogenerate can detect schema changes.
"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

# Import our app's config and models
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from lan_linkup.config import settings
from lan_linkup.database import Base

# Import all models so they register with Base.metadata
from lan_linkup.models.user import User  # noqa: F401
from lan_linkup.models.party import Party  # noqa: F401
from lan_linkup.models.attendee import PartyAttendee  # noqa: F401
from lan_linkup.models.friendship import Friendship  # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
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
