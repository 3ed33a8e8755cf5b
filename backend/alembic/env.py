"""
Migration runner for the studio booking schema.

`alembic upgrade head` applies migrations over DATABASE_URL_SYNC;
`alembic upgrade head --sql` prints them instead. The capacity CHECK
constraints on `events` live in the migrations, so type and server-default
comparison is switched on for autogenerate.
"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from studio_booking.core.config import get_settings
from studio_booking.db.base import Base
import studio_booking.models  # noqa: F401  registers Instructor, Event, Booking on Base.metadata

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

database_url = get_settings().DATABASE_URL_SYNC
target_metadata = Base.metadata

configure_options = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "compare_server_default": True,
}


def migrate_as_sql(url: str) -> None:
    context.configure(
        url=url,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **configure_options,
    )
    with context.begin_transaction():
        context.run_migrations()


def migrate_connected(url: str) -> None:
    engine = create_engine(url, poolclass=pool.NullPool)
    try:
        with engine.connect() as connection:
            context.configure(connection=connection, **configure_options)
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    migrate_as_sql(database_url)
else:
    migrate_connected(database_url)
