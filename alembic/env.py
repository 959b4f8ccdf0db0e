from logging.config import fileConfig

from sqlalchemy import create_engine, pool
from alembic import context

from agencyhub.core.config import get_settings
from agencyhub.models.base import Base
from agencyhub.models import registry  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Every model is registered on Base.metadata by the registry import above.
target_metadata = Base.metadata

settings = get_settings()


def get_url() -> str:
    """
    DATABASE_URL from Settings, so migrations hit the database the API uses.
    """
    return settings.database_url


def _use_batch(url: str) -> bool:
    # SQLite cannot ALTER most constraints in place.
    return url.startswith("sqlite")


def run_migrations_offline() -> None:
    """Emit SQL for the configured URL without connecting."""
    url = get_url()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=_use_batch(url),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = get_url()
    connectable = create_engine(url, future=True, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=_use_batch(url),
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
