"""Ambiente do Alembic para o banco do estoque."""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import create_engine, pool

from estoque_let import models  # noqa: F401  (registra as tabelas no metadata)
from estoque_let.config import settings
from estoque_let.database import Base

config = context.config

# ConfigParser interpreta "%"; senhas URL-encoded precisam de escape
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite não altera colunas in-place: usa batch mode
COMMON_OPTIONS = {
    "target_metadata": target_metadata,
    "compare_type": True,
    "compare_server_default": True,
    "render_as_batch": settings.is_sqlite,
}


def run_migrations_offline() -> None:
    """Gera o SQL das migrations sem conectar ao banco."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **COMMON_OPTIONS,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Aplica as migrations no banco de DATABASE_URL."""
    engine = create_engine(
        settings.database_url,
        poolclass=pool.NullPool,
        connect_args={} if settings.is_sqlite else {"client_encoding": "utf8"},
    )
    with engine.connect() as connection:
        context.configure(connection=connection, **COMMON_OPTIONS)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
