from logging.config import fileConfig

from alembic import context

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# the app factory reads .env / DATABASE_URL exactly as the service does
from app import create_app
from configs import db
from db.models import *  # noqa: F401,F403

flask_app = create_app()
target_metadata = db.metadata


def _compare_kw(dialect_name: str) -> dict:
    return dict(
        compare_type=True,
        compare_server_default=True,
        # SQLite cannot ALTER constraints in place
        render_as_batch=dialect_name == "sqlite",
    )


def run_migrations_offline() -> None:
    url = flask_app.config["SQLALCHEMY_DATABASE_URI"]
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_compare_kw(url.split(":", 1)[0].split("+", 1)[0])
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    with flask_app.app_context():
        engine = db.engine
        with engine.connect() as connection:
            context.configure(
                connection=connection,
                target_metadata=target_metadata,
                **_compare_kw(engine.dialect.name)
            )
            with context.begin_transaction():
                context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
