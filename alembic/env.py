"""Alembic env: синхронный движок SQLAlchemy поверх POSTGRES_URI.

Ревизии пишут DDL через op.execute, поэтому target_metadata не нужен.
"""
from __future__ import annotations
import os
from logging.config import fileConfig
from sqlalchemy import create_engine
from alembic import context

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

db_url = os.getenv('POSTGRES_URI') or config.get_main_option('sqlalchemy.url')
if not db_url:
    raise RuntimeError('POSTGRES_URI not set for alembic')


def run_migrations_offline():
    context.configure(url=db_url, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = create_engine(db_url)
    with engine.connect() as conn:
        context.configure(connection=conn)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
