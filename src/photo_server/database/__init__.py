"""Database connection handling."""

from .engine import connect_database, create_database_engine, database_url

__all__ = [
    'connect_database',
    'create_database_engine',
    'database_url',
]
