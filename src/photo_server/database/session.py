"""Database session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session, sessionmaker

from ..core.config import Config, get_config
from ..core.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def get_db_session(config: Config = None) -> Generator[Session, None, None]:
    """Session that commits on success and rolls back on error."""
    config = config or get_config()
    session = sessionmaker(bind=config.db())()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database session error: {e}")
        raise
    finally:
        session.close()
