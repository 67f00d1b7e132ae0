"""Generate database session"""

import logging
from functools import lru_cache
from typing import Generator

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from xiangqi.core.config import get_settings
from xiangqi.db.schema import Base

logger = logging.getLogger(__name__)


@lru_cache
def get_engine() -> Engine:
    """Engine for the configured database (XIANGQI_DATABASE_URL). All tables are created on first use."""
    database_url = get_settings().database_url
    engine = create_engine(database_url)

    # Ensure all tables are created
    Base.metadata.create_all(bind=engine)
    logger.info("Connected to %s", engine.url.render_as_string(hide_password=True))
    return engine


@lru_cache
def get_session_factory() -> sessionmaker[Session]:
    return sessionmaker(bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()
