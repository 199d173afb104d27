import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, scoped_session, Session
from sqlalchemy.pool import StaticPool

from tweet_link_saver.config.config import Config
from .models import Base

logger = logging.getLogger(__name__)


def _make_engine(database_url: str):
    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        # One shared connection, otherwise every session sees an empty database
        return create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool
        )
    if database_url.startswith('sqlite'):
        return create_engine(database_url, connect_args={'check_same_thread': False})
    return create_engine(database_url, pool_pre_ping=True)


class DatabaseManager:
    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or Config.DATABASE_URL
        self.engine = _make_engine(self.database_url)
        self.SessionFactory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self.ScopedSession = scoped_session(self.SessionFactory)
        logger.info(f"Using database: {self.engine.url.render_as_string(hide_password=True)}")

    def init_db(self) -> None:
        """Initialize the database, creating all tables"""
        try:
            Base.metadata.create_all(self.engine)
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Error initializing database: {e}")
            raise

    def drop_db(self) -> None:
        """Drop all tables (useful for testing)"""
        try:
            Base.metadata.drop_all(self.engine)
            logger.info("Database tables dropped successfully")
        except Exception as e:
            logger.error(f"Error dropping database tables: {e}")
            raise

    def check_connection(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Get a database session with automatic cleanup"""
        session = self.ScopedSession()
        try:
            yield session
            session.commit()
        except Exception as e:
            session.rollback()
            logger.error(f"Database session error: {e}")
            raise
        finally:
            session.close()
            self.ScopedSession.remove()
