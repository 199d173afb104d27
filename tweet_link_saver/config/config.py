from pathlib import Path
import os
import tempfile
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base directory of the project
BASE_DIR = Path(__file__).parent.parent


def _env_flag(name: str, default: str = 'False') -> bool:
    return os.getenv(name, default).lower() == 'true'


class Config:
    """Base configuration class"""
    # Server settings
    DEBUG = _env_flag('DEBUG')
    PORT = int(os.getenv('PORT', '4000'))
    MAX_CONTENT_LENGTH = 100 * 1024  # JSON bodies are tiny, 100KB is plenty
    STATIC_DIR = os.getenv('STATIC_DIR')
    SECRET_KEY = os.getenv('SECRET_KEY')

    # Provider settings (twitterapi.io)
    API_BASE_URL = os.getenv('API_BASE_URL', 'https://api.twitterapi.io')
    REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', '10'))
    THREAD_MAX_PAGES = int(os.getenv('THREAD_MAX_PAGES', '8'))

    # Raw payload dumps for debugging provider responses
    DEBUG_TWEETS = _env_flag('DEBUG_TWEETS')
    DEBUG_PAYLOAD_DIR = os.getenv('DEBUG_PAYLOAD_DIR', tempfile.gettempdir())

    # Database settings (server-side API key records)
    DATABASE_URL = os.getenv('DATABASE_URL', f'sqlite:///{BASE_DIR}/database/tweet_link_saver.db')

    # Security settings
    ENCRYPTION_KEY = os.getenv('ENCRYPTION_KEY')

    # Firebase settings (cloud sync of the API key)
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_CREDENTIALS = os.getenv('FIREBASE_CREDENTIALS')

    # Client settings
    PROXY_URL = os.getenv('PROXY_URL', 'http://localhost:4000')
    CLIENT_DATA_DIR = Path(os.getenv('CLIENT_DATA_DIR', Path.home() / '.tweet-link-saver'))

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_FILE = os.getenv('LOG_FILE')

    @classmethod
    def sync_enabled(cls) -> bool:
        """Cloud sync is on when Firebase is configured"""
        return bool(cls.FIREBASE_PROJECT_ID or cls.FIREBASE_CREDENTIALS)

    @classmethod
    def validate(cls) -> Dict[str, Any]:
        """Validate required configuration settings"""
        missing = []

        # The encryption key only matters once keys are stored server-side
        if cls.sync_enabled() and not cls.ENCRYPTION_KEY:
            missing.append('ENCRYPTION_KEY')

        if cls.THREAD_MAX_PAGES < 1:
            raise ValueError("THREAD_MAX_PAGES must be at least 1")

        if missing:
            raise ValueError(f"Missing required configuration settings: {', '.join(missing)}")

        return {
            'debug': cls.DEBUG,
            'port': cls.PORT,
            'api_base_url': cls.API_BASE_URL,
            'database_url': cls.DATABASE_URL,
            'sync_enabled': cls.sync_enabled(),
            'limits': {
                'request_timeout': cls.REQUEST_TIMEOUT,
                'thread_max_pages': cls.THREAD_MAX_PAGES,
                'max_content_length': cls.MAX_CONTENT_LENGTH
            }
        }


config = Config()
