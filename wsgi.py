import logging

from tweet_link_saver.config.config import Config
from tweet_link_saver.core.logging_setup import setup_logging
from tweet_link_saver.web.server import create_app

setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
logger = logging.getLogger(__name__)

logger.info("="*50)
logger.info("Initializing WSGI application")
logger.info(f"Configuration: {Config.validate()}")

application = create_app()
app = application
