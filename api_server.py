import logging

from tweet_link_saver.config.config import Config
from tweet_link_saver.core.logging_setup import setup_logging
from tweet_link_saver.web.server import create_app

# Configure logging BEFORE any other operations
setup_logging(Config.LOG_LEVEL, Config.LOG_FILE)
logger = logging.getLogger(__name__)

logger.info("="*80)
logger.info("Starting API server")
logger.info(f"Configuration: {Config.validate()}")
logger.info("="*80)

app = create_app()

if __name__ == '__main__':
    logger.info(f"Proxy listening on http://localhost:{Config.PORT}")
    app.run(host='0.0.0.0', port=Config.PORT, debug=Config.DEBUG)
