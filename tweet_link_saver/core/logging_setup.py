import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


def setup_logging(level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """Configure root logging for the server and the CLI.

    Logs always go to stderr; when ``log_file`` is set they are also written
    to a rotating file next to it.
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(RotatingFileHandler(log_file, maxBytes=1024 * 1024, backupCount=3, encoding='utf-8'))

    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )

    # urllib3 is chatty at DEBUG about every connection
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    return logging.getLogger('tweet_link_saver')
