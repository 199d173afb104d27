import re
from typing import Optional
from urllib.parse import urlparse

from tweet_link_saver.config.constants import SUPPORTED_HOSTS

_BARE_HOST = re.compile(r'^([^:]+)\.com/')
_TWEET_ID = re.compile(r'(\d{5,})')


def extract_tweet_id(value: Optional[str]) -> Optional[str]:
    """Pull the tweet id out of an x.com / twitter.com status link.

    Links without a scheme (``x.com/user/status/123``) are accepted. Returns
    None for anything that is not a supported tweet link.
    """
    if not value:
        return None

    formatted = value.strip()
    if _BARE_HOST.match(formatted) and not formatted.startswith('http'):
        formatted = f"https://{formatted}"

    try:
        url = urlparse(formatted)
        hostname = (url.hostname or '').lower()
    except ValueError:
        return None

    if hostname not in SUPPORTED_HOSTS:
        return None

    segments = [segment for segment in url.path.split('/') if segment]
    if len(segments) < 2:
        return None

    if 'status' in segments:
        status_index = segments.index('status')
        if status_index + 1 >= len(segments):
            return None
        candidate = segments[status_index + 1]
    else:
        candidate = segments[-1]

    match = _TWEET_ID.search(candidate)
    return match.group(1) if match else None


def canonical_tweet_url(tweet_id: str, username: Optional[str] = None) -> str:
    """Build a link back to the tweet on x.com"""
    return f"https://x.com/{username or 'i'}/status/{tweet_id}"
