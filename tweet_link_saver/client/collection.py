import logging
import time
from typing import Any, Callable, Dict, List, Optional

from tweet_link_saver.config.constants import INVALID_LINK_MESSAGE
from tweet_link_saver.core.errors import DuplicateItemError, ProxyError
from tweet_link_saver.core.thread_view import build_thread_sequence, sanitize_thread_tweets
from tweet_link_saver.core.tweet_links import extract_tweet_id
from .proxy_client import ProxyClient
from .storage import LocalStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class TweetCollection:
    """The user's saved tweets plus their cached threads.

    Items are unique by tweet id and kept most recent first. A thread cache
    entry only lives as long as the saved item with the same id.
    """

    def __init__(self, store: LocalStore, proxy: ProxyClient, clock: Callable[[], int] = _now_ms):
        self.store = store
        self.proxy = proxy
        self.clock = clock
        self.items: List[Dict[str, Any]] = []
        self.threads: Dict[str, Dict[str, Any]] = {}
        self.thread_status: Dict[str, Dict[str, Any]] = {}
        self.api_key: Optional[str] = None
        self.credits: Optional[int] = None

    def load(self) -> 'TweetCollection':
        self.items = self.store.load_items()
        self.threads = self.store.load_threads()
        self.remove_orphaned_threads()
        logger.info(f"Loaded {len(self.items)} saved tweets and {len(self.threads)} cached threads")
        return self

    def remove_orphaned_threads(self) -> List[str]:
        """Drop cached threads whose saved item no longer exists"""
        valid_ids = {item['tweetId'] for item in self.items}
        orphans = [tweet_id for tweet_id in self.threads if tweet_id not in valid_ids]
        for tweet_id in orphans:
            del self.threads[tweet_id]
            self.thread_status.pop(tweet_id, None)
        if orphans:
            logger.info(f"Removed {len(orphans)} orphaned thread cache(s)")
            self._persist_threads()
        return orphans

    def authenticate(self, api_key: str) -> Optional[int]:
        """Verify a key through the proxy and keep it for later requests"""
        api_key = (api_key or '').strip()
        if not api_key:
            raise ValueError('Please enter your twitterapi.io API key.')

        credits = self.proxy.verify(api_key)
        self.api_key = api_key
        self.credits = credits
        self.store.save_api_key(api_key)
        return credits

    def restore_api_key(self) -> bool:
        """Re-verify the stored key; a key the provider rejects is forgotten"""
        stored = self.store.load_api_key()
        if not stored:
            return False
        try:
            self.authenticate(stored)
        except ProxyError as e:
            logger.warning(f"Stored API key failed verification: {e.message}")
            self.forget_api_key()
            raise
        return True

    def forget_api_key(self) -> None:
        self.store.remove_api_key()
        self.api_key = None
        self.credits = None

    def get(self, tweet_id: str) -> Optional[Dict[str, Any]]:
        return next((item for item in self.items if item['tweetId'] == tweet_id), None)

    def save(self, url: str) -> Dict[str, Any]:
        """Fetch the tweet behind ``url`` and add it to the top of the collection"""
        if not self.api_key:
            raise ProxyError('Please connect your API key first.')

        raw_value = (url or '').strip()
        tweet_id = extract_tweet_id(raw_value)
        if not tweet_id:
            raise ValueError(INVALID_LINK_MESSAGE)
        if self.get(tweet_id):
            raise DuplicateItemError('That tweet is already saved.')

        tweet = self.proxy.fetch_tweet(self.api_key, tweet_id)
        item = {
            'tweetId': tweet_id,
            'url': raw_value,
            'tweet': tweet,
            'savedAt': self.clock()
        }
        self.items.insert(0, item)
        self.store.save_items(self.items)
        logger.info(f"Saved tweet {tweet_id}")
        return item

    def delete(self, tweet_id: str) -> bool:
        before = len(self.items)
        self.items = [item for item in self.items if item['tweetId'] != tweet_id]
        removed = len(self.items) != before
        self.store.save_items(self.items)

        if tweet_id in self.threads:
            del self.threads[tweet_id]
            self._persist_threads()
        self.thread_status.pop(tweet_id, None)
        return removed

    def status(self, tweet_id: str) -> Dict[str, Any]:
        return self.thread_status.setdefault(tweet_id, {'loading': False, 'error': None})

    def load_thread(self, tweet_id: str, force: bool = False) -> Optional[Dict[str, Any]]:
        """Return the cached thread, fetching it through the proxy when missing or forced.

        Failures are recorded in :meth:`status` and reported as ``None``.
        """
        if not tweet_id or not self.api_key:
            return None

        cached = self.threads.get(tweet_id)
        if not force and cached and cached.get('tweets'):
            logger.debug(f"Thread cache hit for {tweet_id}")
            return cached

        if self.status(tweet_id)['loading']:
            return None
        self.thread_status[tweet_id] = {'loading': True, 'error': None}

        try:
            data = self.proxy.fetch_thread(self.api_key, tweet_id)
            if not isinstance(data.get('tweets'), list) or not data['tweets']:
                raise ProxyError('Thread data unavailable.')

            fetched_at = data.get('fetchedAt')
            self.threads[tweet_id] = {
                'tweets': sanitize_thread_tweets(data['tweets']),
                'fetchedAt': fetched_at if isinstance(fetched_at, (int, float)) else self.clock(),
                'rootTweetId': data.get('rootTweetId') or tweet_id
            }
            self.thread_status[tweet_id] = {'loading': False, 'error': None}
            self._persist_threads()
            return self.threads[tweet_id]
        except ProxyError as e:
            logger.error(f"Failed to load thread {tweet_id}: {e.message}")
            self.thread_status[tweet_id] = {'loading': False, 'error': e.message or 'Unable to load thread.'}
            return None

    def article(self, tweet_id: str) -> List[Dict[str, Any]]:
        """The saved tweet and its cached thread in reading order"""
        item = self.get(tweet_id)
        if not item:
            return []
        cached = self.threads.get(tweet_id) or {}
        return build_thread_sequence(item.get('tweet'), cached.get('tweets') or [])

    def _persist_threads(self) -> None:
        self.store.save_threads(self.threads, self.clock())
