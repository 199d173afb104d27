import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import requests

from tweet_link_saver.config.constants import PROVIDER_PATHS, DEBUG_DUMP_FILES
from tweet_link_saver.core.errors import ProviderError, ProviderResponseError, ProviderTimeout

logger = logging.getLogger(__name__)


def _first_present(payload: Dict[str, Any], *keys, default=None):
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return default


class TwitterApiClient:
    """Thin client for twitterapi.io.

    Every call takes the caller's API key; the client itself holds no
    credentials so one instance can serve every request of the proxy.
    """

    def __init__(self, base_url: str = 'https://api.twitterapi.io', timeout: float = 10.0,
                 max_thread_pages: int = 8, debug_dir: Optional[str] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.max_thread_pages = max_thread_pages
        self.debug_dir = Path(debug_dir) if debug_dir else None

    def forward(self, path: str, api_key: str, params: Optional[Dict[str, str]] = None,
                timeout_message: str = 'twitterapi.io request timed out.',
                error_message: str = 'Unexpected error contacting twitterapi.io.') -> Tuple[requests.Response, Dict[str, Any]]:
        """GET ``path`` on the provider and return the response with its decoded body.

        Bodies that are not JSON objects decode to an empty dict.
        """
        try:
            response = requests.get(
                f"{self.base_url}{path}",
                params=params,
                headers={
                    'X-API-Key': api_key,
                    'Accept': 'application/json'
                },
                timeout=self.timeout
            )
        except requests.exceptions.Timeout:
            logger.warning(f"Provider request to {path} timed out after {self.timeout}s")
            raise ProviderTimeout(timeout_message, 502)
        except requests.exceptions.RequestException as e:
            logger.error(f"Provider request to {path} failed: {e}")
            raise ProviderError(error_message, 502)

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        logger.debug(f"Provider {path} responded with status {response.status_code}")
        return response, payload

    def verify_key(self, api_key: str) -> Dict[str, Any]:
        """Check the key against the account endpoint and report remaining credits"""
        response, payload = self.forward(
            PROVIDER_PATHS['account_info'], api_key,
            timeout_message='twitterapi.io verification timed out.',
            error_message='Unexpected error verifying API key.'
        )
        if not response.ok:
            raise ProviderResponseError(payload.get('message') or 'Unable to verify API key.', response.status_code)

        return {'credits': payload.get('recharge_credits')}

    def get_tweet(self, api_key: str, tweet_id: str) -> Dict[str, Any]:
        """Fetch a single tweet by id"""
        response, payload = self.forward(
            PROVIDER_PATHS['tweets'], api_key, params={'tweet_ids': tweet_id},
            timeout_message='twitterapi.io request timed out.',
            error_message='Unexpected error fetching tweet.'
        )
        self._dump_payload('tweets', payload)

        if not response.ok:
            raise ProviderResponseError(payload.get('message') or 'Unable to fetch tweet.', response.status_code)

        tweets = payload.get('tweets')
        if payload.get('status') != 'success' or not isinstance(tweets, list):
            raise ProviderResponseError('Unexpected response from twitterapi.io.', 502)

        # The provider may return related tweets too; prefer the exact match
        tweet = next((entry for entry in tweets if isinstance(entry, dict) and entry.get('id') == tweet_id), None)
        if tweet is None and tweets:
            tweet = tweets[0]
        if not tweet:
            raise ProviderResponseError('Tweet not found.', 404)

        return tweet

    def get_thread(self, api_key: str, tweet_id: str, cursor: str = '') -> Dict[str, Any]:
        """Walk the thread context pages of a tweet and merge them.

        Pages are followed while the provider reports another page and hands
        out a cursor, up to ``max_thread_pages`` requests. Tweets are kept in
        page order and deduplicated by id, first occurrence wins.
        """
        seen_ids = set()
        collected: List[Dict[str, Any]] = []
        root_tweet_id = None
        has_next_page = False
        next_cursor = cursor if isinstance(cursor, str) else ''
        attempts = 0

        while True:
            params = {'tweetId': tweet_id}
            if next_cursor:
                params['cursor'] = next_cursor

            response, payload = self.forward(
                PROVIDER_PATHS['thread_context'], api_key, params=params,
                timeout_message='twitterapi.io thread request timed out.',
                error_message='Unexpected error fetching thread.'
            )
            self._dump_payload('thread', payload)

            if not response.ok:
                raise ProviderResponseError(payload.get('message') or 'Unable to load thread.', response.status_code)

            if not root_tweet_id:
                root_tweet = payload.get('tweet') if isinstance(payload.get('tweet'), dict) else {}
                root_tweet_id = (root_tweet.get('id')
                                 or payload.get('original_tweet_id')
                                 or payload.get('originalTweetId')
                                 or tweet_id)

            page_tweets = payload.get('tweets')
            if not isinstance(page_tweets, list):
                page_tweets = payload.get('replies')
            if not isinstance(page_tweets, list):
                page_tweets = []

            added = 0
            for entry in page_tweets:
                if not isinstance(entry, dict):
                    continue
                entry_id = entry.get('id') or entry.get('tweet_id') or entry.get('tweetId')
                if not entry_id or entry_id in seen_ids:
                    continue
                seen_ids.add(entry_id)
                collected.append(entry)
                added += 1

            has_next_page = bool(_first_present(payload, 'has_next_page', 'hasNextPage', default=False))
            next_cursor = _first_present(payload, 'next_cursor', 'nextCursor', default='') or ''
            attempts += 1
            logger.debug(f"Thread page {attempts} for {tweet_id}: {added} new tweets, has_next_page={has_next_page}")

            if not (has_next_page and next_cursor and attempts < self.max_thread_pages):
                break

        logger.info(f"Collected {len(collected)} thread tweets for {tweet_id} in {attempts} page(s)")
        return {
            'tweets': collected,
            'rootTweetId': root_tweet_id,
            'fetchedAt': int(time.time() * 1000),
            'hasNextPage': bool(has_next_page and next_cursor),
            'nextCursor': next_cursor if has_next_page else None
        }

    def _dump_payload(self, kind: str, payload: Dict[str, Any]) -> None:
        """Write the raw provider payload to disk when debugging is on"""
        if not self.debug_dir:
            return

        pretty = json.dumps(payload, indent=2)
        logger.debug(f"twitterapi.io {kind} payload: {pretty}")
        try:
            (self.debug_dir / DEBUG_DUMP_FILES[kind]).write_text(pretty, encoding='utf-8')
        except OSError as e:
            logger.warning(f"Unable to write {kind} payload log: {e}")
