import logging
from typing import Any, Dict, Optional

import requests

from tweet_link_saver.config.constants import ENDPOINTS
from tweet_link_saver.core.errors import ProxyError

logger = logging.getLogger(__name__)


class ProxyClient:
    """Client for the proxy server's /api endpoints"""

    def __init__(self, base_url: str = 'http://localhost:4000', timeout: float = 30.0):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

    def _post(self, endpoint: str, body: Dict[str, Any], fallback_message: str) -> Dict[str, Any]:
        try:
            response = requests.post(
                f"{self.base_url}{ENDPOINTS[endpoint]}",
                json=body,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Proxy request to {endpoint} failed: {e}")
            raise ProxyError(f"Unable to reach the proxy at {self.base_url}.")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if not response.ok:
            raise ProxyError(data.get('message') or fallback_message, response.status_code)
        return data

    def verify(self, api_key: str) -> Optional[int]:
        """Verify a key, returning its remaining credits when the provider reports them"""
        data = self._post('verify', {'apiKey': api_key}, 'Unable to verify API key.')
        credits = data.get('credits')
        return credits if isinstance(credits, (int, float)) and not isinstance(credits, bool) else None

    def fetch_tweet(self, api_key: str, tweet_id: str) -> Dict[str, Any]:
        try:
            data = self._post('tweet', {'apiKey': api_key, 'tweetId': tweet_id}, 'Unable to fetch tweet.')
        except ProxyError as e:
            if e.message == 'Unable to fetch tweet.' and e.status_code:
                raise ProxyError(f"Unable to fetch tweet (status {e.status_code}).", e.status_code)
            raise

        tweet = data.get('tweet')
        if not tweet:
            raise ProxyError('Tweet not found.', 404)
        return tweet

    def fetch_thread(self, api_key: str, tweet_id: str, cursor: str = '') -> Dict[str, Any]:
        body = {'apiKey': api_key, 'tweetId': tweet_id}
        if cursor:
            body['cursor'] = cursor
        return self._post('thread', body, 'Unable to load thread.')

    def health(self) -> bool:
        try:
            response = requests.get(f"{self.base_url}{ENDPOINTS['health']}", timeout=self.timeout)
        except requests.exceptions.RequestException:
            return False
        return response.ok
