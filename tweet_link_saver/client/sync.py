"""
Cloud sync of the provider API key.

The auth provider (Firebase) signs the user in; the sync layer follows the
auth status and moves the API key between the local store and the proxy's
``/api/user/api-key`` endpoint.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import requests

from tweet_link_saver.config.constants import ENDPOINTS
from tweet_link_saver.core.errors import AuthenticationRequired, ProxyError

logger = logging.getLogger(__name__)

_SYNC_STATUS_BY_AUTH = {
    'initializing': 'initializing',
    'signed-in': 'idle',
    'link-sent': 'awaiting-confirmation',
    'signed-out': 'auth-required',
    'offline-only': 'disabled'
}


@dataclass
class AuthState:
    status: str = 'offline-only'
    available: bool = False
    user: Optional[Dict[str, Any]] = None
    email: Optional[str] = None
    error: Optional[str] = None
    link_sent_to: Optional[str] = None


@dataclass
class SyncState:
    status: str = 'disabled'
    last_synced_at: Optional[int] = None
    pending: int = 0
    error: Optional[str] = None
    queue: List[Dict[str, Any]] = field(default_factory=list)
    _subscribers: List[Callable] = field(default_factory=list, repr=False)

    def subscribe(self, callback: Callable[['SyncState'], None]) -> Callable[[], None]:
        """Register a listener, call it once right away, and return an unsubscribe function"""
        if not callable(callback):
            return lambda: None
        self._subscribers.append(callback)
        self._call(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def _call(self, callback) -> None:
        try:
            callback(self)
        except Exception as e:
            logger.error(f"Sync subscriber error: {e}")

    def notify(self) -> None:
        for callback in list(self._subscribers):
            self._call(callback)

    def handle_auth_state_change(self, auth: AuthState) -> None:
        """Follow the auth layer's status"""
        if not auth.available:
            self.status = 'disabled'
            self.error = None
        else:
            self.status = _SYNC_STATUS_BY_AUTH.get(auth.status, 'auth-required')
            if auth.status == 'offline-only':
                self.error = auth.error
            elif auth.status in _SYNC_STATUS_BY_AUTH:
                self.error = None
        self.notify()

    def queue_save(self, payload: Dict[str, Any]) -> None:
        self.queue.append({'type': 'save', 'payload': payload, 'createdAt': int(time.time() * 1000)})
        self._update_pending()

    def queue_delete(self, tweet_id: str) -> None:
        if not tweet_id:
            return
        self.queue.append({'type': 'delete', 'tweetId': tweet_id, 'createdAt': int(time.time() * 1000)})
        self._update_pending()

    def _update_pending(self) -> None:
        self.pending = len(self.queue)
        self.notify()

    def snapshot(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'lastSyncedAt': self.last_synced_at,
            'pending': self.pending,
            'error': self.error
        }


class RemoteApiKeySync:
    """Store and fetch the API key on the proxy for the signed-in user.

    ``token_provider`` returns the current Firebase ID token or None when
    nobody is signed in. A missing token or a 401 means "not signed in":
    reads come back empty and writes are skipped.
    """

    EMPTY = {'apiKey': None, 'updatedAt': None}

    def __init__(self, base_url: str, token_provider: Callable[[], Optional[str]], timeout: float = 15.0):
        self.url = f"{base_url.rstrip('/')}{ENDPOINTS['user_api_key']}"
        self.token_provider = token_provider
        self.timeout = timeout

    def _request(self, method: str, **kwargs) -> requests.Response:
        token = self.token_provider()
        if not token:
            raise AuthenticationRequired()

        try:
            response = requests.request(
                method,
                self.url,
                headers={'Authorization': f"Bearer {token}"},
                timeout=self.timeout,
                **kwargs
            )
        except requests.exceptions.RequestException as e:
            raise ProxyError(f"Unable to reach the sync endpoint: {e}")

        if response.status_code == 401:
            raise AuthenticationRequired('Unauthorized')
        return response

    @staticmethod
    def _error_message(response: requests.Response, fallback: str) -> str:
        try:
            data = response.json()
        except ValueError:
            data = {}
        return (data.get('message') if isinstance(data, dict) else None) or fallback

    def fetch(self) -> Dict[str, Any]:
        try:
            response = self._request('GET')
        except AuthenticationRequired:
            return dict(self.EMPTY)
        if response.status_code == 204:
            return dict(self.EMPTY)
        if not response.ok:
            message = self._error_message(response, 'Unable to load API key.')
            logger.warning(f"[sync] Failed to fetch remote API key: {message}")
            raise ProxyError(message, response.status_code)
        return response.json()

    def store(self, api_key: str) -> None:
        if not api_key:
            return
        try:
            response = self._request('POST', json={'apiKey': api_key})
        except AuthenticationRequired:
            return
        if not response.ok:
            message = self._error_message(response, 'Unable to store API key.')
            logger.warning(f"[sync] Failed to store remote API key: {message}")
            raise ProxyError(message, response.status_code)

    def delete(self) -> None:
        try:
            response = self._request('DELETE')
        except AuthenticationRequired:
            return
        if not response.ok:
            message = self._error_message(response, 'Unable to delete API key.')
            logger.warning(f"[sync] Failed to delete remote API key: {message}")
            raise ProxyError(message, response.status_code)
