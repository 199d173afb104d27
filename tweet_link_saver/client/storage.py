import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from tweet_link_saver.config.constants import STORAGE_FILES

logger = logging.getLogger(__name__)


class LocalStore:
    """JSON files under a data directory, one per kind of client state"""

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir).expanduser()

    def _path(self, kind: str) -> Path:
        return self.data_dir / STORAGE_FILES[kind]

    def _read(self, kind: str) -> Any:
        path = self._path(kind)
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load {path.name}: {e}")
            return None

    def _write(self, kind: str, value: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self._path(kind)
        tmp_path = path.with_suffix(path.suffix + '.tmp')
        with open(tmp_path, 'w', encoding='utf-8') as f:
            json.dump(value, f, ensure_ascii=False)
        os.replace(tmp_path, path)

    def _remove(self, kind: str) -> None:
        try:
            self._path(kind).unlink()
        except FileNotFoundError:
            pass

    def load_items(self) -> List[Dict[str, Any]]:
        raw = self._read('items')
        if not isinstance(raw, list):
            return []
        return [entry for entry in raw if isinstance(entry, dict) and entry.get('tweetId')]

    def save_items(self, items: List[Dict[str, Any]]) -> None:
        self._write('items', items)

    def load_threads(self) -> Dict[str, Dict[str, Any]]:
        raw = self._read('threads')
        if not isinstance(raw, dict):
            return {}

        threads = {}
        for tweet_id, entry in raw.items():
            if not tweet_id or not isinstance(entry, dict):
                continue
            tweets = entry.get('tweets') if isinstance(entry.get('tweets'), list) else []
            if not tweets:
                continue
            fetched_at = entry.get('fetchedAt')
            threads[tweet_id] = {
                'tweets': tweets,
                'fetchedAt': fetched_at if isinstance(fetched_at, (int, float)) else None,
                'rootTweetId': entry.get('rootTweetId') or None
            }
        return threads

    def save_threads(self, threads: Dict[str, Dict[str, Any]], now_ms: int) -> None:
        """Persist non-empty thread caches; an empty cache removes the file"""
        serializable = {}
        for tweet_id, entry in threads.items():
            if not tweet_id or not isinstance(entry, dict):
                continue
            if not isinstance(entry.get('tweets'), list) or not entry['tweets']:
                continue
            fetched_at = entry.get('fetchedAt')
            serializable[tweet_id] = {
                'tweets': entry['tweets'],
                'fetchedAt': fetched_at if isinstance(fetched_at, (int, float)) else now_ms,
                'rootTweetId': entry.get('rootTweetId') or None
            }

        if not serializable:
            self._remove('threads')
            return
        try:
            self._write('threads', serializable)
        except OSError as e:
            logger.error(f"Failed to persist cached threads: {e}")

    def load_api_key(self) -> Optional[str]:
        raw = self._read('api_key')
        return raw if isinstance(raw, str) and raw else None

    def save_api_key(self, api_key: str) -> None:
        self._write('api_key', api_key)

    def remove_api_key(self) -> None:
        self._remove('api_key')

    def load_auth_email(self) -> Optional[str]:
        raw = self._read('auth_email')
        return raw if isinstance(raw, str) and raw else None

    def save_auth_email(self, email: str) -> None:
        self._write('auth_email', email)

    def remove_auth_email(self) -> None:
        self._remove('auth_email')
