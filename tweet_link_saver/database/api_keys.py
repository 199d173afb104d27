import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from tweet_link_saver.core.crypto import ApiKeyCipher
from .db import DatabaseManager
from .models import ApiKeyRecord

logger = logging.getLogger(__name__)


class ApiKeyStore:
    """Per-user storage of encrypted provider API keys"""

    def __init__(self, db: DatabaseManager, cipher: ApiKeyCipher):
        self.db = db
        self.cipher = cipher

    def get(self, user_id: str) -> Optional[Tuple[str, datetime]]:
        """Return ``(api_key, updated_at)`` for the user, or None when nothing is stored"""
        with self.db.get_session() as session:
            record = session.get(ApiKeyRecord, user_id)
            if record is None:
                return None
            encrypted, updated_at = record.encrypted_value, record.updated_at

        return self.cipher.decrypt(encrypted), _as_utc(updated_at)

    def put(self, user_id: str, api_key: str) -> datetime:
        """Encrypt and upsert the user's key, returning the new ``updated_at``"""
        api_key = (api_key or '').strip()
        if not api_key:
            raise ValueError("apiKey is required")

        now = datetime.now(timezone.utc)
        encrypted = self.cipher.encrypt(api_key)
        with self.db.get_session() as session:
            record = session.get(ApiKeyRecord, user_id)
            if record is None:
                session.add(ApiKeyRecord(user_id=user_id, encrypted_value=encrypted, updated_at=now))
            else:
                record.encrypted_value = encrypted
                record.updated_at = now

        logger.info(f"Stored API key for user {user_id}")
        return now

    def delete(self, user_id: str) -> bool:
        with self.db.get_session() as session:
            record = session.get(ApiKeyRecord, user_id)
            if record is None:
                return False
            session.delete(record)

        logger.info(f"Deleted API key for user {user_id}")
        return True


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
