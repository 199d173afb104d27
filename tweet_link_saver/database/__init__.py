from .db import DatabaseManager
from .models import Base, ApiKeyRecord
from .api_keys import ApiKeyStore

__all__ = ['DatabaseManager', 'Base', 'ApiKeyRecord', 'ApiKeyStore']
