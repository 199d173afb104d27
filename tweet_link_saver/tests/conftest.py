import pytest
from unittest.mock import Mock

from tweet_link_saver.client.storage import LocalStore
from tweet_link_saver.core.crypto import ApiKeyCipher, generate_encryption_key
from tweet_link_saver.database import ApiKeyStore, DatabaseManager
from tweet_link_saver.web.server import create_app


@pytest.fixture
def sample_tweet():
    return {
        'id': '1790000000000000001',
        'text': 'First post of a thread\n\nSecond paragraph https://t.co/abc',
        'createdAt': 'Tue Jan 02 10:00:00 +0000 2024',
        'author': {'id': '42', 'name': 'Ada', 'userName': 'ada', 'profilePicture': 'https://pbs.twimg.com/a_normal.jpg'},
        'entities': {'urls': [{
            'url': 'https://t.co/abc',
            'expanded_url': 'https://example.com/post',
            'display_url': 'example.com/post'
        }]},
        'likeCount': 1520,
        'replyCount': 3
    }


@pytest.fixture
def db_manager():
    """In-memory SQLite database with all tables"""
    db = DatabaseManager('sqlite:///:memory:')
    db.init_db()
    yield db
    db.drop_db()


@pytest.fixture
def key_store(db_manager):
    return ApiKeyStore(db_manager, ApiKeyCipher(generate_encryption_key()))


@pytest.fixture
def provider():
    return Mock()


@pytest.fixture
def token_verifier():
    verifier = Mock()
    verifier.verify.side_effect = lambda token: {'uid': 'user-1', 'email': 'ada@example.com'} if token == 'good-token' else None
    return verifier


@pytest.fixture
def app(provider, token_verifier, key_store):
    app = create_app({
        'TESTING': True,
        'PROVIDER_CLIENT': provider,
        'TOKEN_VERIFIER': token_verifier,
        'API_KEY_STORE': key_store
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def local_store(tmp_path):
    return LocalStore(tmp_path / 'data')
