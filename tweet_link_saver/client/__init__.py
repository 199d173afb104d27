from .collection import TweetCollection
from .proxy_client import ProxyClient
from .storage import LocalStore

__all__ = ['TweetCollection', 'ProxyClient', 'LocalStore']
