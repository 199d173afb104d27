"""Tweet Link Saver: a twitterapi.io proxy and a local tweet collection."""

__version__ = '0.1.0'
