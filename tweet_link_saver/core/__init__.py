"""
Core functionality for Tweet Link Saver.
This package contains the twitterapi.io client, tweet link parsing,
thread shaping, API key encryption and Firebase token verification.
"""

__version__ = '0.1.0'
