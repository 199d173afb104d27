class ProviderError(Exception):
    """Raised when twitterapi.io cannot serve a request"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ProviderTimeout(ProviderError):
    """The provider did not answer within the configured timeout"""


class ProviderResponseError(ProviderError):
    """The provider answered with a non-2xx status or an unexpected body"""


class ProxyError(Exception):
    """Raised by the client when the proxy server returns an error"""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class AuthenticationRequired(ProxyError):
    """No signed-in user, or the server rejected the ID token"""

    def __init__(self, message: str = 'Authentication is required.'):
        super().__init__(message, 401)


class DuplicateItemError(ValueError):
    """The tweet is already in the collection"""
