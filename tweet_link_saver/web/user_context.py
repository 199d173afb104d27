"""
User context for the cloud sync endpoints.
Requests authenticate with a Firebase ID token in the Authorization header.
"""

from functools import wraps
from flask import g, request, current_app, jsonify


def get_bearer_token():
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def id_token_required(f):
    """Decorator to require a verified Firebase user for a route"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        verifier = current_app.config.get('TOKEN_VERIFIER')
        if verifier is None or current_app.config.get('API_KEY_STORE') is None:
            return jsonify({'message': 'Cloud sync is not configured.'}), 503

        token = get_bearer_token()
        if not token:
            current_app.logger.warning(f"Missing bearer token for path: {request.path}")
            return jsonify({'message': 'Authentication is required.'}), 401

        user = verifier.verify(token)
        if not user or not user.get('uid'):
            return jsonify({'message': 'Unauthorized'}), 401

        g.user = user
        return f(*args, **kwargs)
    return decorated_function
