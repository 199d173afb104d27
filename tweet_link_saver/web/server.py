import logging
import traceback
from typing import Any, Dict, Optional

from flask import Flask, Blueprint, current_app, g, jsonify, request, send_from_directory
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from tweet_link_saver.config.config import Config
from tweet_link_saver.core.errors import ProviderError
from tweet_link_saver.core.provider import TwitterApiClient
from .user_context import id_token_required

logger = logging.getLogger(__name__)

proxy_bp = Blueprint('proxy', __name__, url_prefix='/api')
user_api_bp = Blueprint('user_api', __name__, url_prefix='/api/user')


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def extract_api_key(body: Dict[str, Any]) -> Optional[str]:
    """API key from the JSON body, falling back to the X-API-Key header"""
    from_body = body.get('apiKey')
    if isinstance(from_body, str) and from_body.strip():
        return from_body.strip()
    from_header = request.headers.get('X-API-Key')
    if isinstance(from_header, str) and from_header.strip():
        return from_header.strip()
    return None


def _provider() -> TwitterApiClient:
    return current_app.config['PROVIDER_CLIENT']


def _proxy_call(action, unexpected_message: str):
    try:
        return action()
    except ProviderError as e:
        return jsonify({'message': e.message}), e.status_code
    except Exception as e:
        logger.error(f"{unexpected_message} {e}")
        logger.error(traceback.format_exc())
        return jsonify({'message': unexpected_message}), 502


@proxy_bp.route('/verify', methods=['POST'])
def verify():
    """Check an API key and report its remaining credits"""
    api_key = extract_api_key(_json_body())
    if not api_key:
        return jsonify({'message': 'apiKey is required'}), 400

    return _proxy_call(
        lambda: jsonify(_provider().verify_key(api_key)),
        'Unexpected error verifying API key.'
    )


@proxy_bp.route('/tweets', methods=['POST'])
def tweets():
    """Fetch one tweet by id"""
    body = _json_body()
    api_key = extract_api_key(body)
    if not api_key:
        return jsonify({'message': 'apiKey is required'}), 400

    tweet_id = body.get('tweetId')
    if not tweet_id or not isinstance(tweet_id, str):
        return jsonify({'message': 'tweetId is required.'}), 400

    return _proxy_call(
        lambda: jsonify({'tweet': _provider().get_tweet(api_key, tweet_id)}),
        'Unexpected error fetching tweet.'
    )


@proxy_bp.route('/thread', methods=['POST'])
def thread():
    """Fetch and merge the thread context pages of a tweet"""
    body = _json_body()
    api_key = extract_api_key(body)
    if not api_key:
        return jsonify({'message': 'apiKey is required'}), 400

    tweet_id = body.get('tweetId')
    if not tweet_id or not isinstance(tweet_id, str):
        return jsonify({'message': 'tweetId is required.'}), 400
    cursor = body.get('cursor') or ''

    return _proxy_call(
        lambda: jsonify(_provider().get_thread(api_key, tweet_id, cursor=cursor)),
        'Unexpected error fetching thread.'
    )


@user_api_bp.route('/api-key', methods=['GET'])
@id_token_required
def get_api_key():
    """Return the signed-in user's stored API key"""
    stored = current_app.config['API_KEY_STORE'].get(g.user['uid'])
    if stored is None:
        return '', 204

    api_key, updated_at = stored
    return jsonify({'apiKey': api_key, 'updatedAt': int(updated_at.timestamp() * 1000)})


@user_api_bp.route('/api-key', methods=['POST'])
@id_token_required
def store_api_key():
    """Encrypt and store the signed-in user's API key"""
    api_key = _json_body().get('apiKey')
    if not isinstance(api_key, str) or not api_key.strip():
        return jsonify({'message': 'apiKey is required'}), 400

    updated_at = current_app.config['API_KEY_STORE'].put(g.user['uid'], api_key)
    return jsonify({'updatedAt': int(updated_at.timestamp() * 1000)})


@user_api_bp.route('/api-key', methods=['DELETE'])
@id_token_required
def delete_api_key():
    current_app.config['API_KEY_STORE'].delete(g.user['uid'])
    return '', 204


def _build_sync_services(app: Flask) -> None:
    """Wire Firebase verification and the encrypted key store when sync is configured"""
    if app.config.get('TOKEN_VERIFIER') is not None and app.config.get('API_KEY_STORE') is not None:
        return
    if not (app.config.get('FIREBASE_PROJECT_ID') or app.config.get('FIREBASE_CREDENTIALS')):
        logger.info("Firebase not configured; cloud sync endpoints disabled")
        return

    from tweet_link_saver.core.auth import FirebaseTokenVerifier
    from tweet_link_saver.core.crypto import ApiKeyCipher
    from tweet_link_saver.database import ApiKeyStore, DatabaseManager

    db = DatabaseManager(app.config['DATABASE_URL'])
    db.init_db()
    app.config['TOKEN_VERIFIER'] = app.config.get('TOKEN_VERIFIER') or FirebaseTokenVerifier(
        project_id=app.config.get('FIREBASE_PROJECT_ID'),
        credentials_path=app.config.get('FIREBASE_CREDENTIALS')
    )
    app.config['API_KEY_STORE'] = ApiKeyStore(db, ApiKeyCipher(app.config['ENCRYPTION_KEY']))
    logger.info("Cloud sync endpoints enabled")


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    """Application factory for the proxy server"""
    static_dir = (overrides or {}).get('STATIC_DIR', Config.STATIC_DIR)
    app = Flask(__name__, static_folder=static_dir, static_url_path='' if static_dir else None)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    CORS(
        app,
        origins='*',
        allow_headers=['Content-Type', 'X-API-Key', 'Authorization'],
        methods=['GET', 'POST', 'DELETE', 'OPTIONS'],
        send_wildcard=True
    )

    if app.config.get('PROVIDER_CLIENT') is None:
        app.config['PROVIDER_CLIENT'] = TwitterApiClient(
            base_url=app.config['API_BASE_URL'],
            timeout=app.config['REQUEST_TIMEOUT'],
            max_thread_pages=app.config['THREAD_MAX_PAGES'],
            debug_dir=app.config['DEBUG_PAYLOAD_DIR'] if app.config['DEBUG_TWEETS'] else None
        )

    _build_sync_services(app)

    app.register_blueprint(proxy_bp)
    app.register_blueprint(user_api_bp)

    @app.route('/health')
    def health():
        return jsonify({'status': 'ok'})

    if static_dir:
        @app.route('/')
        def index():
            return send_from_directory(app.static_folder, 'index.html')

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        if request.path.startswith('/api/'):
            return jsonify({'message': e.description}), e.code
        return e

    @app.errorhandler(ValueError)
    def handle_value_error(e):
        # Raised by the key store when a record cannot be decrypted
        logger.error(f"Request failed on {request.path}: {e}")
        return jsonify({'message': str(e)}), 500

    return app
