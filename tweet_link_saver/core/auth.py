import logging
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth as firebase_auth
from firebase_admin import credentials

logger = logging.getLogger(__name__)

APP_NAME = 'tweet-link-saver'


class FirebaseTokenVerifier:
    def __init__(self, project_id: Optional[str] = None, credentials_path: Optional[str] = None):
        self.project_id = project_id
        self.credentials_path = credentials_path
        self.app = None

    def initialize_app(self) -> firebase_admin.App:
        """Initialize (or reuse) the Firebase Admin app for token verification"""
        try:
            self.app = firebase_admin.get_app(APP_NAME)
            return self.app
        except ValueError:
            pass

        if self.credentials_path:
            cred = credentials.Certificate(self.credentials_path)
        else:
            cred = credentials.ApplicationDefault()

        options = {'projectId': self.project_id} if self.project_id else None
        self.app = firebase_admin.initialize_app(cred, options, name=APP_NAME)
        logger.info(f"Firebase Admin initialized for project {self.project_id or '(from credentials)'}")
        return self.app

    def verify(self, id_token: str) -> Optional[Dict[str, Any]]:
        """Verify a Firebase ID token and return the signed-in user, or None"""
        if not id_token:
            return None
        if not self.app:
            self.initialize_app()

        try:
            claims = firebase_auth.verify_id_token(id_token, app=self.app)
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError, firebase_auth.CertificateFetchError) as e:
            logger.warning(f"Rejected Firebase ID token: {e}")
            return None

        return {
            'uid': claims.get('uid') or claims.get('sub'),
            'email': claims.get('email'),
            'emailVerified': bool(claims.get('email_verified'))
        }
