import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials, firestore, messaging

from .config import settings

logger = logging.getLogger(__name__)

_app: Optional[firebase_admin.App] = None
_client: Optional["FirebaseClient"] = None


def _load_credential() -> Optional[credentials.Base]:
    """Build a certificate credential from the configured secret, if any."""
    cert_json = settings.firebase_secret
    if not cert_json:
        # Application Default Credentials provided by the platform
        return None

    try:
        cert_dict = json.loads(cert_json)
        if isinstance(cert_dict, str):
            cert_dict = json.loads(cert_dict)
    except json.JSONDecodeError as e:
        raise ValueError(f"Firebase secret is not valid JSON: {str(e)}") from e

    return credentials.Certificate(cert_dict)


def initialize_firebase() -> firebase_admin.App:
    """
    Initialize the Firebase Admin SDK once per process.

    Repeated calls return the same app. An app initialized elsewhere in the
    process is reused rather than initialized a second time.
    """
    global _app
    if _app is not None:
        return _app

    try:
        # Try to get the existing default app
        _app = firebase_admin.get_app()
        logger.info("Retrieved existing Firebase app")
        return _app
    except ValueError:
        pass

    options = {}
    if settings.firebase_project_id:
        options["projectId"] = settings.firebase_project_id

    try:
        _app = firebase_admin.initialize_app(
            credential=_load_credential(),
            options=options or None
        )
    except Exception as e:
        logger.error(f"Failed to initialize Firebase: {str(e)}")
        raise

    logger.info(f"Firebase app initialized. App name: {_app.name}")
    return _app


class FirebaseClient:
    """Thin wrapper over the Firestore and FCM calls the handlers make."""

    def __init__(self, app: Optional[firebase_admin.App] = None, firestore_db=None):
        self.app = app if app is not None else initialize_firebase()
        self.firestore_db = firestore_db if firestore_db is not None else firestore.client(self.app)

    def get_user_token(self, user_id: str) -> Optional[str]:
        """
        Get a user's push-delivery token from Firestore.

        Args:
            user_id: The user's document ID

        Returns:
            The FCM token, or None if the user or the token is missing
        """
        if not user_id:
            logger.warning("Token lookup requested without a user ID")
            return None

        user = self.firestore_db.collection(settings.users_collection).document(user_id).get()
        if not user.exists:
            logger.info(f"User {user_id} not found")
            return None

        user_data = user.to_dict() or {}
        return user_data.get('fcmToken') or None

    def send_message(self, message: messaging.Message) -> str:
        """Send one FCM message and return the message ID."""
        return messaging.send(message, app=self.app)


def get_firebase_client() -> FirebaseClient:
    """Return the process-wide client, creating it on first use."""
    global _client
    if _client is None:
        _client = FirebaseClient()
    return _client
