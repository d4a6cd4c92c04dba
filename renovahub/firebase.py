"""
Firebase Admin app factory.

The app is built on first use and handed to callers explicitly
(token verification, FCM dispatch, user administration).
"""

import logging
from typing import Optional

import firebase_admin
from firebase_admin import credentials

from .config import FIREBASE_CLIENT_EMAIL, FIREBASE_PRIVATE_KEY, FIREBASE_PROJECT_ID

logger = logging.getLogger(__name__)

APP_NAME = "renovahub"


def _build_credential():
    if FIREBASE_CLIENT_EMAIL and FIREBASE_PRIVATE_KEY:
        return credentials.Certificate(
            {
                "type": "service_account",
                "project_id": FIREBASE_PROJECT_ID,
                "client_email": FIREBASE_CLIENT_EMAIL,
                "private_key": FIREBASE_PRIVATE_KEY,
                "token_uri": "https://oauth2.googleapis.com/token",
            }
        )
    logger.info("Firebase service account not configured, using Application Default Credentials")
    return credentials.ApplicationDefault()


def get_firebase_app() -> firebase_admin.App:
    """Return the initialized Firebase app, creating it if needed"""
    try:
        return firebase_admin.get_app(APP_NAME)
    except ValueError:
        pass

    try:
        app = firebase_admin.initialize_app(
            _build_credential(), {"projectId": FIREBASE_PROJECT_ID}, name=APP_NAME
        )
        logger.info("✅ Firebase Admin initialized")
    except Exception as e:
        # Initialize without credentials (token verification still works with a project ID)
        logger.warning(f"⚠️ Firebase credentials unavailable, initializing with project ID only: {e}")
        app = firebase_admin.initialize_app(options={"projectId": FIREBASE_PROJECT_ID}, name=APP_NAME)
    return app


def get_firebase_app_or_none() -> Optional[firebase_admin.App]:
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        return None
    return get_firebase_app()
