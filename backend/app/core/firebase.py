import json
import base64
import logging
from functools import lru_cache

from firebase_admin import credentials, initialize_app, get_app, firestore
from app.core.config import settings

logger = logging.getLogger("safaripay")


def init_firebase():
    try:
        get_app()
        logger.info("✅ Firebase Admin SDK already initialized")
        return
    except ValueError:
        pass

    if settings.FIREBASE_KEY:
        try:
            decoded_json = base64.b64decode(settings.FIREBASE_KEY).decode("utf-8")
            service_account_info = json.loads(decoded_json)
            logger.info("🔑 Loaded Firebase credentials from FIREBASE_KEY")
        except Exception as e:
            raise RuntimeError(f"❌ Failed to decode or parse FIREBASE_KEY: {e}")

        if not service_account_info.get("project_id"):
            raise ValueError("❌ 'project_id' missing in Firebase service account JSON")
        cred = credentials.Certificate(service_account_info)
    elif settings.GOOGLE_APPLICATION_CREDENTIALS:
        cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
        logger.info("🔑 Loaded Firebase credentials from GOOGLE_APPLICATION_CREDENTIALS")
    else:
        raise RuntimeError("❌ Neither FIREBASE_KEY nor GOOGLE_APPLICATION_CREDENTIALS is set")

    app = initialize_app(cred)
    logger.info(f"🔥 Firebase Admin SDK initialized | Project: {app.project_id}")


@lru_cache(maxsize=1)
def get_firestore_client():
    """Initialise Firebase on first use and return the shared Firestore client."""
    init_firebase()
    try:
        db = firestore.client()
    except Exception as e:
        logger.error(f"❌ Failed to initialize Firestore client: {e}")
        raise
    logger.info("✅ Firestore client ready")
    return db
