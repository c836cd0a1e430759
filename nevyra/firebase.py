# Firebase initialization for the Django backend
import firebase_admin
from django.conf import settings
from firebase_admin import credentials, firestore

_client = None


def get_db():
    """Return the shared Firestore client, initialising the Firebase app on first use."""
    global _client
    if _client is None:
        if not firebase_admin._apps:
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS)
            firebase_admin.initialize_app(cred)
        _client = firestore.client()
    return _client
