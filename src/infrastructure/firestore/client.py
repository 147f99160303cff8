"""Firestore client construction.

Clients are cached per ``(project_id, credentials_file)`` pair, so contexts
built from different settings never share a connection.
"""

import os
from functools import lru_cache

import structlog
from google.auth import default as google_auth_default
from google.auth.credentials import Credentials
from google.cloud import firestore
from google.oauth2 import service_account

logger = structlog.get_logger()

_SCOPES = ["https://www.googleapis.com/auth/datastore"]


def build_credentials(credentials_file: str = "") -> Credentials | None:
    """Resolve Google credentials for Firestore.

    Order: ``credentials_file``, GOOGLE_APPLICATION_CREDENTIALS, then
    application default credentials. The emulator needs none.
    """
    if os.environ.get("FIRESTORE_EMULATOR_HOST"):
        return None

    key_path = credentials_file or os.environ.get("GOOGLE_APPLICATION_CREDENTIALS", "")
    if key_path and os.path.exists(key_path):
        logger.info("firestore_credentials_loaded", source="service_account_file")
        return service_account.Credentials.from_service_account_file(key_path, scopes=_SCOPES)

    creds, _ = google_auth_default(scopes=_SCOPES)
    logger.info("firestore_credentials_loaded", source="application_default")
    return creds


@lru_cache
def get_async_client(project_id: str = "", credentials_file: str = "") -> firestore.AsyncClient:
    """Async client used for writes and one-shot queries."""
    return firestore.AsyncClient(
        project=project_id or None,
        credentials=build_credentials(credentials_file),
    )


@lru_cache
def get_watch_client(project_id: str = "", credentials_file: str = "") -> firestore.Client:
    """Sync client; only it supports ``on_snapshot`` watches."""
    return firestore.Client(
        project=project_id or None,
        credentials=build_credentials(credentials_file),
    )
