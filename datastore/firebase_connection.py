"""
Firebase connection for the migration tooling.

Builds a MigrationContext holding the settings, a Firestore client and an
Auth client. Components receive the context explicitly; nothing here keeps
module-level clients.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional

import firebase_admin
from firebase_admin import auth, credentials, firestore

from config import MigrationSettings
from services.logger_singleton import LoggerSingleton
from services.migration_errors import CredentialsNotFoundError

logger = LoggerSingleton.get_logger(__name__)

APP_NAME = "mas-migration"


@dataclass
class MigrationContext:
    """Everything a migration step needs: settings plus store/identity clients"""
    settings: MigrationSettings
    db: Any
    auth: Any
    app: Optional[firebase_admin.App] = None

    def collection(self, name: str):
        return self.db.collection(name)


def check_credentials(settings: MigrationSettings):
    """Raise CredentialsNotFoundError unless the service-account file exists"""
    path = settings.service_account_path
    if not path.is_file():
        raise CredentialsNotFoundError(path)
    return path


def initialize_firebase(settings: MigrationSettings) -> MigrationContext:
    """Initialize a named Firebase app from the service-account file"""
    path = check_credentials(settings)

    with open(path, "r") as f:
        service_account = json.load(f)

    project_id = settings.project_id or service_account.get("project_id")
    options = {"projectId": project_id} if project_id else None

    try:
        app = firebase_admin.get_app(APP_NAME)
    except ValueError:
        app = firebase_admin.initialize_app(
            credentials.Certificate(service_account),
            options=options,
            name=APP_NAME,
        )
    logger.info(f"✅ Firebase initialized for project: {project_id or 'unknown'}")

    return MigrationContext(
        settings=settings,
        db=firestore.client(app),
        auth=auth.Client(app),
        app=app,
    )


def close_firebase(context: MigrationContext) -> None:
    if context.app is not None:
        firebase_admin.delete_app(context.app)
        context.app = None
