"""
Firebase Auth -> Firestore user sync.

Materialises users/{uid} for every Auth account from the account itself
and its custom claims. Run before the multi-tenant migration, which only
links users that have a Firestore document.
"""

import sys
from datetime import datetime, timezone
from typing import Optional

from config import MigrationSettings
from datastore.firebase_connection import check_credentials, close_firebase, initialize_firebase
from models.tenant_models import AuthUserProfile, PortalAccess, SyncStats, UserMetadata
from services.logger_singleton import LoggerSingleton
from services.migration_errors import CredentialsNotFoundError
from services.role_permissions import permissions_for_roles

logger = LoggerSingleton.get_logger(__name__)


def _from_millis(value: Optional[int]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def build_user_profile(account, now: Optional[datetime] = None) -> AuthUserProfile:
    now = now or datetime.now(timezone.utc)
    claims = account.custom_claims or {}
    roles = list(claims.get("roles") or [])
    metadata = getattr(account, "user_metadata", None)

    return AuthUserProfile(
        id=account.uid,
        email=account.email,
        displayName=account.display_name or "",
        roles=roles,
        permissions=permissions_for_roles(roles),
        portalAccess=PortalAccess(**(claims.get("portalAccess") or {})),
        department=claims.get("department") or "",
        employeeCode=claims.get("employeeCode") or "",
        phoneNumber=account.phone_number or "",
        photoURL=account.photo_url or "",
        isActive=not account.disabled,
        emailVerified=bool(account.email_verified),
        metadata=UserMetadata(
            createdAt=_from_millis(getattr(metadata, "creation_timestamp", None)) or now,
            updatedAt=now,
            lastLoginAt=_from_millis(getattr(metadata, "last_sign_in_timestamp", None)),
        ),
    )


def sync_auth_users(ctx) -> SyncStats:
    """Write a merged users/{uid} document for every Auth account"""
    logger.info("🔄 Syncing Firebase Auth users to Firestore...")
    stats = SyncStats()

    accounts = list(ctx.auth.list_users().iterate_all())
    logger.info(f"Found {len(accounts)} users in Firebase Auth")

    users = ctx.collection(ctx.settings.users_collection)
    for account in accounts:
        try:
            profile = build_user_profile(account)
            users.document(account.uid).set(profile.model_dump(), merge=True)
            stats.synced += 1
            logger.info(f"✅ User document created/updated for: {account.email or account.uid}")
        except Exception as e:
            logger.error(f"❌ Failed to sync user {account.uid}: {e}")
            stats.failed += 1
            stats.errors.append(f"User {account.uid}: {e}")

    logger.info(f"✨ Synced {stats.synced} users ({stats.failed} failed)")
    return stats


def main(argv=None, context_factory=None) -> int:
    """CLI entry point for the Auth -> Firestore sync"""
    import argparse

    parser = argparse.ArgumentParser(description="Sync Firebase Auth users into Firestore user documents")
    parser.add_argument("--config", default=None, help="YAML settings file (default: config/migration.yaml)")
    args = parser.parse_args(argv)

    settings = MigrationSettings.load(args.config)
    try:
        check_credentials(settings)
    except CredentialsNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        return 1

    context_factory = context_factory or initialize_firebase
    ctx = None
    try:
        ctx = context_factory(settings)
        stats = sync_auth_users(ctx)
        logger.info("🎉 Sync complete!")
        if stats.failed:
            logger.warning(f"⚠️  {stats.failed} users failed to sync, re-run to retry")
        return 0
    except Exception as e:
        logger.error(f"❌ Sync failed: {e}")
        return 1
    finally:
        if ctx is not None:
            close_firebase(ctx)
