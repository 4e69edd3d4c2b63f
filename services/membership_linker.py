"""
Organization membership for users.

Pass 1 (migrate_users) writes the membership entry on every user document
and a denormalized userOrganizations record in the same batch. Pass 2
(sync_auth_claims) runs only after every data write is committed and
mirrors organization and roles into Firebase Auth custom claims.
"""

from typing import Any, Dict, List

from firebase_admin import firestore

from models.tenant_models import MigrationStats, OrganizationMembership, UserOrganization
from services.batch_writer import BatchWriter
from services.entity_tagger import document_data
from services.logger_singleton import LoggerSingleton

logger = LoggerSingleton.get_logger(__name__)

# A user stages one update plus one membership record
WRITES_PER_USER = 2


def is_member(user_data: Dict[str, Any], organization_id: str) -> bool:
    organizations = user_data.get("organizations") or {}
    return bool(organizations.get(organization_id))


def roles_for(user_data: Dict[str, Any], default_roles: List[str]) -> List[str]:
    roles = user_data.get("roles")
    return list(roles) if roles else list(default_roles)


def link_user(ctx, user_snapshot, organization_id: str, writer: BatchWriter) -> bool:
    """
    Stage the membership writes for one user.

    Returns False when the user already belongs to the organization.
    Raises MalformedDocumentError for unreadable user documents.
    """
    user_data = document_data(user_snapshot)
    if is_member(user_data, organization_id):
        logger.info(f"⏭️  User {user_data.get('email') or user_snapshot.id} already migrated")
        return False

    roles = roles_for(user_data, ctx.settings.default_roles)
    membership = OrganizationMembership(
        roles=roles,
        joinedAt=firestore.SERVER_TIMESTAMP,
        active=True,
    )
    record = UserOrganization(
        userId=user_snapshot.id,
        organizationId=organization_id,
        roles=roles,
        department=user_data.get("department") or "",
        position=user_data.get("position") or user_data.get("title") or "",
        joinedAt=firestore.SERVER_TIMESTAMP,
        active=True,
    )
    record_ref = ctx.collection(ctx.settings.user_organizations_collection).document(record.key)

    # Dotted path keeps memberships in other organizations intact
    user_update = {
        f"organizations.{organization_id}": membership.model_dump(),
        "currentOrganizationId": organization_id,
        "updatedAt": firestore.SERVER_TIMESTAMP,
    }

    # User update goes last: a membership entry never lands without its record
    writer.set(record_ref, record.model_dump())
    writer.update(user_snapshot.reference, user_update)
    return True


def migrate_users(ctx, organization_id: str, stats: MigrationStats) -> None:
    """Link every user document to the organization"""
    logger.info("\n👥 Migrating users...")

    snapshots = list(ctx.collection(ctx.settings.users_collection).stream())
    logger.info(f"Found {len(snapshots)} users to migrate")

    writer = BatchWriter(
        ctx.db,
        ctx.settings.records_per_batch(writes_per_record=WRITES_PER_USER),
        label="user",
    )
    with writer:
        for snapshot in snapshots:
            try:
                linked = link_user(ctx, snapshot, organization_id, writer)
            except Exception as e:
                logger.error(f"❌ Failed to migrate user {snapshot.id}: {e}")
                stats.users.failed += 1
                stats.errors.append(f"User {snapshot.id}: {e}")
                continue

            if linked:
                stats.users.migrated += 1
                writer.record_done()

    logger.info(f"✅ Migrated {stats.users.migrated} users")
    if stats.users.failed > 0:
        logger.warning(f"⚠️  Failed to migrate {stats.users.failed} users")


def _list_auth_users(ctx):
    return list(ctx.auth.list_users().iterate_all())


def sync_auth_claims(ctx, organization_id: str, stats: MigrationStats) -> None:
    """
    Set {organizationId, organizationRoles} claims on every Auth account
    whose user document is a member of the organization.

    Existing custom claims are kept; the two organization keys are
    overwritten.
    """
    logger.info("\n🔐 Updating authentication custom claims...")

    try:
        accounts = _list_auth_users(ctx)
    except Exception as e:
        logger.error(f"❌ Failed to update auth claims: {e}")
        stats.errors.append(f"Auth claims: {e}")
        return

    users = ctx.collection(ctx.settings.users_collection)
    for account in accounts:
        display = account.email or account.uid
        try:
            user_doc = users.document(account.uid).get()
            if not user_doc.exists:
                logger.warning(f"⚠️  No Firestore document for auth user {display}")
                stats.claims.skipped += 1
                continue

            user_data = document_data(user_doc)
            membership = (user_data.get("organizations") or {}).get(organization_id)
            if not membership:
                logger.warning(f"⚠️  User {display} not in organization")
                stats.claims.skipped += 1
                continue

            claims = dict(account.custom_claims or {})
            claims["organizationId"] = organization_id
            claims["organizationRoles"] = list(membership.get("roles") or ctx.settings.default_roles)
            ctx.auth.set_custom_user_claims(account.uid, claims)

            stats.claims.updated += 1
            logger.info(f"  ✅ Updated claims for {display}")
        except Exception as e:
            logger.error(f"  ❌ Failed to update claims for {account.uid}: {e}")
            stats.claims.failed += 1
            stats.errors.append(f"Claims {account.uid}: {e}")
