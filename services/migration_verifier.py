"""
Read-only checks of the multi-tenant invariants after a migration run.
"""

from typing import Dict, List

from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import BaseModel, Field

from models.tenant_models import UserOrganization
from services.entity_tagger import ORGANIZATION_FIELD
from services.logger_singleton import LoggerSingleton

logger = LoggerSingleton.get_logger(__name__)


class VerificationResult(BaseModel):
    organization_id: str
    organizations_with_slug: int = 0
    untagged: Dict[str, int] = Field(default_factory=dict)
    users_without_membership: List[str] = Field(default_factory=list)
    missing_membership_records: List[str] = Field(default_factory=list)
    mismatched_membership_records: List[str] = Field(default_factory=list)
    malformed_documents: List[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return (
            self.organizations_with_slug == 1
            and not any(self.untagged.values())
            and not self.users_without_membership
            and not self.missing_membership_records
            and not self.mismatched_membership_records
            and not self.malformed_documents
        )


def _as_dict(snapshot, result: VerificationResult):
    data = snapshot.to_dict()
    if not isinstance(data, dict):
        result.malformed_documents.append(snapshot.reference.path)
        return None
    return data


def verify_migration(ctx, organization_id: str) -> VerificationResult:
    """Count every record that breaks a tenant invariant"""
    logger.info("\n=== Verifying Migration ===")
    settings = ctx.settings
    result = VerificationResult(organization_id=organization_id)

    slug_query = ctx.collection(settings.organizations_collection).where(
        filter=FieldFilter("slug", "==", settings.default_org_slug)
    )
    result.organizations_with_slug = len(list(slug_query.stream()))

    for collection_name in settings.taggable_collections.values():
        count = 0
        for snapshot in ctx.collection(collection_name).stream():
            data = _as_dict(snapshot, result)
            if data is not None and data.get(ORGANIZATION_FIELD) != organization_id:
                count += 1
        result.untagged[collection_name] = count

    memberships = ctx.collection(settings.user_organizations_collection)
    for snapshot in ctx.collection(settings.users_collection).stream():
        data = _as_dict(snapshot, result)
        if data is None:
            continue
        entry = (data.get("organizations") or {}).get(organization_id)
        if not entry or not data.get("currentOrganizationId"):
            result.users_without_membership.append(snapshot.id)
            continue

        record_id = UserOrganization.document_id(snapshot.id, organization_id)
        record = memberships.document(record_id).get()
        if not record.exists:
            result.missing_membership_records.append(record_id)
        elif (record.to_dict() or {}).get("roles") != entry.get("roles"):
            result.mismatched_membership_records.append(record_id)

    logger.info(f"  Organizations with slug '{settings.default_org_slug}': {result.organizations_with_slug}")
    for collection_name, count in result.untagged.items():
        logger.info(f"  {collection_name} without {ORGANIZATION_FIELD}={organization_id}: {count}")
    logger.info(f"  Users without membership: {len(result.users_without_membership)}")
    logger.info(f"  Missing membership records: {len(result.missing_membership_records)}")
    logger.info(f"  Mismatched membership records: {len(result.mismatched_membership_records)}")

    if result.organizations_with_slug != 1:
        logger.warning(f"⚠️  Expected exactly one organization with slug '{settings.default_org_slug}'")
    if result.malformed_documents:
        logger.warning(f"⚠️  Malformed documents: {', '.join(result.malformed_documents)}")

    if result.ok:
        logger.info("✓ Migration verification passed")
    else:
        logger.warning("⚠️  Migration verification found violations, re-run the migration")
    return result
