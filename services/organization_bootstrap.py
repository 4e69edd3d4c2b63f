from typing import Optional

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from models.tenant_models import Organization, MigrationStats
from services.logger_singleton import LoggerSingleton

logger = LoggerSingleton.get_logger(__name__)


def build_default_organization(settings) -> Organization:
    """Default organization from settings, with built-in fallbacks"""
    return Organization(**settings.default_organization)


def find_organization_by_slug(ctx, slug: str) -> Optional[str]:
    """Return the id of the first organization with this slug, or None"""
    query = (
        ctx.collection(ctx.settings.organizations_collection)
        .where(filter=FieldFilter("slug", "==", slug))
        .limit(1)
    )
    for snapshot in query.stream():
        return snapshot.id
    return None


def ensure_default_organization(ctx, stats: MigrationStats) -> str:
    """
    Make sure exactly one organization with the default slug exists.

    Returns the organization id. Reuses an existing organization (no writes)
    or creates it once. Store errors propagate and abort the run.
    """
    logger.info("\n📦 Creating default organization...")
    slug = ctx.settings.default_org_slug

    existing_id = find_organization_by_slug(ctx, slug)
    if existing_id:
        logger.info(f"✅ Default organization already exists: {existing_id}")
        stats.organizations.existing += 1
        return existing_id

    organization = build_default_organization(ctx.settings)
    organization.slug = slug
    _, org_ref = ctx.collection(ctx.settings.organizations_collection).add(
        organization.to_document(firestore.SERVER_TIMESTAMP)
    )
    logger.info(f"✅ Created default organization: {org_ref.id}")
    stats.organizations.created += 1
    return org_ref.id
