"""
Multi-tenant migration for MAS Business OS

Sequence (strictly linear, no retries):
1. Ensure the default organization exists
2. Tag projects, tasks, invoices and tickets with organizationId
3. Link every user to the organization (+ userOrganizations records)
4. Mirror organization and roles into Firebase Auth custom claims
5. Print the run report

Every step skips records that are already migrated, so re-running the
whole script is the recovery path after a partial failure.
"""

import argparse
import sys
from typing import Callable, Optional, Sequence

from config import MigrationSettings
from datastore.firebase_connection import (
    MigrationContext,
    check_credentials,
    close_firebase,
    initialize_firebase,
)
from models.tenant_models import MigrationStats
from services.entity_tagger import tag_all_collections
from services.logger_singleton import LoggerSingleton
from services.membership_linker import migrate_users, sync_auth_claims
from services.migration_errors import CredentialsNotFoundError, OrganizationNotFoundError
from services.migration_report import report
from services.migration_verifier import verify_migration
from services.organization_bootstrap import ensure_default_organization, find_organization_by_slug
from version import __version__

logger = LoggerSingleton.get_logger(__name__)


def run_migration(ctx: MigrationContext, stats: Optional[MigrationStats] = None) -> MigrationStats:
    """Run every migration step once and return the run statistics"""
    stats = stats or MigrationStats()
    logger.info("🚀 Starting Multi-Tenant Migration")
    logger.info("==================================")

    organization_id = ensure_default_organization(ctx, stats)
    stats.organization_id = organization_id

    tag_all_collections(ctx, organization_id, stats)
    migrate_users(ctx, organization_id, stats)

    # Claims only ever reflect committed membership data
    sync_auth_claims(ctx, organization_id, stats)

    report(stats)
    logger.info("\n✅ Migration completed successfully!")
    logger.info("\n⚠️  IMPORTANT: Deploy the updated security rules now!")
    logger.info("Run: firebase deploy --only firestore:rules")
    return stats


def verify_only(ctx: MigrationContext) -> bool:
    slug = ctx.settings.default_org_slug
    organization_id = find_organization_by_slug(ctx, slug)
    if not organization_id:
        raise OrganizationNotFoundError(slug)
    return verify_migration(ctx, organization_id).ok


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Migrate MAS Business OS data to the multi-tenant model")
    parser.add_argument(
        "--config",
        default=None,
        help="YAML settings file (default: config/migration.yaml)"
    )
    parser.add_argument(
        "--verify",
        action="store_true",
        help="Verify tenant invariants after the migration"
    )
    parser.add_argument(
        "--verify-only",
        action="store_true",
        help="Only verify tenant invariants, make no changes"
    )
    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    context_factory: Callable[[MigrationSettings], MigrationContext] = initialize_firebase,
) -> int:
    """CLI entry point; returns the process exit code"""
    args = build_parser().parse_args(argv)
    settings = MigrationSettings.load(args.config)

    # Checked before any network call
    try:
        check_credentials(settings)
    except CredentialsNotFoundError as e:
        print(f"❌ {e}", file=sys.stderr)
        print(f"Please ensure {settings.service_account_path.name} exists", file=sys.stderr)
        return 1

    logger.info(f"MAS tenant migration v{__version__}")
    ctx = None
    try:
        ctx = context_factory(settings)
        if args.verify_only:
            return 0 if verify_only(ctx) else 1

        stats = run_migration(ctx)
        if args.verify and stats.organization_id:
            verify_migration(ctx, stats.organization_id)
        return 0
    except Exception as e:
        logger.error(f"\n❌ Migration failed: {e}")
        return 1
    finally:
        if ctx is not None:
            close_firebase(ctx)


if __name__ == "__main__":
    sys.exit(main())
