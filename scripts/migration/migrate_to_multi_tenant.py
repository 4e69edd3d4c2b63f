#!/usr/bin/env python3
"""
Migrate MAS Business OS single-tenant data to the multi-tenant model

This script:
1. Creates the default Organization (slug: default-org) if it is missing
2. Backfills organizationId on projects, tasks, invoices and tickets
3. Adds organization membership to every user + userOrganizations records
4. Sets {organizationId, organizationRoles} custom claims in Firebase Auth
5. Prints a summary of created/existing/migrated/failed counts

Run this AFTER deploying the new code but BEFORE users access the system.
Requires firebase-service-account.json at the repository root. The
installed mas-migrate-multi-tenant command looks in the working directory
instead; set MAS_SERVICE_ACCOUNT_PATH to point anywhere else.

Usage:
  python scripts/migration/migrate_to_multi_tenant.py

  # Check tenant invariants afterwards
  python scripts/migration/migrate_to_multi_tenant.py --verify

  # Only check, make no changes
  python scripts/migration/migrate_to_multi_tenant.py --verify-only
"""

import os
import sys

# Add repository root to path to import services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from services.migration_runner import main


if __name__ == "__main__":
    sys.exit(main())
