#!/usr/bin/env python3
"""
Sync Firebase Auth users into Firestore user documents

For every Auth account, writes users/{uid} (merged) with roles, derived
permissions and portal access taken from the account's custom claims.
Run before migrate_to_multi_tenant.py so every account gets linked.
Credentials are read the same way as the migration: MAS_SERVICE_ACCOUNT_PATH,
else firebase-service-account.json at the repository root (or the working
directory for the installed mas-sync-auth-users command).

Usage:
  python scripts/migration/sync_auth_users.py
"""

import os
import sys

# Add repository root to path to import services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from services.auth_user_sync import main


if __name__ == "__main__":
    sys.exit(main())
