"""
Configuration for the MAS Business OS tenant migration tooling.

Settings come from a YAML file plus environment variable overrides.
"""

from .settings import MigrationSettings, FIRESTORE_MAX_BATCH_WRITES

__all__ = ["MigrationSettings", "FIRESTORE_MAX_BATCH_WRITES"]
