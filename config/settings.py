"""
Migration settings for MAS Business OS

Settings are read from a YAML file (config/migration.yaml by default) and
selectively overridden by environment variables:

    MAS_SERVICE_ACCOUNT_PATH   path to the Firebase service-account JSON
                               (relative paths resolve against the repo root
                               in a checkout, else the working directory)
    MAS_FIREBASE_PROJECT_ID    explicit Firebase project id
    MAS_DEFAULT_ORG_SLUG       slug of the organization the data moves into
    MAS_DEFAULT_ORG_NAME       display name of that organization

Usage:
    from config import MigrationSettings

    settings = MigrationSettings.load()
    settings.records_per_batch(writes_per_record=2)  # -> 250
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional
import logging
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).parent
PROJECT_ROOT = CONFIG_DIR.parent
DEFAULT_CONFIG_FILE = CONFIG_DIR / "migration.yaml"

# Firestore rejects batched commits with more than 500 writes
FIRESTORE_MAX_BATCH_WRITES = 500


def default_root_dir() -> Path:
    """
    Base directory for relative credential paths.

    A source checkout resolves against the repo root. An installed package
    lives under site-packages, so it resolves against the working directory.
    """
    if (PROJECT_ROOT / "pyproject.toml").exists():
        return PROJECT_ROOT
    return Path.cwd()


class MigrationSettings:
    """
    Settings for one migration run.

    Built once at process start and handed to every component through the
    MigrationContext, so tests can construct one from a plain dict.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, root_dir: Optional[Path] = None):
        self.config = config or {}
        self.root_dir = Path(root_dir) if root_dir else default_root_dir()

    @classmethod
    def load(cls, config_path: Optional[os.PathLike] = None) -> "MigrationSettings":
        """Load settings from YAML, then apply environment overrides"""
        use_dotenv = os.getenv("USE_DOTENV", "true").lower() == "true"
        if use_dotenv:
            load_dotenv()

        path = Path(config_path) if config_path else DEFAULT_CONFIG_FILE
        config = cls._load_config(path)
        cls._apply_env_overrides(config)
        logger.debug(f"Loaded migration settings from {path}")
        return cls(config)

    @staticmethod
    def _load_config(config_path: Path) -> Dict[str, Any]:
        """Load YAML config file"""
        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}")
            return {}

        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
            return config or {}

    @staticmethod
    def _apply_env_overrides(config: Dict[str, Any]) -> None:
        firebase = config.setdefault("firebase", {})
        org = config.setdefault("default_organization", {})

        if os.getenv("MAS_SERVICE_ACCOUNT_PATH"):
            firebase["service_account_path"] = os.environ["MAS_SERVICE_ACCOUNT_PATH"]
        if os.getenv("MAS_FIREBASE_PROJECT_ID"):
            firebase["project_id"] = os.environ["MAS_FIREBASE_PROJECT_ID"]
        if os.getenv("MAS_DEFAULT_ORG_SLUG"):
            org["slug"] = os.environ["MAS_DEFAULT_ORG_SLUG"]
        if os.getenv("MAS_DEFAULT_ORG_NAME"):
            org["name"] = os.environ["MAS_DEFAULT_ORG_NAME"]

    def _section(self, name: str) -> Dict[str, Any]:
        return self.config.get(name) or {}

    # ==========================================
    # Firebase
    # ==========================================

    @property
    def service_account_path(self) -> Path:
        """Absolute path of the service-account credential file"""
        raw = self._section("firebase").get("service_account_path") or "firebase-service-account.json"
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self.root_dir / path
        return path

    @property
    def project_id(self) -> Optional[str]:
        return self._section("firebase").get("project_id")

    # ==========================================
    # Default organization
    # ==========================================

    @property
    def default_organization(self) -> Dict[str, Any]:
        """Raw default-organization section (copied, callers may mutate it)"""
        return copy.deepcopy(self._section("default_organization"))

    @property
    def default_org_slug(self) -> str:
        return self._section("default_organization").get("slug") or "default-org"

    # ==========================================
    # Collections
    # ==========================================

    @property
    def organizations_collection(self) -> str:
        return self._section("collections").get("organizations", "organizations")

    @property
    def users_collection(self) -> str:
        return self._section("collections").get("users", "users")

    @property
    def user_organizations_collection(self) -> str:
        return self._section("collections").get("user_organizations", "userOrganizations")

    @property
    def taggable_collections(self) -> Dict[str, str]:
        """Label -> collection name, in migration order"""
        taggable = self._section("collections").get("taggable")
        if not taggable:
            return {
                "Project": "projects",
                "Task": "tasks",
                "Invoice": "invoices",
                "Ticket": "tickets",
            }
        return dict(taggable)

    # ==========================================
    # Batching
    # ==========================================

    @property
    def max_batch_writes(self) -> int:
        value = int(self._section("batching").get("max_batch_writes", FIRESTORE_MAX_BATCH_WRITES))
        return max(1, min(value, FIRESTORE_MAX_BATCH_WRITES))

    @property
    def max_records_per_batch(self) -> int:
        return max(1, int(self._section("batching").get("max_records_per_batch", 250)))

    def records_per_batch(self, writes_per_record: int = 1) -> int:
        """
        Number of logical records staged before a batch is committed.

        Derived from the per-commit write limit, then capped by
        max_records_per_batch.

        Args:
            writes_per_record: writes staged for every record (users: 2)
        """
        if writes_per_record < 1:
            raise ValueError("writes_per_record must be >= 1")
        per_limit = self.max_batch_writes // writes_per_record
        return max(1, min(per_limit, self.max_records_per_batch))

    # ==========================================
    # Membership
    # ==========================================

    @property
    def default_roles(self) -> List[str]:
        roles = self._section("membership").get("default_roles")
        return list(roles) if roles else ["employee"]
