"""Version of the MAS tenant migration tooling, logged at startup."""
from importlib import metadata
from pathlib import Path
import tomllib

DISTRIBUTION = "mas-tenant-migration"
UNKNOWN_VERSION = "0+unknown"


def _version_from_pyproject(pyproject: Path) -> str | None:
    try:
        with pyproject.open("rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        return None


def get_app_version() -> str:
    # A source checkout wins over installed metadata, which may be stale
    checkout_version = _version_from_pyproject(Path(__file__).with_name("pyproject.toml"))
    if checkout_version:
        return checkout_version
    try:
        return metadata.version(DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return UNKNOWN_VERSION


__version__ = get_app_version()
