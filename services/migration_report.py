from typing import List

from models.tenant_models import MigrationStats
from services.logger_singleton import LoggerSingleton

logger = LoggerSingleton.get_logger(__name__)


def format_report(stats: MigrationStats) -> List[str]:
    """Summary lines: one per entity type, then every error verbatim"""
    lines = [
        "📊 Migration Summary",
        "====================",
        f"Organizations: {stats.organizations.model_dump()}",
        f"Users: {stats.users.model_dump()}",
        f"Projects: {stats.projects.model_dump()}",
        f"Tasks: {stats.tasks.model_dump()}",
        f"Invoices: {stats.invoices.model_dump()}",
        f"Tickets: {stats.tickets.model_dump()}",
    ]
    for collection_name, counts in stats.other.items():
        lines.append(f"{collection_name.capitalize()}: {counts.model_dump()}")
    lines.append(f"Auth claims: {stats.claims.model_dump()}")

    if stats.errors:
        lines.append("")
        lines.append("⚠️  Errors encountered:")
        lines.extend(f"  - {error}" for error in stats.errors)
    return lines


def report(stats: MigrationStats) -> None:
    logger.info("")
    for line in format_report(stats):
        logger.info(line)
