"""
Tag-if-absent pass over a Firestore collection.

Every record lacking the organization field gets it, together with an
updatedAt timestamp. Records that already carry the field are left alone,
so the pass is safe to re-run. One record failing never stops the pass.
"""

from collections.abc import Mapping
from typing import Any, Callable, Dict, Optional

from firebase_admin import firestore

from models.tenant_models import CollectionStats, MigrationStats
from services.batch_writer import BatchWriter
from services.logger_singleton import LoggerSingleton
from services.migration_errors import MalformedDocumentError

logger = LoggerSingleton.get_logger(__name__)

ORGANIZATION_FIELD = "organizationId"


def document_data(snapshot) -> Dict[str, Any]:
    """Snapshot fields as a dict, or MalformedDocumentError"""
    data = snapshot.to_dict()
    if not isinstance(data, Mapping):
        raise MalformedDocumentError(snapshot.id)
    return dict(data)


def has_field(field: str) -> Callable[[Dict[str, Any]], bool]:
    """Skip predicate: the field holds a non-empty value"""
    def predicate(data: Dict[str, Any]) -> bool:
        # "" and None both count as untagged
        return bool(data.get(field))
    return predicate


def tag_collection(
    ctx,
    collection_name: str,
    organization_id: str,
    field: str = ORGANIZATION_FIELD,
    already_tagged: Optional[Callable[[Dict[str, Any]], bool]] = None,
    label: Optional[str] = None,
    errors: Optional[list] = None,
) -> CollectionStats:
    """
    Set `field` to organization_id on every record of the collection that
    does not have it yet.

    Args:
        ctx: MigrationContext
        collection_name: Firestore collection to walk
        organization_id: value written into `field`
        field: field name, organizationId by default
        already_tagged: predicate over the record data; True means skip
        label: singular name used in logs and error strings
        errors: list receiving "<label> <id>: <error>" strings

    Returns:
        CollectionStats with migrated/failed counts for this pass
    """
    label = label or collection_name
    already_tagged = already_tagged or has_field(field)
    errors = errors if errors is not None else []
    result = CollectionStats()

    snapshots = list(ctx.collection(collection_name).stream())
    logger.info(f"Found {len(snapshots)} {collection_name} to migrate")

    writer = BatchWriter(
        ctx.db,
        ctx.settings.records_per_batch(writes_per_record=1),
        label=label.lower(),
    )
    with writer:
        for snapshot in snapshots:
            try:
                data = document_data(snapshot)
                if already_tagged(data):
                    logger.debug(f"⏭️  {label} {snapshot.id} already migrated")
                    continue

                writer.update(snapshot.reference, {
                    field: organization_id,
                    "updatedAt": firestore.SERVER_TIMESTAMP,
                })
            except Exception as e:
                logger.error(f"❌ Failed to migrate {label.lower()} {snapshot.id}: {e}")
                result.failed += 1
                errors.append(f"{label} {snapshot.id}: {e}")
                continue

            result.migrated += 1
            # Commit failures are not per-record; they abort the run
            writer.record_done()

    logger.info(f"✅ Migrated {result.migrated} {collection_name}")
    if result.failed > 0:
        logger.warning(f"⚠️  Failed to migrate {result.failed} {collection_name}")
    return result


def tag_all_collections(ctx, organization_id: str, stats: MigrationStats) -> None:
    """Run tag_collection over every configured taggable collection"""
    taggable = ctx.settings.taggable_collections
    for label, collection_name in taggable.items():
        logger.info(f"\n📋 Migrating {collection_name}...")
        result = tag_collection(
            ctx,
            collection_name,
            organization_id,
            label=label,
            errors=stats.errors,
        )
        stats.for_collection(collection_name).merge(result)
