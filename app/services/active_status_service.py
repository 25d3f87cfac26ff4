"""
Keep the isActive flag of stored FSIS recalls in line with the FSIS feed.

The feed carries its own active notice per recall number. Stored FSIS recalls
whose flag disagrees are rewritten; nothing else on the record changes.
"""
import logging

from app.database.mongo import recall_store
from app.fsis.client import FsisClient
from app.fsis.fetch_recalls import feed_recall_number, is_active_notice
from app.models.recall import Agency
from app.normalizer.dates import utcnow

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


def feed_active_flags(feed: list) -> dict[str, bool]:
    """recall number -> active flag for every feed entry that has a number."""
    flags = {}
    for record in feed:
        if not isinstance(record, dict):
            continue
        number = feed_recall_number(record)
        if number:
            flags[number] = is_active_notice(record)
    return flags


async def refresh_active_from_fsis(store=None, client=None, dry_run: bool = False, mark_missing: bool = False,
                                   batch_size: int = BATCH_SIZE) -> dict:
    """
    Update stored FSIS recalls from the live feed's active notices.

    With `mark_missing`, active FSIS recalls that no longer appear in the
    feed are marked inactive as well. A dry run only counts.
    """
    store = store or recall_store
    client = client or FsisClient()
    logger.info("▶ Refreshing FSIS active flags...")

    flags = feed_active_flags(await client.get())
    if not flags:
        logger.warning("FSIS feed had no recall numbers, nothing to compare against")
        return {"checked": 0, "updated": 0, "missing": 0, "dryRun": dry_run}

    last_id = None
    checked = 0
    updated = 0
    missing = 0

    while True:
        batch_docs = await store.find_batch(last_id, batch_size, filter={"agency": Agency.FSIS.value})
        if not batch_docs:
            break

        for doc in batch_docs:
            last_id = doc["_id"]
            checked += 1
            recall_id = doc.get("recallId")
            current = doc.get("isActive", True) is not False

            if recall_id in flags:
                wanted = flags[recall_id]
            elif mark_missing and current:
                missing += 1
                wanted = False
            else:
                continue

            if wanted == current:
                continue
            updated += 1
            if dry_run:
                logger.info(f"[dry-run] Would set {recall_id} isActive={wanted}")
                continue
            await store.update_by_id(doc["_id"], dict(doc, isActive=wanted, updatedAt=utcnow()))

    logger.info(f"✔ FSIS active refresh complete. {checked} checked, {updated} changed, {missing} missing from feed.")
    return {"checked": checked, "updated": updated, "missing": missing, "dryRun": dry_run}
