import logging

from app import providers
from app.config import settings
from app.models.recall import SyncResult
from app.services.persist_service import persist_recalls

logger = logging.getLogger(__name__)


async def full_sync(limit: int | None = None, months_back: int | None = None, store=None) -> SyncResult:
    logger.info("▶ Starting full recall sync...")

    records = await providers.fetch_all_recalls(
        limit=limit or settings.SYNC_LIMIT,
        months_back=settings.SYNC_MONTHS_BACK if months_back is None else months_back,
    )
    saved = await persist_recalls(records, store=store)

    logger.info(f"✔ Sync complete. {len(records)} fetched, {saved} new.")
    return SyncResult(fetched=len(records), saved=saved)
