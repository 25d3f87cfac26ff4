import logging

from app.database.mongo import recall_store
from app.errors import StoreUnavailableError
from app.normalizer.dates import utcnow
from app.normalizer.pipeline import normalize_recall

logger = logging.getLogger(__name__)


def to_document(recall) -> dict:
    doc = recall.model_dump()
    doc["updatedAt"] = utcnow()
    return doc


async def persist_recalls(records, store=None) -> int:
    """
    Normalize and upsert each record by recallId. Returns how many were newly
    created. A bad record is logged and skipped; an unreachable store aborts.
    """
    store = store or recall_store
    created = 0

    for record in records or []:
        recall_id = None
        try:
            recall = normalize_recall(record)
            if recall is None:
                continue
            recall_id = recall.recallId
            if await store.upsert(recall_id, to_document(recall)):
                created += 1
        except StoreUnavailableError:
            raise
        except Exception:
            logger.exception(f"Failed to persist recall {recall_id}")

    logger.info(f"Persisted {len(records or [])} recalls, {created} new")
    return created
