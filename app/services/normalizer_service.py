import logging

from app.database.mongo import recall_store
from app.errors import StoreUnavailableError
from app.normalizer.pipeline import normalize_recall
from app.services.persist_service import to_document

logger = logging.getLogger(__name__)

BATCH_SIZE = 100


async def renormalize_all(store=None, batch_size: int = BATCH_SIZE):
    """
    Re-run normalization over every stored recall and write the result back
    in place. Used after the cleaning or inference rules change.
    """
    store = store or recall_store
    logger.info("▶ Re-normalizing stored recalls...")

    last_id = None
    count = 0
    failed = 0

    while True:
        batch_docs = await store.find_batch(last_id, batch_size)
        if not batch_docs:
            break

        for doc in batch_docs:
            last_id = doc["_id"]
            try:
                recall = normalize_recall(doc)
                await store.update_by_id(doc["_id"], to_document(recall))
                count += 1
            except StoreUnavailableError:
                raise
            except Exception:
                failed += 1
                logger.exception(f"Failed to re-normalize recall {doc.get('recallId', doc['_id'])}")

    logger.info(f"✔ Re-normalization complete. {count} recalls updated, {failed} failed.")
    return {"renormalized": count, "failed": failed}
