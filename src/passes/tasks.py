import structlog
from celery import shared_task

from passes.service import rotation_store

logger = structlog.get_logger(__name__)


@shared_task(name="passes.purge_expired_rotation_records")
def purge_expired_rotation_records() -> dict[str, int]:
    """Delete expired credential records that per-pass garbage collection left behind."""
    deleted = rotation_store.purge_expired_records()
    logger.info("rotation_records_purged", deleted=deleted)
    return {"deleted": deleted}
