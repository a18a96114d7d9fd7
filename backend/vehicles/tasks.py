"""Celery tasks for vehicle documents."""

import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task
def expire_documents_task():
    """Daily: flip documents past their expiry date to 'expired'."""
    from vehicles.services import expire_documents

    expired = expire_documents()
    logger.info("Document expiry sweep finished (%d expired)", expired)
    return expired
