# tracking_core/tasks.py
from __future__ import annotations

import logging

from celery import shared_task
from django.conf import settings

from tracking_core.services.ingestion import sync_store

logger = logging.getLogger(__name__)


@shared_task
def sync_store_orders(store_name: str) -> dict:
    return sync_store(store_name)


@shared_task
def sync_all_stores() -> dict:
    """
    Beat entry point: pull every store that has an API URL configured.
    A failing store is logged and does not stop the others.
    """
    summary = {}
    for store_name, url in getattr(settings, "TRACKING", {}).get("STORES", {}).items():
        if not url:
            continue
        try:
            summary[store_name] = sync_store(store_name)
        except Exception as exc:
            logger.warning("scheduled sync failed store=%s: %s", store_name, exc)
            summary[store_name] = {"error": str(exc)}
    return summary
