"""Scheduled purge of expired notifications."""

from __future__ import annotations

import logging
from typing import Optional

from sanga.domain.notifications.dispatcher import NotificationDispatcher
from sanga.infra.scheduler import JobScheduler
from sanga.infra.store import get_store
from sanga.obs import metrics as obs_metrics
from sanga.settings import settings

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "notifications.sweep_expired"


async def run_sweep(dispatcher: Optional[NotificationDispatcher] = None) -> int:
	dispatcher = dispatcher or NotificationDispatcher(get_store())
	try:
		purged = await dispatcher.sweep_expired()
	except Exception:
		obs_metrics.record_background_run("notification_sweep", "error")
		logger.exception("notification sweep failed")
		raise
	obs_metrics.record_background_run("notification_sweep", "ok")
	if purged:
		logger.info("notification sweep purged records", extra={"count": purged})
	return purged


def install(scheduler: JobScheduler) -> bool:
	"""Register the sweep on ``scheduler``; returns False when disabled."""
	if not settings.notification_sweep_enabled:
		return False
	scheduler.schedule_every(SWEEP_JOB_ID, run_sweep, minutes=settings.notification_sweep_interval_minutes)
	return True
