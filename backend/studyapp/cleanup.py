from __future__ import annotations
import asyncio
import logging
from datetime import timedelta
from typing import Optional

from .onboarding import OnboardingRegistry
from .settings import settings


logger = logging.getLogger(__name__)


def purge_stale_onboarding(registry: OnboardingRegistry, max_age: Optional[timedelta] = None) -> int:
	max_age = max_age or timedelta(minutes=settings.onboarding_session_ttl_minutes)
	removed = registry.purge_older_than(max_age)
	if removed:
		logger.info("Purged %d stale onboarding sessions", removed)
	return removed


class PeriodicCleanup:
	"""Owns the background purge loop for the lifetime of the app.

	``start()`` schedules the loop on the running event loop and ``stop()``
	cancels it and waits for it to exit.
	"""

	def __init__(self, registry: OnboardingRegistry, interval_seconds: Optional[float] = None) -> None:
		self.registry = registry
		self.interval = interval_seconds or settings.onboarding_cleanup_interval_seconds
		self._task: Optional[asyncio.Task] = None

	@property
	def running(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self) -> None:
		if self.running:
			return
		self._task = asyncio.create_task(self._run(), name="onboarding-cleanup")

	async def stop(self) -> None:
		if self._task is None:
			return
		self._task.cancel()
		try:
			await self._task
		except asyncio.CancelledError:
			pass
		self._task = None

	async def _run(self) -> None:
		while True:
			try:
				purge_stale_onboarding(self.registry)
			except Exception:
				logger.exception("Onboarding cleanup failed")
			await asyncio.sleep(self.interval)
