"""Health check helpers for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from time import perf_counter
from typing import Any, Dict, Tuple

from sanga.infra.store import get_store
from sanga.obs import metrics
from sanga.settings import settings

LOGGER = logging.getLogger(__name__)


async def _store_status(timeout: float = 0.3) -> Dict[str, Any]:
	start = perf_counter()
	try:
		await asyncio.wait_for(get_store().ping(), timeout=timeout)
		latency = perf_counter() - start
		metrics.mark_store(True, latency_seconds=latency)
		return {"ok": True, "backend": settings.store_backend, "latency_ms": round(latency * 1000, 2)}
	except Exception as exc:  # pragma: no cover - depends on runtime
		metrics.mark_store(False)
		LOGGER.warning("Store readiness check failed", exc_info=True)
		return {"ok": False, "backend": settings.store_backend, "error": str(exc)}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	store_state = await _store_status()
	ok = bool(store_state.get("ok"))
	return (
		200 if ok else 503,
		{
			"status": "ok" if ok else "degraded",
			"service": settings.service_name,
			"commit": settings.git_commit,
			"store": store_state,
		},
	)
