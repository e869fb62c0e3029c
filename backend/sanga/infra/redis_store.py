"""Redis-backed document store.

Each document is a JSON string under ``<ns>:doc:<path>``; every path segment is
registered in its parent's child set ``<ns>:idx:<parent>`` so collection paths can
be read back as mappings. Changes are announced on ``<ns>:changes`` so listeners in
every process re-read their paths.
"""

from __future__ import annotations

import asyncio
import contextlib
import itertools
import json
import logging
from typing import Any, Optional

from redis.exceptions import WatchError

from sanga.infra.redis import redis_client
from sanga.infra.store import (
	ChangeCallback,
	DocumentStore,
	Unsubscribe,
	WriteBatch,
	affected,
	deliver,
	join,
	split,
)
from sanga.obs import metrics as obs_metrics
from sanga.settings import settings

logger = logging.getLogger(__name__)

_MAX_WATCH_RETRIES = 5


class RedisDocumentStore(DocumentStore):
	def __init__(self, client: Any = None, *, namespace: Optional[str] = None) -> None:
		self._client = client if client is not None else redis_client
		self._ns = namespace or settings.store_namespace
		self._listeners: dict[int, tuple[str, ChangeCallback]] = {}
		self._tokens = itertools.count(1)
		self._pubsub: Any = None
		self._listener_task: Optional[asyncio.Task] = None

	@property
	def channel(self) -> str:
		return f"{self._ns}:changes"

	def _doc_key(self, path: str) -> str:
		return f"{self._ns}:doc:{path}"

	def _idx_key(self, path: str) -> str:
		return f"{self._ns}:idx:{path}"

	def _index_ops(self, pipe: Any, path: str) -> None:
		parts = split(path)
		for depth in range(len(parts)):
			pipe.sadd(self._idx_key("/".join(parts[:depth])), parts[depth])

	async def _subtree_keys(self, path: str) -> list[str]:
		keys = [self._doc_key(path), self._idx_key(path)]
		for child in await self._client.smembers(self._idx_key(path)):
			keys.extend(await self._subtree_keys(join(path, child)))
		return keys

	async def _read(self, path: str) -> Optional[Any]:
		raw = await self._client.get(self._doc_key(path))
		if raw is not None:
			return json.loads(raw)
		children = await self._client.smembers(self._idx_key(path))
		if not children:
			return None
		result: dict[str, Any] = {}
		stale: list[str] = []
		for child in sorted(children):
			value = await self._read(join(path, child))
			if value is None:
				stale.append(child)
			else:
				result[child] = value
		if stale:
			await self._client.srem(self._idx_key(path), *stale)
		return result or None

	async def _publish(self, paths: list[str]) -> None:
		await self._client.publish(self.channel, json.dumps({"paths": paths}))

	# --- DocumentStore ------------------------------------------------
	async def read(self, path: str) -> Optional[Any]:
		split(path)
		return await self._read(path.strip("/"))

	async def write(self, path: str, value: Any) -> None:
		await self.commit(WriteBatch().set(path, value))

	async def remove(self, path: str) -> None:
		await self.commit(WriteBatch().delete(path))

	async def update(self, path: str, fields: dict) -> bool:
		path = path.strip("/")
		key = self._doc_key(path)
		async with self._client.pipeline(transaction=True) as pipe:
			for _ in range(_MAX_WATCH_RETRIES):
				try:
					await pipe.watch(key)
					raw = await pipe.get(key)
					if raw is None:
						await pipe.unwatch()
						return False
					document = json.loads(raw)
					if not isinstance(document, dict):
						await pipe.unwatch()
						return False
					document.update(fields)
					pipe.multi()
					pipe.set(key, json.dumps(document))
					await pipe.execute()
					break
				except WatchError:
					obs_metrics.inc_store_conflict("update")
					continue
			else:
				raise WatchError(f"update contention on {path}")
		await self._publish([path])
		return True

	async def create(self, path: str, value: Any) -> bool:
		path = path.strip("/")
		split(path)
		created = await self._client.set(self._doc_key(path), json.dumps(value), nx=True)
		if not created:
			return False
		async with self._client.pipeline(transaction=True) as pipe:
			self._index_ops(pipe, path)
			await pipe.execute()
		await self._publish([path])
		return True

	async def commit(self, batch: WriteBatch) -> None:
		if not batch.ops:
			return
		merge_keys = [self._doc_key(op.path.strip("/")) for op in batch.ops if op.kind == "merge"]
		async with self._client.pipeline(transaction=True) as pipe:
			for _ in range(_MAX_WATCH_RETRIES):
				try:
					if merge_keys:
						await pipe.watch(*merge_keys)
					# Reads happen before MULTI; WATCH aborts the transaction if merged docs move.
					staged: list[tuple[str, str, Any]] = []
					for op in batch.ops:
						path = op.path.strip("/")
						if op.kind == "merge":
							raw = await self._client.get(self._doc_key(path))
							if raw is None:
								continue
							document = json.loads(raw)
							if not isinstance(document, dict):
								continue
							document.update(op.value)
							staged.append(("set", path, document))
						elif op.kind == "set":
							subtree = await self._subtree_keys(path)
							staged.append(("clear", path, subtree[1:]))
							staged.append(("set", path, op.value))
						else:
							staged.append(("clear", path, await self._subtree_keys(path)))
							staged.append(("unlink", path, None))
					if merge_keys:
						pipe.multi()
					for kind, path, value in staged:
						if kind == "set":
							pipe.set(self._doc_key(path), json.dumps(value))
							self._index_ops(pipe, path)
						elif kind == "clear":
							if value:
								pipe.delete(*value)
						else:
							parts = split(path)
							pipe.srem(self._idx_key("/".join(parts[:-1])), parts[-1])
					await pipe.execute()
					break
				except WatchError:
					obs_metrics.inc_store_conflict("commit")
					continue
			else:
				raise WatchError("batch contention")
		await self._publish(batch.paths)

	async def subscribe(self, path: str, on_change: ChangeCallback) -> Unsubscribe:
		split(path)
		await self._ensure_listener()
		token = next(self._tokens)
		self._listeners[token] = (path.strip("/"), on_change)
		await deliver(on_change, await self.read(path), path=path)

		def _unsubscribe() -> None:
			self._listeners.pop(token, None)

		return _unsubscribe

	async def ping(self) -> bool:
		return bool(await self._client.ping())

	async def close(self) -> None:
		self._listeners.clear()
		if self._listener_task is not None:
			self._listener_task.cancel()
			with contextlib.suppress(asyncio.CancelledError):
				await self._listener_task
			self._listener_task = None
		if self._pubsub is not None:
			await self._pubsub.unsubscribe(self.channel)
			await self._pubsub.aclose()
			self._pubsub = None

	# --- change fan-out -----------------------------------------------
	async def _ensure_listener(self) -> None:
		if self._listener_task is not None and not self._listener_task.done():
			return
		self._pubsub = self._client.pubsub()
		await self._pubsub.subscribe(self.channel)
		self._listener_task = asyncio.create_task(self._listen(), name="store-change-listener")

	async def _listen(self) -> None:
		while True:
			message = await self._pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
			if message is None:
				continue
			try:
				changed = json.loads(message["data"]).get("paths", [])
			except (TypeError, ValueError):
				logger.warning("ignoring malformed store change message")
				continue
			await self._dispatch(changed)

	async def _dispatch(self, changed: list[str]) -> None:
		for token, (path, callback) in list(self._listeners.items()):
			if token not in self._listeners or not affected(path, changed):
				continue
			await deliver(callback, await self.read(path), path=path)
