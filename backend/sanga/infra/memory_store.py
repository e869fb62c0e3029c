"""In-process document store used by tests and local tooling."""

from __future__ import annotations

import asyncio
import copy
import itertools
from typing import Any, Optional

from sanga.infra.store import (
	ChangeCallback,
	DocumentStore,
	Unsubscribe,
	WriteBatch,
	affected,
	deliver,
	split,
)


class InMemoryDocumentStore(DocumentStore):
	"""Nested-dict tree with synchronous change delivery.

	Listeners are awaited before the mutating call returns, which keeps tests
	deterministic.
	"""

	def __init__(self) -> None:
		self._root: dict[str, Any] = {}
		self._lock = asyncio.Lock()
		self._listeners: dict[int, tuple[str, ChangeCallback]] = {}
		self._tokens = itertools.count(1)

	# --- tree helpers -------------------------------------------------
	def _get(self, path: str) -> Optional[Any]:
		node: Any = self._root
		for part in split(path):
			if not isinstance(node, dict) or part not in node:
				return None
			node = node[part]
		return node

	def _set(self, path: str, value: Any) -> None:
		parts = split(path)
		node = self._root
		for part in parts[:-1]:
			child = node.get(part)
			if not isinstance(child, dict):
				child = {}
				node[part] = child
			node = child
		node[parts[-1]] = copy.deepcopy(value)

	def _delete(self, path: str) -> None:
		parts = split(path)
		trail: list[tuple[dict, str]] = []
		node: Any = self._root
		for part in parts:
			if not isinstance(node, dict) or part not in node:
				return
			trail.append((node, part))
			node = node[part]
		container, key = trail.pop()
		del container[key]
		# prune parents left empty
		while trail:
			container, key = trail.pop()
			if container[key]:
				break
			del container[key]

	def _merge(self, path: str, fields: dict) -> bool:
		current = self._get(path)
		if not isinstance(current, dict):
			return False
		current.update(copy.deepcopy(fields))
		return True

	# --- DocumentStore ------------------------------------------------
	async def read(self, path: str) -> Optional[Any]:
		value = self._get(path)
		if value is None or value == {}:
			return None
		return copy.deepcopy(value)

	async def write(self, path: str, value: Any) -> None:
		async with self._lock:
			self._set(path, value)
		await self._notify([path])

	async def update(self, path: str, fields: dict) -> bool:
		async with self._lock:
			merged = self._merge(path, fields)
		if merged:
			await self._notify([path])
		return merged

	async def remove(self, path: str) -> None:
		async with self._lock:
			self._delete(path)
		await self._notify([path])

	async def create(self, path: str, value: Any) -> bool:
		async with self._lock:
			if self._get(path) is not None:
				return False
			self._set(path, value)
		await self._notify([path])
		return True

	async def commit(self, batch: WriteBatch) -> None:
		if not batch.ops:
			return
		async with self._lock:
			# Apply to a scratch copy first so a bad op leaves the tree untouched.
			snapshot = copy.deepcopy(self._root)
			try:
				for op in batch.ops:
					if op.kind == "set":
						self._set(op.path, op.value)
					elif op.kind == "merge":
						self._merge(op.path, op.value)
					else:
						self._delete(op.path)
			except Exception:
				self._root = snapshot
				raise
		await self._notify(batch.paths)

	async def subscribe(self, path: str, on_change: ChangeCallback) -> Unsubscribe:
		split(path)
		token = next(self._tokens)
		self._listeners[token] = (path, on_change)
		await deliver(on_change, await self.read(path), path=path)

		def _unsubscribe() -> None:
			self._listeners.pop(token, None)

		return _unsubscribe

	async def close(self) -> None:
		self._listeners.clear()

	@property
	def listener_count(self) -> int:
		return len(self._listeners)

	async def _notify(self, changed: list[str]) -> None:
		for token, (path, callback) in list(self._listeners.items()):
			# a listener may unsubscribe another one mid-delivery
			if token not in self._listeners or not affected(path, changed):
				continue
			await deliver(callback, await self.read(path), path=path)
