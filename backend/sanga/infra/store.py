"""Path-addressed document store shared by the connections and notifications domains.

Documents live at slash-separated paths (``connections/<owner>/<peer>``). Reading a
path that holds no document of its own returns a mapping of its children, so
``connections/<owner>`` yields every edge of that user. Listeners registered with
:meth:`DocumentStore.subscribe` receive the current value of their path whenever
that path, one of its descendants, or one of its ancestors changes.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Literal, Optional, Union

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Any], Union[Awaitable[None], None]]
Unsubscribe = Callable[[], None]

_FORBIDDEN_CHARS = frozenset(".#$[]")

# A single path segment: user, request and notification ids.
KEY_PATTERN = r"^[^/.#$\[\]]+$"


class InvalidKeyError(ValueError):
	"""Raised for ids or paths the store cannot address."""

	reason = "invalid_id"


def is_valid_key(value: object) -> bool:
	return isinstance(value, str) and bool(value) and "/" not in value and not _FORBIDDEN_CHARS.intersection(value)


def key(value: str) -> str:
	"""Return ``value`` unchanged when it is usable as one path segment."""
	if not is_valid_key(value):
		raise InvalidKeyError(f"invalid key: {value!r}")
	return value


def split(path: str) -> list[str]:
	parts = [part for part in str(path).strip("/").split("/")]
	for part in parts:
		if not part:
			raise InvalidKeyError(f"empty segment in path: {path!r}")
		if _FORBIDDEN_CHARS.intersection(part):
			raise InvalidKeyError(f"invalid characters in path: {path!r}")
	return parts


def join(*segments: str) -> str:
	return "/".join(str(segment).strip("/") for segment in segments)


def parent(path: str) -> str:
	parts = split(path)
	return "/".join(parts[:-1])


def paths_overlap(a: str, b: str) -> bool:
	"""True when a change at one path is visible from the other."""
	a = a.strip("/")
	b = b.strip("/")
	if a == b:
		return True
	return a.startswith(b + "/") or b.startswith(a + "/")


@dataclass(slots=True)
class StoreOp:
	kind: Literal["set", "merge", "delete"]
	path: str
	value: Any = None


@dataclass
class WriteBatch:
	"""Collects writes that must land together."""

	ops: list[StoreOp] = field(default_factory=list)

	def set(self, path: str, value: Any) -> "WriteBatch":
		split(path)
		self.ops.append(StoreOp("set", path, value))
		return self

	def merge(self, path: str, fields: dict) -> "WriteBatch":
		"""Merge fields into an existing document; missing documents are skipped."""
		split(path)
		self.ops.append(StoreOp("merge", path, dict(fields)))
		return self

	def delete(self, path: str) -> "WriteBatch":
		split(path)
		self.ops.append(StoreOp("delete", path))
		return self

	@property
	def paths(self) -> list[str]:
		return [op.path for op in self.ops]

	def __len__(self) -> int:
		return len(self.ops)


class DocumentStore(ABC):
	"""Storage primitives consumed by the domain services."""

	@abstractmethod
	async def read(self, path: str) -> Optional[Any]:
		"""Return the value at ``path`` or ``None`` when nothing is stored there."""

	@abstractmethod
	async def write(self, path: str, value: Any) -> None:
		"""Replace the value at ``path`` (last write wins)."""

	@abstractmethod
	async def update(self, path: str, fields: dict) -> bool:
		"""Merge ``fields`` into the document at ``path``.

		Returns False and writes nothing when the document does not exist, so
		updates never resurrect deleted records.
		"""

	@abstractmethod
	async def remove(self, path: str) -> None:
		"""Delete ``path`` and everything below it."""

	@abstractmethod
	async def create(self, path: str, value: Any) -> bool:
		"""Write ``value`` only if ``path`` is empty. Returns whether it was written."""

	@abstractmethod
	async def commit(self, batch: WriteBatch) -> None:
		"""Apply every operation of ``batch`` atomically."""

	@abstractmethod
	async def subscribe(self, path: str, on_change: ChangeCallback) -> Unsubscribe:
		"""Deliver the current value now and after every overlapping change."""

	async def ping(self) -> bool:
		return True

	async def close(self) -> None:
		return None


async def deliver(callback: ChangeCallback, value: Any, *, path: str) -> None:
	"""Invoke a listener, awaiting it when it is a coroutine function."""
	try:
		result = callback(value)
		if inspect.isawaitable(result):
			await result
	except Exception:
		# A broken listener must not stop delivery to the others.
		logger.exception("store listener failed", extra={"store_path": path})


def affected(path: str, changed: Iterable[str]) -> bool:
	return any(paths_overlap(path, c) for c in changed)


_store: Optional[DocumentStore] = None


def get_store() -> DocumentStore:
	global _store
	if _store is None:
		from sanga.settings import settings

		if settings.store_backend == "memory":
			from sanga.infra.memory_store import InMemoryDocumentStore

			_store = InMemoryDocumentStore()
		else:
			from sanga.infra.redis_store import RedisDocumentStore

			_store = RedisDocumentStore()
	return _store


def set_store(store: Optional[DocumentStore]) -> None:
	global _store
	_store = store


async def close_store() -> None:
	global _store
	if _store is not None:
		await _store.close()
		_store = None
