"""Access to stored cluster objects: the client interface and an in-memory store."""

import copy
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable

from kiosk.meta import GroupVersionKind

IndexFunc = Callable[[Any], list[str]]


def _gvk_of(kind: Any) -> GroupVersionKind:
    if isinstance(kind, GroupVersionKind):
        return kind
    return kind.gvk


class NotFoundError(LookupError):
    """Raised when a requested object does not exist."""

    def __init__(self, kind: str, name: str, namespace: str = "") -> None:
        self.kind = kind
        self.name = name
        self.namespace = namespace
        where = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {where!r} not found")


class Client(ABC):
    """Reads objects by name or through a field index."""

    @abstractmethod
    def get(self, kind: Any, name: str, namespace: str = "") -> Any:
        """Return the object of the given kind, or raise NotFoundError."""

    @abstractmethod
    def list(self, kind: Any, field: str | None = None, value: str | None = None) -> list[Any]:
        """Return all objects of a kind, or those whose index field holds value."""


class InMemoryClient(Client):
    """A thread-safe client that keeps objects in memory.

    Kinds are given as object classes (carrying a ``gvk``) or as a
    GroupVersionKind. Objects handed out are copies of the stored ones.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._objects: dict[GroupVersionKind, dict[tuple[str, str], Any]] = {}
        self._indexers: dict[tuple[GroupVersionKind, str], IndexFunc] = {}
        self._index_values: dict[tuple[GroupVersionKind, str, str], list[Any]] = {}

    def create(self, obj: Any) -> None:
        """Store a new object; raise ValueError if it has no name or already exists."""
        meta = obj.metadata
        if not meta.name:
            raise ValueError(f"{obj.gvk.kind} must have a name")
        key = (meta.namespace, meta.name)
        with self._lock:
            store = self._objects.setdefault(obj.gvk, {})
            if key in store:
                raise ValueError(f"{obj.gvk.kind} {meta.name!r} already exists")
            store[key] = copy.deepcopy(obj)

    def delete(self, obj: Any) -> None:
        """Remove a stored object; raise NotFoundError if it is absent."""
        meta = obj.metadata
        with self._lock:
            store = self._objects.get(obj.gvk, {})
            try:
                del store[(meta.namespace, meta.name)]
            except KeyError:
                raise NotFoundError(obj.gvk.kind, meta.name, meta.namespace) from None

    def get(self, kind: Any, name: str, namespace: str = "") -> Any:
        gvk = _gvk_of(kind)
        with self._lock:
            try:
                return copy.deepcopy(self._objects.get(gvk, {})[(namespace, name)])
            except KeyError:
                raise NotFoundError(gvk.kind, name, namespace) from None

    def list(self, kind: Any, field: str | None = None, value: str | None = None) -> list[Any]:
        gvk = _gvk_of(kind)
        with self._lock:
            objects = list(self._objects.get(gvk, {}).values())
            if field is None:
                return copy.deepcopy(objects)
            explicit = self._index_values.get((gvk, field, value))
            if explicit is not None:
                return copy.deepcopy(explicit)
            extract = self._indexers.get((gvk, field))
            if extract is None:
                raise ValueError(f"no index {field!r} registered for {gvk.kind}")
            return [copy.deepcopy(obj) for obj in objects if value in extract(obj)]

    def index_field(self, kind: Any, field: str, extract_value: IndexFunc) -> None:
        """Register a function that yields the index values of an object."""
        with self._lock:
            self._indexers[(_gvk_of(kind), field)] = extract_value

    def set_index_value(self, kind: Any, field: str, value: str, objs: Iterable[Any]) -> None:
        """Fix the result of listing kind by field == value, bypassing the index."""
        with self._lock:
            self._index_values[(_gvk_of(kind), field, value)] = copy.deepcopy(list(objs))