"""Track the resource versions of watched objects and dispatch their changes."""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Protocol

_MAX_UINT64 = 2**64 - 1


class ObjectKeyError(Exception):
    """Raised when no store key can be derived for an object."""

    def __init__(self, obj: Any, err: BaseException) -> None:
        super().__init__(f"couldn't create key for object {obj!r}: {err}")
        self.obj = obj
        self.err = err


@dataclass(frozen=True)
class DeletedFinalStateUnknown:
    """A deleted object whose final state was missed; carries its last known key."""

    key: str
    obj: Any


def _metadata(obj: Any) -> Mapping[str, Any]:
    if isinstance(obj, Mapping):
        meta = obj.get("metadata") or {}
        if isinstance(meta, Mapping):
            return meta
    raise TypeError(f"object does not carry object metadata: {obj!r}")


def meta_namespace_key(obj: Any) -> str:
    """Return ``namespace/name``, or just ``name`` for cluster scoped objects."""
    if isinstance(obj, str):
        return obj
    try:
        meta = _metadata(obj)
    except TypeError as err:
        raise ObjectKeyError(obj, err) from err
    namespace = meta.get("namespace") or ""
    name = meta.get("name") or ""
    return f"{namespace}/{name}" if namespace else name


def deletion_handling_meta_namespace_key(obj: Any) -> str:
    """Like :func:`meta_namespace_key`, but understands missed deletions."""
    if isinstance(obj, DeletedFinalStateUnknown):
        return obj.key
    return meta_namespace_key(obj)


def _resource_version(obj: Any) -> str:
    return str(_metadata(obj).get("resourceVersion") or "")


class _EventHandler(Protocol):
    def on_add(self, obj: Any) -> None: ...

    def on_update(self, old_obj: Any, new_obj: Any) -> None: ...

    def on_delete(self, obj: Any) -> None: ...

    def on_sync(self, obj: Any) -> None: ...


@dataclass
class ResourceEventHandlerFuncs:
    """An event handler built from optional callables."""

    add_func: Optional[Callable[[Any], None]] = None
    update_func: Optional[Callable[[Any, Any], None]] = None
    delete_func: Optional[Callable[[Any], None]] = None
    sync_func: Optional[Callable[[Any], None]] = None

    def on_add(self, obj: Any) -> None:
        if self.add_func is not None:
            self.add_func(obj)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        if self.update_func is not None:
            self.update_func(old_obj, new_obj)

    def on_delete(self, obj: Any) -> None:
        if self.delete_func is not None:
            self.delete_func(obj)

    def on_sync(self, obj: Any) -> None:
        if self.sync_func is not None:
            self.sync_func(obj)


@dataclass
class FilteringResourceEventHandler:
    """Pass on only the events whose objects satisfy ``filter_func``.

    An update that moves an object into or out of the filter is turned into
    an add or a delete.
    """

    filter_func: Callable[[Any], bool]
    handler: _EventHandler

    def on_add(self, obj: Any) -> None:
        if self.filter_func(obj):
            self.handler.on_add(obj)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        newer = self.filter_func(new_obj)
        older = self.filter_func(old_obj)
        if newer and older:
            self.handler.on_update(old_obj, new_obj)
        elif newer:
            self.handler.on_add(new_obj)
        elif older:
            self.handler.on_delete(old_obj)

    def on_delete(self, obj: Any) -> None:
        if self.filter_func(obj):
            self.handler.on_delete(obj)

    def on_sync(self, obj: Any) -> None:
        if self.filter_func(obj):
            self.handler.on_sync(obj)


class ResourceVersionStorage:
    """A thread safe map from object key to the object's resource version."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: dict[str, Any] = {}
        self._key_func = deletion_handling_meta_namespace_key

    def add(self, obj: Any) -> None:
        key = self._key_func(obj)
        version = _resource_version(obj)
        with self._lock:
            self._items[key] = version

    def update(self, obj: Any) -> None:
        self.add(obj)

    def delete(self, obj: Any) -> None:
        key = self._key_func(obj)
        with self._lock:
            self._items.pop(key, None)

    def get(self, obj: Any) -> Optional[str]:
        """Return the stored resource version, or None when the object is unknown."""
        key = self._key_func(obj)
        with self._lock:
            if key not in self._items:
                return None
            return str(self._items[key])

    def list_keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def get_by_key(self, key: str) -> Any:
        """Return the value stored under ``key``, or None."""
        with self._lock:
            return self._items.get(key)

    def replace(self, versions: Mapping[str, Any]) -> None:
        with self._lock:
            self._items = dict(versions)


class DeltaType(str, Enum):
    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"
    REPLACED = "Replaced"
    SYNC = "Sync"


@dataclass(frozen=True)
class Delta:
    type: DeltaType
    object: Any


def _parse_uint(text: str) -> int:
    if not text.isascii() or not text.isdigit():
        raise ValueError(f"invalid resource version: {text!r}")
    value = int(text)
    if value > _MAX_UINT64:
        raise ValueError(f"resource version out of range: {text!r}")
    return value


def compare_resource_version(obj: Any, rv: str) -> int:
    """Compare an object's resource version with ``rv``: -1, 0 or 1.

    Anything that cannot be read or parsed compares as older (-1).
    """
    try:
        obj_rv = _resource_version(obj)
    except TypeError:
        return -1
    try:
        obj_version = _parse_uint(obj_rv) if obj_rv else 0
        version = 0 if rv in ("", "0") else _parse_uint(rv)
    except ValueError:
        return -1
    if obj_version == version:
        return 0
    return -1 if obj_version < version else 1


class ResourceVersionInformer:
    """Apply deltas to a resource version store and notify a handler."""

    def __init__(self, name: str, storage: ResourceVersionStorage, handler: _EventHandler) -> None:
        if not name:
            raise ValueError("name is required")
        self.name = name
        self.storage = storage
        self.handler = handler

    def handle_deltas(self, deltas: Iterable[Delta]) -> None:
        for delta in deltas:
            obj = delta.object
            if delta.type in (DeltaType.REPLACED, DeltaType.ADDED, DeltaType.UPDATED):
                version = self.storage.get(obj)
                if version is None:
                    self.storage.add(obj)
                    self.handler.on_add(obj)
                    continue

                if delta.type is DeltaType.REPLACED:
                    cmp = compare_resource_version(obj, version)
                    if cmp <= 0:
                        if cmp == 0:
                            self.handler.on_sync(obj)
                        continue

                self.storage.update(obj)
                self.handler.on_update(None, obj)
            elif delta.type is DeltaType.DELETED:
                self.storage.delete(obj)
                self.handler.on_delete(obj)