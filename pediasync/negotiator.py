"""Decide which resource versions to sync and track their sync status."""

from __future__ import annotations

import dataclasses
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pediasync.schema import GroupResource, GroupVersionResource

_MAX_DEFAULT_SYNC_VERSIONS = 3


class NegotiationError(ValueError):
    """Raised when no version of a resource can be synced."""

    def __init__(self, message: str, *, legacy: bool) -> None:
        super().__init__(message)
        self.legacy = legacy


def negotiate_sync_versions(
    known_versions: Optional[Iterable[str]],
    want_versions: Optional[Iterable[str]],
    supported_versions: Iterable[str],
) -> tuple[list[str], bool]:
    """Choose the versions to sync and report whether the resource is a built-in one.

    ``known_versions`` are the versions the built-in scheme knows for the
    resource's kind; when there are any, only the first supported one of them
    is synced.
    """
    supported = list(supported_versions)
    if not supported:
        raise NegotiationError("The supported versions are empty", legacy=False)

    knowns = set(known_versions or ())
    if knowns:
        for version in supported:
            if version in knowns:
                return [version], True
        raise NegotiationError("The supported versions do not contain any known versions", legacy=True)

    wants = list(want_versions or ())
    if not wants:
        return supported[:_MAX_DEFAULT_SYNC_VERSIONS], False

    want_set = set(wants)
    if "*" in want_set:
        return supported, False

    sync_versions = [version for version in supported if version in want_set]
    if not sync_versions:
        raise NegotiationError(
            "The supported versions do not contain any specified sync version", legacy=False
        )
    return sync_versions, False


class ResourceSyncStatus(str, Enum):
    PENDING = "Pending"
    SYNCING = "Syncing"
    STOP = "Stop"
    UNKNOWN = "Unknown"
    ERROR = "Error"


def _parse_group_resource(text: str) -> GroupResource:
    resource, _, group = text.partition(".")
    return GroupResource(group=group, resource=resource)


@dataclass
class ClusterResourceSyncCondition:
    """The sync state of one version of a resource."""

    version: str = ""
    sync_version: str = ""
    sync_resource: str = ""
    storage_version: str = ""
    storage_resource: str = ""
    status: str = ""
    reason: str = ""
    message: str = ""
    last_transition_time: Optional[datetime] = None

    def storage_gvr(self, gr: GroupResource) -> GroupVersionResource:
        """Return the resource this version is stored as, or an empty one."""
        if not self.storage_version:
            return GroupVersionResource()
        if self.storage_resource:
            return _parse_group_resource(self.storage_resource).with_version(self.storage_version)
        return gr.with_version(self.storage_version)


@dataclass
class ClusterResourceStatus:
    name: str = ""
    kind: str = ""
    namespaced: bool = False
    sync_conditions: list[ClusterResourceSyncCondition] = field(default_factory=list)


@dataclass
class ClusterGroupResourcesStatus:
    group: str = ""
    resources: list[ClusterResourceStatus] = field(default_factory=list)


class GroupResourceStatus:
    """The sync status of every resource and version chosen for a cluster."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._sorted_grs: list[GroupResource] = []
        self._resources: dict[GroupResource, ClusterResourceStatus] = {}
        self._versions: dict[GroupResource, set[str]] = {}
        self._sync_conditions: dict[GroupVersionResource, ClusterResourceSyncCondition] = {}

    def add_resource(self, gr: GroupResource, kind: str, namespaced: bool) -> None:
        with self._lock:
            if gr not in self._resources:
                self._sorted_grs.append(gr)
                self._versions[gr] = set()
            self._resources[gr] = ClusterResourceStatus(name=gr.resource, kind=kind, namespaced=namespaced)

    def add_sync_condition(
        self, gvr: GroupVersionResource, condition: ClusterResourceSyncCondition
    ) -> None:
        """Record a version's condition; ignored unless its resource was added."""
        gr = gvr.group_resource()
        with self._lock:
            if gr not in self._resources:
                return
            self._versions[gr].add(gvr.version)
            self._sync_conditions[gvr] = condition

    def update_sync_condition(
        self, gvr: GroupVersionResource, status: str, reason: str, message: str
    ) -> None:
        with self._lock:
            cond = self._sync_conditions.get(gvr)
            if cond is None:
                return
            self._sync_conditions[gvr] = dataclasses.replace(
                cond, status=status, reason=reason, message=message
            )

    def delete_version(self, gvr: GroupVersionResource) -> None:
        """Forget a version; the resource goes too once it has no versions."""
        gr = gvr.group_resource()
        with self._lock:
            if gr not in self._resources:
                return
            self._sync_conditions.pop(gvr, None)
            versions = self._versions[gr]
            versions.discard(gvr.version)
            if not versions:
                del self._resources[gr]
                del self._versions[gr]

    def load_group_resources_statuses(self) -> list[ClusterGroupResourcesStatus]:
        """Return a snapshot grouped by API group, in the order resources were added."""
        with self._lock:
            by_group: dict[str, ClusterGroupResourcesStatus] = {}
            for gr in self._sorted_grs:
                resource = self._resources.get(gr)
                if resource is None:
                    continue
                conditions = [
                    dataclasses.replace(self._sync_conditions[gr.with_version(version)])
                    for version in sorted(self._versions[gr])
                ]
                snapshot = dataclasses.replace(resource, sync_conditions=conditions)
                group = by_group.get(gr.group)
                if group is None:
                    group = by_group[gr.group] = ClusterGroupResourcesStatus(group=gr.group)
                group.resources.append(snapshot)
            return list(by_group.values())

    def get_storage_gvr_to_sync_gvrs(self) -> dict[GroupVersionResource, set[GroupVersionResource]]:
        """Map each storage resource to the synced resources stored as it."""
        with self._lock:
            mapping: dict[GroupVersionResource, set[GroupVersionResource]] = {}
            for gvr, cond in self._sync_conditions.items():
                storage_gvr = cond.storage_gvr(gvr.group_resource())
                if storage_gvr.is_empty():
                    continue
                mapping.setdefault(storage_gvr, set()).add(gvr)
            return mapping

    def merge(self, other: Optional[GroupResourceStatus]) -> set[GroupVersionResource]:
        """Take over the versions only ``other`` has; return the versions added."""
        if other is None:
            return set()

        with other._lock:
            other_resources = dict(other._resources)
            other_versions = {gr: set(versions) for gr, versions in other._versions.items()}
            other_conditions = dict(other._sync_conditions)

        addition: set[GroupVersionResource] = set()
        with self._lock:
            if self._versions == other_versions:
                return addition

            for gr, resource in other_resources.items():
                versions = other_versions.get(gr)
                if not versions:
                    continue

                if gr not in self._resources:
                    self._sorted_grs.append(gr)
                    self._resources[gr] = resource
                    self._versions[gr] = set(versions)
                    for version in versions:
                        gvr = gr.with_version(version)
                        self._sync_conditions[gvr] = other_conditions[gvr]
                        addition.add(gvr)
                    continue

                for version in versions:
                    gvr = gr.with_version(version)
                    if gvr in self._sync_conditions:
                        continue
                    self._versions[gr].add(version)
                    self._sync_conditions[gvr] = other_conditions[gvr]
                    addition.add(gvr)
        return addition