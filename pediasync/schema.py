"""Identifiers for API groups, versions, resources and kinds."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class GroupResource:
    """A resource within an API group, without a version."""

    group: str = ""
    resource: str = ""

    def with_version(self, version: str) -> GroupVersionResource:
        """Return the versioned identifier for this resource."""
        return GroupVersionResource(self.group, version, self.resource)

    def __str__(self) -> str:
        if not self.group:
            return self.resource
        return f"{self.resource}.{self.group}"


@dataclass(frozen=True, order=True)
class GroupVersionResource:
    """A resource within a specific version of an API group."""

    group: str = ""
    version: str = ""
    resource: str = ""

    def group_resource(self) -> GroupResource:
        """Drop the version."""
        return GroupResource(self.group, self.resource)

    def is_empty(self) -> bool:
        """True when no part of the identifier is set."""
        return not (self.group or self.version or self.resource)


@dataclass(frozen=True, order=True)
class GroupVersionKind:
    """A kind within a specific version of an API group."""

    group: str = ""
    version: str = ""
    kind: str = ""

    def group_version(self) -> str:
        """Return the group version in its "group/version" form."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version