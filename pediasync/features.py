"""Feature gates that switch optional synchronisation behaviour on or off."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum


class PreRelease(str, Enum):
    ALPHA = "ALPHA"
    BETA = "BETA"
    GA = ""
    DEPRECATED = "DEPRECATED"


@dataclass(frozen=True)
class FeatureSpec:
    """The default state and maturity of a feature."""

    default: bool
    pre_release: PreRelease = PreRelease.ALPHA
    lock_to_default: bool = False


PRUNE_MANAGED_FIELDS = "PruneManagedFields"
PRUNE_LAST_APPLIED_CONFIGURATION = "PruneLastAppliedConfiguration"
ALLOW_SYNC_ALL_CUSTOM_RESOURCES = "AllowSyncAllCustomResources"
ALLOW_SYNC_ALL_RESOURCES = "AllowSyncAllResources"
HEALTH_CHECKER_WITH_STANDALONE_TCP = "HealthCheckerWithStandaloneTCP"

DEFAULT_SYNCHRO_MANAGER_FEATURES: Mapping[str, FeatureSpec] = {
    PRUNE_MANAGED_FIELDS: FeatureSpec(default=True, pre_release=PreRelease.BETA),
    PRUNE_LAST_APPLIED_CONFIGURATION: FeatureSpec(default=True, pre_release=PreRelease.BETA),
    ALLOW_SYNC_ALL_CUSTOM_RESOURCES: FeatureSpec(default=False, pre_release=PreRelease.ALPHA),
    ALLOW_SYNC_ALL_RESOURCES: FeatureSpec(default=False, pre_release=PreRelease.ALPHA),
    HEALTH_CHECKER_WITH_STANDALONE_TCP: FeatureSpec(default=False, pre_release=PreRelease.ALPHA),
}

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def _parse_bool(text: str) -> bool:
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError(f"invalid syntax: {text!r}")


class FeatureGate:
    """A registry of known features and their explicitly set states."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._known: dict[str, FeatureSpec] = {}
        self._enabled: dict[str, bool] = {}

    def add(self, features: Mapping[str, FeatureSpec]) -> None:
        """Register features; re-adding one with a different spec is an error."""
        with self._lock:
            known = dict(self._known)
            for name, spec in features.items():
                existing = known.get(name)
                if existing is not None and existing != spec:
                    raise ValueError(f"feature gate {name} with different spec already exists: {existing}")
                known[name] = spec
            self._known = known

    def enabled(self, name: str) -> bool:
        """Report whether a feature is on; unknown features raise KeyError."""
        with self._lock:
            if name in self._enabled:
                return self._enabled[name]
            spec = self._known.get(name)
        if spec is None:
            raise KeyError(f"feature {name!r} is not registered in FeatureGate")
        return spec.default

    def set(self, value: str) -> None:
        """Apply a comma separated list of ``Name=bool`` pairs."""
        values: dict[str, bool] = {}
        for item in value.split(","):
            if not item:
                continue
            name, sep, raw = item.partition("=")
            name = name.strip()
            if not sep:
                raise ValueError(f"missing bool value for {name}")
            raw = raw.strip()
            try:
                values[name] = _parse_bool(raw)
            except ValueError as err:
                raise ValueError(f"invalid value of {name}={raw}, err: {err}") from err
        self.set_from_map(values)

    def set_from_map(self, values: Mapping[str, bool]) -> None:
        """Set feature states; nothing changes if any entry is rejected."""
        with self._lock:
            enabled = dict(self._enabled)
            for name, state in values.items():
                spec = self._known.get(name)
                if spec is None:
                    raise ValueError(f"unrecognized feature gate: {name}")
                if spec.lock_to_default and spec.default != state:
                    raise ValueError(
                        f"cannot set feature gate {name} to {str(state).lower()}, "
                        f"feature is locked to {str(spec.default).lower()}"
                    )
                enabled[name] = state
            self._enabled = enabled

    def known_features(self) -> list[str]:
        """Describe every feature that is not generally available, sorted."""
        with self._lock:
            known = dict(self._known)
        return sorted(
            f"{name}=true|false ({spec.pre_release.value} - default={str(spec.default).lower()})"
            for name, spec in known.items()
            if spec.pre_release is not PreRelease.GA
        )


def new_default_feature_gate() -> FeatureGate:
    """Return a gate holding the synchro manager's features."""
    gate = FeatureGate()
    gate.add(DEFAULT_SYNCHRO_MANAGER_FEATURES)
    return gate


feature_gate = new_default_feature_gate()