"""Cluster status conditions and the connection config built from a cluster spec."""

from __future__ import annotations

import base64
import binascii
import copy
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

import yaml

VALIDATED_CONDITION = "Validated"
SYNCHRO_RUNNING_CONDITION = "SynchroRunning"
CLUSTER_HEALTHY_CONDITION = "ClusterHealthy"
READY_CONDITION = "Ready"
CLUSTER_SYNCHRO_INITIALIZED_CONDITION = "ClusterSynchroInitialized"

VALIDATED_REASON = "Validated"
INVALID_CONFIG_REASON = "InvalidConfig"
INVALID_SYNC_RESOURCES_REASON = "InvalidSyncResources"
SYNCHRO_WAIT_INIT_REASON = "WaitInit"
SYNCHRO_INITIAL_FAILED_REASON = "InitialFailed"
CLUSTER_MONITOR_STOP_REASON = "MonitorStop"
READY_REASON = "Ready"
NOT_READY_REASON = "NotReady"

_READINESS_CONDITIONS = (
    VALIDATED_CONDITION,
    SYNCHRO_RUNNING_CONDITION,
    CLUSTER_HEALTHY_CONDITION,
)

_CA_FIELD = "certificate-authority-data"
_CERT_FIELD = "client-certificate-data"
_PEM_FIELD = "client-key-data"
_BEARER_FIELD = "token"


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass
class Condition:
    """One aspect of a cluster's state."""

    type: str
    status: ConditionStatus
    reason: str = ""
    message: str = ""
    last_transition_time: Optional[datetime] = None
    observed_generation: int = 0


def find_status_condition(conditions: Iterable[Condition], condition_type: str) -> Optional[Condition]:
    """Return the condition of the given type, or None."""
    for condition in conditions:
        if condition.type == condition_type:
            return condition
    return None


def set_status_condition(conditions: list[Condition], condition: Condition) -> None:
    """Insert or update a condition in place.

    The transition time changes only when the status does; a condition
    without a transition time is stamped with the current time.
    """
    existing = find_status_condition(conditions, condition.type)
    if existing is None:
        added = copy.copy(condition)
        if added.last_transition_time is None:
            added.last_transition_time = _now()
        conditions.append(added)
        return

    if existing.status != condition.status:
        existing.status = condition.status
        existing.last_transition_time = condition.last_transition_time or _now()
    existing.reason = condition.reason
    existing.message = condition.message
    existing.observed_generation = condition.observed_generation


def remove_status_condition(conditions: list[Condition], condition_type: str) -> None:
    """Remove every condition of the given type, in place."""
    conditions[:] = [c for c in conditions if c.type != condition_type]


def ready_condition(conditions: Iterable[Condition]) -> Condition:
    """Derive the Ready condition from the validated, running and healthy conditions."""
    conditions = list(conditions)
    for condition_type in _READINESS_CONDITIONS:
        cond = find_status_condition(conditions, condition_type)
        if cond is not None and cond.status == ConditionStatus.TRUE:
            continue
        if cond is None:
            message = f"{condition_type} condition is not found"
        else:
            message = f"{condition_type} condition is {cond.status.value}, reason is {cond.reason}"
        return Condition(
            type=READY_CONDITION,
            status=ConditionStatus.FALSE,
            reason=NOT_READY_REASON,
            message=message,
        )
    return Condition(type=READY_CONDITION, status=ConditionStatus.TRUE, reason=READY_REASON)


@dataclass
class ClusterStatus:
    api_server: str = ""
    version: str = ""
    conditions: list[Condition] = field(default_factory=list)
    sync_resources: Optional[list[Any]] = None


def _finalize(status: ClusterStatus) -> ClusterStatus:
    remove_status_condition(status.conditions, CLUSTER_SYNCHRO_INITIALIZED_CONDITION)
    set_status_condition(status.conditions, ready_condition(status.conditions))
    return status


def apply_validated_condition(
    status: ClusterStatus,
    api_server: str,
    synchro_running: bool,
    reason: str,
    message: str,
    condition_status: ConditionStatus,
) -> ClusterStatus:
    """Return a copy of ``status`` with the Validated condition applied.

    When no synchro is running for the cluster, the SynchroRunning and
    ClusterHealthy conditions are brought in line with the validation.
    The Ready condition is recomputed and deprecated conditions dropped.
    """
    updated = copy.deepcopy(status)
    if api_server:
        updated.api_server = api_server

    validated = Condition(
        type=VALIDATED_CONDITION, status=condition_status, reason=reason, message=message
    )
    set_status_condition(updated.conditions, validated)

    if not synchro_running:
        running = find_status_condition(updated.conditions, SYNCHRO_RUNNING_CONDITION)
        if condition_status != ConditionStatus.TRUE:
            set_status_condition(
                updated.conditions,
                Condition(
                    type=SYNCHRO_RUNNING_CONDITION,
                    status=ConditionStatus.FALSE,
                    reason=reason,
                    message=message,
                ),
            )
        elif running is None or running.reason != SYNCHRO_INITIAL_FAILED_REASON:
            set_status_condition(
                updated.conditions,
                Condition(
                    type=SYNCHRO_RUNNING_CONDITION,
                    status=ConditionStatus.FALSE,
                    reason=SYNCHRO_WAIT_INIT_REASON,
                    message="pediacluster is validated",
                ),
            )

        set_status_condition(
            updated.conditions,
            Condition(
                type=CLUSTER_HEALTHY_CONDITION,
                status=ConditionStatus.UNKNOWN,
                reason=CLUSTER_MONITOR_STOP_REASON,
                message="wait cluster synchro",
            ),
        )

    return _finalize(updated)


def merge_cluster_status(status: ClusterStatus, update: ClusterStatus) -> ClusterStatus:
    """Return a copy of ``status`` with the set parts of ``update`` applied."""
    merged = copy.deepcopy(status)
    if update.version:
        merged.version = update.version
    if update.sync_resources is not None:
        merged.sync_resources = copy.deepcopy(update.sync_resources)
    for condition in update.conditions:
        set_status_condition(merged.conditions, condition)
    return _finalize(merged)


@dataclass(frozen=True)
class ClusterSpec:
    """How to reach a cluster's API server."""

    kubeconfig: bytes = field(default_factory=bytes)
    api_server: str = ""
    ca_data: bytes = field(default_factory=bytes)
    token_data: bytes = field(default_factory=bytes)
    cert_data: bytes = field(default_factory=bytes)
    key_data: bytes = field(default_factory=bytes)


@dataclass(frozen=True)
class RestConfig:
    """Connection settings for a cluster's API server."""

    host: str
    bearer_token: str = field(default_factory=str)
    ca_data: bytes = field(default_factory=bytes)
    cert_data: bytes = field(default_factory=bytes)
    key_data: bytes = field(default_factory=bytes)
    insecure: bool = False


class ClusterConfigError(ValueError):
    """Raised when a cluster spec does not describe a usable connection."""


def _named(entries: Any, name: str, section: str) -> dict:
    if not isinstance(entries, list):
        entries = []
    for entry in entries:
        if isinstance(entry, dict) and entry.get("name") == name:
            body = entry.get(section)
            return body if isinstance(body, dict) else {}
    raise ClusterConfigError(f"invalid configuration: {section} {name!r} was not found")


def _decode(value: Any, what: str) -> bytes:
    if not value:
        return bytes()
    try:
        return base64.b64decode(str(value), validate=True)
    except (binascii.Error, ValueError) as err:
        raise ClusterConfigError(f"invalid configuration: {what} is not base64: {err}") from err


def _text(value: Any) -> str:
    return str(value) if value else str()


def _utf8(data: bytes) -> str:
    return data.decode("utf-8") if data else str()


def _config_from_kubeconfig(data: bytes) -> RestConfig:
    try:
        document = yaml.safe_load(data)
    except yaml.YAMLError as err:
        raise ClusterConfigError(f"invalid kubeconfig: {err}") from err
    if not isinstance(document, dict):
        raise ClusterConfigError("invalid configuration: no configuration has been provided")

    context_name = document.get("current-context")
    if not context_name:
        raise ClusterConfigError("invalid configuration: no current context is set")
    context = _named(document.get("contexts"), context_name, "context")
    cluster = _named(document.get("clusters"), context.get("cluster", ""), "cluster")
    user_name = context.get("user")
    user = _named(document.get("users"), user_name, "user") if user_name else {}

    server = cluster.get("server") or ""
    if not server:
        raise ClusterConfigError("invalid configuration: no server found for cluster")

    return RestConfig(
        host=str(server),
        bearer_token=_text(user.get(_BEARER_FIELD)),
        ca_data=_decode(cluster.get(_CA_FIELD), _CA_FIELD),
        cert_data=_decode(user.get(_CERT_FIELD), _CERT_FIELD),
        key_data=_decode(user.get(_PEM_FIELD), _PEM_FIELD),
        insecure=bool(cluster.get("insecure-skip-tls-verify", False)),
    )


def build_cluster_config(spec: ClusterSpec) -> RestConfig:
    """Build the connection config from a kubeconfig or from explicit credentials."""
    if spec.kubeconfig:
        return _config_from_kubeconfig(spec.kubeconfig)

    if not spec.api_server:
        raise ClusterConfigError("Cluster APIServer Endpoint is required")

    if not spec.token_data and (not spec.cert_data or not spec.key_data):
        raise ClusterConfigError("Cluster APIServer's Token or Cert is required")

    has_cert = bool(spec.cert_data and spec.key_data)
    return RestConfig(
        host=spec.api_server,
        bearer_token=_utf8(spec.token_data),
        ca_data=spec.ca_data,
        cert_data=spec.cert_data if has_cert else bytes(),
        key_data=spec.key_data if has_cert else bytes(),
        insecure=not spec.ca_data,
    )