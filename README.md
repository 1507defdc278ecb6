# pediasync

`pediasync` collects building blocks for a multi-cluster resource
synchroniser. It tracks the resource versions of watched objects and turns
changes into handler callbacks. It works out which versions of a resource to
synchronise and keeps per-version sync conditions. It times retries, switches
optional behaviour through feature gates, and keeps each cluster's status
conditions consistent.

## What is inside

| Module | Purpose |
| --- | --- |
| `pediasync.schema` | `GroupResource`, `GroupVersionResource` and `GroupVersionKind` value types |
| `pediasync.request` | An immutable `Context` that carries the cluster name, the `Accept` header and the parsed request query |
| `pediasync.filters` | WSGI middleware: `with_accept_header`, `with_request_query`, `remove_field_selector_from_request`, and `request_context` to read the context back |
| `pediasync.features` | `FeatureGate` with `FeatureSpec`/`PreRelease`, the synchroniser's gates from `new_default_feature_gate()`, and a shared `feature_gate` |
| `pediasync.version` | `VersionInfo`, `get()`, and an argparse `--version` flag through `add_version_argument` and `print_and_exit_if_requested` |
| `pediasync.negotiation` | `EndpointRestrictions` for media-type transforms (Table, PartialObjectMetadata) |
| `pediasync.watchevent` | `new_error_event` wraps an exception or a `Status` as an `ERROR` `WatchEvent` |
| `pediasync.informer` | Event handlers, `ResourceVersionStorage` and `ResourceVersionInformer`, which turn deltas into add/update/delete/sync callbacks |
| `pediasync.negotiator` | `negotiate_sync_versions` and `GroupResourceStatus`, which track per-version sync conditions |
| `pediasync.ratelimiter` | `ItemExponentialFailureAndJitterSlowRateLimiter`: fast exponential retries first, then slow retries with jitter |
| `pediasync.clusterstatus` | Condition helpers, `merge_cluster_status`, `apply_validated_condition` and `build_cluster_config` |

## Request context

```python
from pediasync.request import Context, cluster_name_value, with_cluster_name

ctx = with_cluster_name(Context(), "cluster-1")
assert cluster_name_value(ctx) == "cluster-1"
```

An empty cluster name, an empty `Accept` header or a `None` query leaves the
parent context unchanged.

The middleware in `pediasync.filters` attaches the context to the WSGI
environ. `remove_field_selector_from_request` drops `fieldSelector` from the
`QUERY_STRING` that the wrapped application sees. The query it records in the
context still contains `fieldSelector`.

## Feature gates

```python
from pediasync.features import ALLOW_SYNC_ALL_RESOURCES, new_default_feature_gate

gate = new_default_feature_gate()
assert gate.enabled(ALLOW_SYNC_ALL_RESOURCES) is False
gate.set("AllowSyncAllResources=true")
assert gate.enabled(ALLOW_SYNC_ALL_RESOURCES) is True
```

`PruneManagedFields` and `PruneLastAppliedConfiguration` are on by default.
`AllowSyncAllCustomResources`, `AllowSyncAllResources` and
`HealthCheckerWithStandaloneTCP` are off by default. Setting an unknown
feature raises `ValueError`, and so does a value that is not a boolean.
Asking about an unknown feature raises `KeyError`.

## Informer storage

`ResourceVersionStorage` maps object keys (`namespace/name`, or `name` for
cluster-scoped objects) to resource versions. Objects are mappings with a
`metadata` section. `ResourceVersionInformer.handle_deltas` applies a sequence
of `Delta` values to the storage and calls the handler:

- An object the storage does not know yet produces `on_add`.
- A `Replaced` delta whose version equals the stored one produces `on_sync`.
- A `Replaced` delta whose version is older than the stored one produces no
  callback.
- Any other change produces `on_update(None, obj)`.
- A `Deleted` delta produces `on_delete`.

## Version negotiation

`negotiate_sync_versions(known_versions, want_versions, supported_versions)`
returns the versions to synchronise and whether the kind is a built-in one:

- Kinds with known versions: the first supported version that is known, and
  only that one.
- No versions requested: the first three supported versions.
- `*` requested: every supported version.
- Otherwise: the requested versions the server supports, in the server's
  order.

```python
from pediasync.negotiator import negotiate_sync_versions

assert negotiate_sync_versions(None, [], ["v1", "v1beta2", "v1beta1", "v1alpha1"]) == (
    ["v1", "v1beta2", "v1beta1"],
    False,
)
```

When nothing matches, `NegotiationError` is raised. Its `legacy` attribute
tells whether the kind had known versions.

`GroupResourceStatus` records resources and their per-version
`ClusterResourceSyncCondition`. `load_group_resources_statuses()` returns a
snapshot grouped by API group, in the order the resources were added, with
versions sorted. `merge(other)` takes over the versions only `other` has and
returns them.

## Retry timing

```python
from datetime import timedelta
from pediasync.ratelimiter import ItemExponentialFailureAndJitterSlowRateLimiter

limiter = ItemExponentialFailureAndJitterSlowRateLimiter(
    timedelta(seconds=1), timedelta(seconds=5), timedelta(seconds=10), 1.0, 5
)
assert limiter.when("one") == timedelta(seconds=1)
assert limiter.when("one") == timedelta(seconds=2)
```

For the first `max_fast_attempts` failures of an item, the delay doubles up
to the fast maximum. After that, the delay is the slow base delay plus a
random extra of up to `slow_max_factor` times the slow base delay.
`num_requeues` reports how many failures have been recorded, and `forget`
clears the item.

## Cluster status and connection config

`merge_cluster_status` and `apply_validated_condition` return updated copies
of a `ClusterStatus`. Both drop the deprecated `ClusterSynchroInitialized`
condition and recompute `Ready` from the `Validated`, `SynchroRunning` and
`ClusterHealthy` conditions.

`build_cluster_config` turns a `ClusterSpec` into a `RestConfig`. It reads
either a kubeconfig, using its current context, or an API server endpoint
with a token or a client certificate and key:

```python
from pediasync.clusterstatus import ClusterSpec, build_cluster_config

config = build_cluster_config(ClusterSpec(api_server="https://cluster.example.com:6443", token_data=b"token"))
assert config.bearer_token == "token"
assert config.insecure is True  # no CA data was given
```

An incomplete spec raises `ClusterConfigError`.

## What this package does not do

`pediasync` is a library of parts. It has no command to run, and it does not
connect to clusters, list or watch resources, or run a controller loop. It
has no event queue that merges and orders pending events before they are
stored, and it has no storage backend for synchronised resources. Those are
left to the application that uses these parts.

## Running the tests

```
pip install -e ".[test]"
pytest
```