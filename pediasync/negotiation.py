"""Which media type transformations an endpoint permits."""

from __future__ import annotations

from dataclasses import dataclass, field

from pediasync.schema import GroupVersionKind

_META_GROUP = "meta.k8s.io"
_META_VERSIONS = frozenset({"v1", "v1beta1"})


@dataclass(frozen=True)
class EndpointRestrictions:
    """Restrictions on transforming responses into tables or metadata."""

    allow_table: bool = False
    allow_partial_object_metadata: bool = False
    allowed_server_versions: frozenset = field(default_factory=frozenset)

    def allows_media_type_transform(
        self, mime_type: str, mime_sub_type: str, gvk: GroupVersionKind | None
    ) -> bool:
        if gvk is None:
            return False
        if gvk.group != _META_GROUP or gvk.version not in _META_VERSIONS:
            return False
        if gvk.kind == "Table":
            return self.allow_table and mime_type == "application" and mime_sub_type in ("json", "yaml")
        if gvk.kind in ("PartialObjectMetadata", "PartialObjectMetadataList"):
            return self.allow_partial_object_metadata
        return False

    def allows_server_version(self, version: str) -> bool:
        return version in self.allowed_server_versions

    def allows_stream_schema(self, schema: str) -> bool:
        return schema == "watch"


TABLE_ENDPOINT_RESTRICTIONS = EndpointRestrictions(allow_table=True)
PARTIAL_OBJECT_METADATA_ENDPOINT_RESTRICTIONS = EndpointRestrictions(allow_partial_object_metadata=True)
DEFAULT_ENDPOINT_RESTRICTIONS = EndpointRestrictions(allow_table=True, allow_partial_object_metadata=True)