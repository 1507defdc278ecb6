import pytest

from pediasync.schema import GroupResource, GroupVersionKind, GroupVersionResource


def test_with_version_round_trip():
    gr = GroupResource(group="apps", resource="deployments")
    gvr = gr.with_version("v1")
    assert gvr == GroupVersionResource("apps", "v1", "deployments")
    assert gvr.group_resource() == gr


def test_group_resource_is_hashable_and_equal_by_value():
    a = GroupResource("apps", "deployments")
    b = GroupResource("apps", "deployments")
    assert {a: 1}[b] == 1
    assert a.with_version("v1") == b.with_version("v1")
    assert a.with_version("v1") != b.with_version("v1beta1")


def test_group_resource_str():
    assert str(GroupResource("apps", "deployments")) == "deployments.apps"
    assert str(GroupResource("", "pods")) == "pods"


@pytest.mark.parametrize(
    "gvr, empty",
    [
        (GroupVersionResource(), True),
        (GroupVersionResource(version="v1"), False),
        (GroupVersionResource(resource="pods"), False),
        (GroupVersionResource("apps", "v1", "deployments"), False),
    ],
)
def test_is_empty(gvr, empty):
    assert gvr.is_empty() is empty


def test_group_version_with_group():
    assert GroupVersionKind("apps", "v1", "Deployment").group_version() == "apps/v1"


def test_group_version_without_group():
    gvk = GroupVersionKind("", "v1", "Pod")
    assert gvk.group_version() == gvk.version