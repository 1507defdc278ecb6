from urllib.parse import parse_qs

import pytest

from pediasync.request import (
    Context,
    accept_header_from,
    cluster_name_from,
    cluster_name_value,
    has_request_query,
    request_query_from,
    with_accept_header,
    with_cluster_name,
    with_request_query,
)


@pytest.mark.parametrize(
    "cluster_name, expected_exist, expected_name",
    [
        ("", False, ""),
        ("cluster-1", True, "cluster-1"),
    ],
    ids=["empty cluster name", "non empty cluster name"],
)
def test_cluster_name_from(cluster_name, expected_exist, expected_name):
    parent = Context()
    ctx = with_cluster_name(parent, cluster_name)
    if cluster_name == "":
        assert ctx is parent

    name = cluster_name_from(ctx)
    assert (name is not None) == expected_exist
    assert (name or "") == expected_name
    assert cluster_name_value(ctx) == expected_name


@pytest.mark.parametrize(
    "query, nil_query, expected_has, expected",
    [
        ("", True, False, None),
        ("", False, True, {}),
        (
            "key1=value1&key2=value2&key2=value3",
            False,
            True,
            {"key1": ["value1"], "key2": ["value2", "value3"]},
        ),
    ],
    ids=["nil url.Values", "empty url query", "non empty query"],
)
def test_request_query(query, nil_query, expected_has, expected):
    values = None if nil_query else parse_qs(query, keep_blank_values=True)
    parent = Context()
    ctx = with_request_query(parent, values)
    if nil_query:
        assert ctx is parent

    assert has_request_query(ctx) is expected_has
    assert request_query_from(ctx) == expected


def test_accept_header():
    parent = Context()
    assert with_accept_header(parent, "") is parent
    assert accept_header_from(parent) == ""
    ctx = with_accept_header(parent, "application/json")
    assert accept_header_from(ctx) == "application/json"
    assert accept_header_from(parent) == ""


def test_values_are_independent_and_inherited():
    ctx = with_cluster_name(Context(), "cluster-1")
    ctx = with_accept_header(ctx, "application/yaml")
    assert cluster_name_value(ctx) == "cluster-1"
    assert accept_header_from(ctx) == "application/yaml"
    assert has_request_query(ctx) is False


def test_child_value_shadows_parent():
    parent = with_cluster_name(Context(), "cluster-1")
    child = with_cluster_name(parent, "cluster-2")
    assert cluster_name_value(child) == "cluster-2"
    assert cluster_name_value(parent) == "cluster-1"


def test_context_with_value_and_value():
    base = Context()
    ctx = base.with_value("k", 42)
    assert ctx.value("k") == 42
    assert base.value("k") is None