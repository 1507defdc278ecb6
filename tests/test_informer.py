import pytest

from pediasync.informer import (
    DeletedFinalStateUnknown,
    Delta,
    DeltaType,
    FilteringResourceEventHandler,
    ObjectKeyError,
    ResourceEventHandlerFuncs,
    ResourceVersionInformer,
    ResourceVersionStorage,
    compare_resource_version,
    deletion_handling_meta_namespace_key,
    meta_namespace_key,
)


def make(name, rv="", namespace="default"):
    meta = {"name": name, "resourceVersion": rv}
    if namespace:
        meta["namespace"] = namespace
    return {"metadata": meta}


def recorder():
    calls = []
    handler = ResourceEventHandlerFuncs(
        add_func=lambda o: calls.append(("add", o)),
        update_func=lambda old, new: calls.append(("update", old, new)),
        delete_func=lambda o: calls.append(("delete", o)),
        sync_func=lambda o: calls.append(("sync", o)),
    )
    return calls, handler


def test_meta_namespace_key_namespaced_and_cluster_scoped():
    assert meta_namespace_key(make("a")) == "default/a"
    assert meta_namespace_key(make("node", namespace="")) == "node"
    assert meta_namespace_key("ns/explicit") == "ns/explicit"


def test_meta_namespace_key_rejects_non_objects():
    with pytest.raises(ObjectKeyError):
        meta_namespace_key(42)


def test_deletion_handling_key_uses_tombstone_key():
    tomb = DeletedFinalStateUnknown(key="ns/gone", obj=None)
    assert deletion_handling_meta_namespace_key(tomb) == "ns/gone"
    assert deletion_handling_meta_namespace_key(make("b")) == "default/b"


def test_handler_funcs_call_only_set_functions():
    calls = []
    handler = ResourceEventHandlerFuncs(add_func=lambda o: calls.append(o))
    handler.on_update(1, 2)
    handler.on_delete(3)
    handler.on_sync(4)
    handler.on_add(5)
    assert calls == [5]


@pytest.mark.parametrize(
    "old,new,expected",
    [
        (True, True, [("update", "old", "new")]),
        (False, True, [("add", "new")]),
        (True, False, [("delete", "old")]),
        (False, False, []),
    ],
)
def test_filtering_update(old, new, expected):
    calls, inner = recorder()
    allowed = {"old": old, "new": new}
    filtering = FilteringResourceEventHandler(filter_func=lambda o: allowed[o], handler=inner)
    filtering.on_update("old", "new")
    assert calls == expected


def test_filtering_add_delete_sync():
    calls, inner = recorder()
    filtering = FilteringResourceEventHandler(filter_func=lambda o: o == "yes", handler=inner)
    for obj in ("yes", "no"):
        filtering.on_add(obj)
        filtering.on_delete(obj)
        filtering.on_sync(obj)
    assert calls == [("add", "yes"), ("delete", "yes"), ("sync", "yes")]


def test_storage_round_trip():
    storage = ResourceVersionStorage()
    obj = make("a", "10")
    assert storage.get(obj) is None
    storage.add(obj)
    assert storage.get(obj) == "10"
    storage.update(make("a", "11"))
    assert storage.get(obj) == "11"
    assert storage.list_keys() == ["default/a"]
    assert storage.get_by_key("default/a") == "11"
    storage.delete(obj)
    assert storage.get(obj) is None
    assert storage.list_keys() == []


def test_storage_replace_and_tombstone_delete():
    storage = ResourceVersionStorage()
    storage.replace({"default/x": "1", "default/y": "2"})
    assert sorted(storage.list_keys()) == ["default/x", "default/y"]
    storage.delete(DeletedFinalStateUnknown(key="default/x", obj=None))
    assert storage.list_keys() == ["default/y"]
    assert storage.get_by_key("default/x") is None


def test_compare_resource_version():
    assert compare_resource_version(make("a", "5"), "5") == 0
    assert compare_resource_version(make("a", "4"), "5") == -1
    assert compare_resource_version(make("a", "6"), "5") == 1
    assert compare_resource_version(make("a", ""), "0") == 0
    assert compare_resource_version(make("a", "5"), "bad") == -1
    assert compare_resource_version(make("a", "-1"), "5") == -1
    assert compare_resource_version("not-an-object", "5") == -1


def test_informer_requires_name():
    with pytest.raises(ValueError):
        ResourceVersionInformer("", ResourceVersionStorage(), ResourceEventHandlerFuncs())


def test_informer_add_then_update_then_delete():
    calls, handler = recorder()
    storage = ResourceVersionStorage()
    informer = ResourceVersionInformer("cluster", storage, handler)

    first = make("a", "1")
    second = make("a", "2")
    informer.handle_deltas([Delta(DeltaType.ADDED, first)])
    informer.handle_deltas([Delta(DeltaType.UPDATED, second)])
    assert storage.get(first) == "2"
    informer.handle_deltas([Delta(DeltaType.DELETED, second)])
    assert storage.get(first) is None
    assert calls == [("add", first), ("update", None, second), ("delete", second)]


def test_informer_replaced_compares_versions():
    calls, handler = recorder()
    storage = ResourceVersionStorage()
    storage.replace({"default/a": "5"})
    informer = ResourceVersionInformer("cluster", storage, handler)

    same, older, newer = make("a", "5"), make("a", "3"), make("a", "9")
    informer.handle_deltas(
        [
            Delta(DeltaType.REPLACED, same),
            Delta(DeltaType.REPLACED, older),
            Delta(DeltaType.REPLACED, newer),
        ]
    )
    assert calls == [("sync", same), ("update", None, newer)]
    assert storage.get(same) == "9"


def test_informer_replaced_unknown_object_is_added():
    calls, handler = recorder()
    storage = ResourceVersionStorage()
    informer = ResourceVersionInformer("cluster", storage, handler)
    obj = make("new", "7")
    informer.handle_deltas([Delta(DeltaType.REPLACED, obj)])
    assert calls == [("add", obj)]
    assert storage.get(obj) == "7"