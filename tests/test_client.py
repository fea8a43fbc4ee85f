import pytest

from kiosk.client import InMemoryClient, NotFoundError
from kiosk.config_types import Account
from kiosk.meta import Namespace, ObjectMeta
from kiosk.rbac import Role, RoleBinding


def _role(name, namespace=""):
    return Role(metadata=ObjectMeta(name=name, namespace=namespace))


def test_create_then_get_round_trip():
    client = InMemoryClient()
    client.create(_role("alpha", "ns1"))
    got = client.get(Role, "alpha", "ns1")
    assert got == _role("alpha", "ns1")


def test_get_missing_raises_not_found():
    client = InMemoryClient()
    with pytest.raises(NotFoundError) as info:
        client.get(Role, "missing", "ns1")
    assert info.value.name == "missing"
    assert info.value.namespace == "ns1"


def test_get_is_namespace_scoped():
    client = InMemoryClient()
    client.create(_role("alpha", "ns1"))
    with pytest.raises(NotFoundError):
        client.get(Role, "alpha", "ns2")


def test_get_accepts_group_version_kind():
    client = InMemoryClient()
    client.create(_role("alpha"))
    assert client.get(Role.gvk, "alpha").metadata.name == "alpha"


def test_duplicate_create_raises():
    client = InMemoryClient()
    client.create(_role("alpha"))
    with pytest.raises(ValueError):
        client.create(_role("alpha"))


def test_create_without_name_raises():
    client = InMemoryClient()
    with pytest.raises(ValueError):
        client.create(Role())


def test_delete_removes_object():
    client = InMemoryClient()
    client.create(_role("alpha"))
    client.delete(_role("alpha"))
    with pytest.raises(NotFoundError):
        client.get(Role, "alpha")


def test_delete_missing_raises():
    client = InMemoryClient()
    with pytest.raises(NotFoundError):
        client.delete(_role("alpha"))


def test_returned_objects_are_copies():
    client = InMemoryClient()
    client.create(_role("alpha"))
    got = client.get(Role, "alpha")
    got.metadata.labels["changed"] = "yes"
    assert client.get(Role, "alpha").metadata.labels == {}


def test_list_all_of_kind_only():
    client = InMemoryClient()
    client.create(_role("alpha"))
    client.create(_role("beta"))
    client.create(Namespace(metadata=ObjectMeta(name="alpha")))
    names = sorted(r.metadata.name for r in client.list(Role))
    assert names == ["alpha", "beta"]
    assert [n.metadata.name for n in client.list(Namespace)] == ["alpha"]


def test_list_by_registered_index():
    client = InMemoryClient()
    client.index_field(Account, "owner", lambda a: list(a.metadata.labels.values()))
    client.create(Account(metadata=ObjectMeta(name="a1", labels={"o": "x"})))
    client.create(Account(metadata=ObjectMeta(name="a2", labels={"o": "y"})))
    assert [a.metadata.name for a in client.list(Account, "owner", "x")] == ["a1"]
    assert client.list(Account, "owner", "z") == []


def test_set_index_value_overrides_index():
    client = InMemoryClient()
    binding = RoleBinding(metadata=ObjectMeta(name="b", namespace="ns1"))
    client.set_index_value(RoleBinding.gvk, "subjects", "user:foo", [binding])
    assert client.list(RoleBinding, "subjects", "user:foo") == [binding]


def test_list_unindexed_field_raises():
    client = InMemoryClient()
    with pytest.raises(ValueError):
        client.list(Role, "subjects", "user:foo")