import pytest

from kiosk.config_types import AccountNamespaceStatus, AccountSpec, AccountStatus
from kiosk.meta import ObjectMeta
from kiosk.rbac import GROUP_NAME, Subject
from kiosk.tenancy_types import Account, Space, SpaceSpec
from kiosk.validation import (
    FORBIDDEN,
    INVALID,
    NOT_SUPPORTED,
    REQUIRED,
    FieldError,
    validate_account,
    validate_account_update,
    validate_name,
    validate_space,
    validate_space_update,
    validate_subjects,
)


def _sa(name="test", namespace=""):
    return Subject(kind="ServiceAccount", name=name, namespace=namespace)


def _account(subjects, resource_version="", status=None):
    return Account(
        metadata=ObjectMeta(name="test", resource_version=resource_version),
        spec=AccountSpec(subjects=subjects),
        status=status or AccountStatus(),
    )


def test_invalid_account_missing_service_account_namespace():
    errs = validate_account(_account([_sa()]))
    assert errs
    assert FieldError(REQUIRED, "spec.subjects[0].namespace") in errs


def test_valid_account():
    assert validate_account(_account([_sa(namespace="test")])) == []


def test_invalid_account_update_status_changed():
    old = _account(
        [_sa(namespace="test")],
        resource_version="12345",
        status=AccountStatus(namespaces=[AccountNamespaceStatus(name="test")]),
    )
    new = _account([_sa(namespace="test")], resource_version="12345")
    errs = validate_account_update(new, old)
    assert [e.field for e in errs] == ["status"]


def test_valid_account_update():
    old = _account([_sa(name="testfabian", namespace="test")], resource_version="12345")
    new = _account([_sa(namespace="test")], resource_version="12345")
    assert validate_account_update(new, old) == []


def test_invalid_space_uppercase_name():
    errs = validate_space(Space(metadata=ObjectMeta(name="testABC")))
    assert [e.field for e in errs] == ["metadata.name"]
    assert errs[0].type == INVALID


def test_valid_space():
    assert validate_space(Space(metadata=ObjectMeta(name="test"))) == []


def test_space_without_name_is_invalid():
    errs = validate_space(Space())
    assert errs == [
        FieldError(REQUIRED, "metadata.name", None, "name or generateName is required")
    ]


def test_space_with_namespace_is_forbidden():
    errs = validate_space(Space(metadata=ObjectMeta(name="test", namespace="ns")))
    assert [(e.type, e.field) for e in errs] == [(FORBIDDEN, "metadata.namespace")]


def test_invalid_space_update_labels_changed():
    old = Space(
        metadata=ObjectMeta(
            name="test", annotations={"test": "test"}, labels={"test2": "test"}
        )
    )
    new = Space(
        metadata=ObjectMeta(
            name="test", annotations={"test": "test"}, labels={"test": "test"}
        )
    )
    errs = validate_space_update(new, old)
    assert sorted(e.field for e in errs) == [
        "metadata.labels[test2]",
        "metadata.labels[test]",
    ]


def test_space_update_annotation_removed():
    old = Space(metadata=ObjectMeta(name="test", annotations={"a": "b"}))
    new = Space(metadata=ObjectMeta(name="test"))
    errs = validate_space_update(new, old)
    assert [e.field for e in errs] == ["metadata.annotations[a]"]


def test_space_update_spec_is_immutable():
    old = Space(metadata=ObjectMeta(name="test"), spec=SpaceSpec(account="a"))
    new = Space(metadata=ObjectMeta(name="test"), spec=SpaceSpec(account="b"))
    errs = validate_space_update(new, old)
    assert [e.field for e in errs] == ["spec"]


def test_space_update_unchanged_is_valid():
    old = Space(metadata=ObjectMeta(name="test", labels={"x": "y"}))
    new = Space(metadata=ObjectMeta(name="test", labels={"x": "y"}))
    assert validate_space_update(new, old) == []


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a", ["must be at least 2 characters long"]),
        ("..", ["may not be '..'"]),
        ("a/b", ["may not contain '/'"]),
    ],
)
def test_validate_name_reasons(name, expected):
    assert validate_name(name, False) == expected


def test_validate_name_valid():
    assert validate_name("my-space", False) == []


def test_validate_name_too_long():
    assert validate_name("a" * 64, False) == ["must be no more than 63 characters"]


def test_user_subject_requires_rbac_group():
    errs = validate_subjects([Subject(kind="User", name="foo")])
    assert [(e.type, e.field) for e in errs] == [
        (NOT_SUPPORTED, "spec.subjects[0].apiGroup")
    ]


def test_group_subject_with_rbac_group_is_valid():
    assert validate_subjects([Subject(kind="Group", name="foo", api_group=GROUP_NAME)]) == []


def test_unknown_subject_kind():
    errs = validate_subjects([Subject(kind="Robot", name="foo")])
    assert [(e.type, e.field) for e in errs] == [(NOT_SUPPORTED, "spec.subjects[0].kind")]


def test_subject_without_name():
    errs = validate_subjects([Subject(kind="User", api_group=GROUP_NAME)])
    assert errs == [FieldError(REQUIRED, "spec.subjects[0].name")]


def test_field_error_str():
    err = FieldError(INVALID, "status", "x", "field is immutable")
    assert str(err) == "status: Invalid value: 'x': field is immutable"