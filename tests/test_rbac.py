import pytest

from kiosk.rbac import (
    GROUP_NAME,
    GROUP_PREFIX,
    USER_PREFIX,
    Attributes,
    ClusterRoleBinding,
    PolicyRule,
    RoleRef,
    Subject,
    api_group_matches,
    convert_subject,
    make_service_account_username,
    non_resource_url_matches,
    resource_matches,
    resource_name_matches,
    rule_allows,
    rules_allow,
    verb_matches,
)


@pytest.mark.parametrize(
    "namespace, subject, expected",
    [
        ("test", Subject(api_group=GROUP_NAME, kind="User", name="foo"), USER_PREFIX + "foo"),
        ("test", Subject(api_group=GROUP_NAME, kind="Group", name="foo"), GROUP_PREFIX + "foo"),
        (
            "test",
            Subject(api_group=GROUP_NAME, kind="ServiceAccount", name="foo"),
            USER_PREFIX + "system:serviceaccount:test:foo",
        ),
        (
            "test",
            Subject(api_group=GROUP_NAME, kind="ServiceAccount", name="foo", namespace="loo"),
            USER_PREFIX + "system:serviceaccount:loo:foo",
        ),
    ],
)
def test_convert_subject(namespace, subject, expected):
    assert convert_subject(namespace, subject) == expected


def test_convert_subject_service_account_without_any_namespace():
    assert convert_subject("", Subject(kind="ServiceAccount", name="foo")) == ""


def test_convert_subject_unknown_kind():
    assert convert_subject("test", Subject(kind="Robot", name="foo")) == ""


def test_make_service_account_username():
    assert make_service_account_username("test", "foo") == "system:serviceaccount:test:foo"


def test_verb_matches():
    rule = PolicyRule(verbs=["get", "list"])
    assert verb_matches(rule, "get")
    assert not verb_matches(rule, "create")
    assert verb_matches(PolicyRule(verbs=["*"]), "delete")


def test_api_group_matches():
    assert api_group_matches(PolicyRule(api_groups=[""]), "")
    assert not api_group_matches(PolicyRule(api_groups=[""]), "config.kiosk.sh")
    assert api_group_matches(PolicyRule(api_groups=["*"]), "config.kiosk.sh")


def test_resource_matches_exact_and_wildcard():
    assert resource_matches(PolicyRule(resources=["namespaces"]), "namespaces", "")
    assert resource_matches(PolicyRule(resources=["*"]), "pods", "")
    assert not resource_matches(PolicyRule(resources=["pods"]), "namespaces", "")


def test_resource_matches_subresource_wildcard():
    rule = PolicyRule(resources=["*/status"])
    assert resource_matches(rule, "pods/status", "status")
    assert not resource_matches(rule, "pods/log", "log")
    assert not resource_matches(rule, "pods", "")


def test_resource_name_matches():
    assert resource_name_matches(PolicyRule(), "anything")
    rule = PolicyRule(resource_names=["test"])
    assert resource_name_matches(rule, "test")
    assert not resource_name_matches(rule, "other")


def test_non_resource_url_matches():
    assert non_resource_url_matches(PolicyRule(non_resource_urls=["*"]), "/healthz")
    assert non_resource_url_matches(PolicyRule(non_resource_urls=["/healthz"]), "/healthz")
    prefix = PolicyRule(non_resource_urls=["/api/*"])
    assert non_resource_url_matches(prefix, "/api/v1")
    assert not non_resource_url_matches(prefix, "/apis/v1")


def test_rule_allows_resource_request():
    rule = PolicyRule(verbs=["*"], api_groups=[""], resources=["namespaces"])
    attrs = Attributes(
        verb="create",
        namespace="test",
        api_group="",
        resource="namespaces",
        name="test",
        resource_request=True,
    )
    assert rule_allows(attrs, rule)
    assert not rule_allows(
        Attributes(verb="create", api_group="apps", resource="namespaces", resource_request=True),
        rule,
    )


def test_rule_allows_combines_subresource():
    rule = PolicyRule(verbs=["get"], api_groups=[""], resources=["pods/log"])
    attrs = Attributes(
        verb="get", api_group="", resource="pods", subresource="log", resource_request=True
    )
    assert rule_allows(attrs, rule)
    assert not rule_allows(
        Attributes(verb="get", api_group="", resource="pods", resource_request=True), rule
    )


def test_rule_allows_respects_resource_names():
    rule = PolicyRule(
        verbs=["*"], api_groups=[""], resources=["namespaces"], resource_names=["test"]
    )
    allowed = Attributes(verb="get", resource="namespaces", name="test", resource_request=True)
    denied = Attributes(verb="get", resource="namespaces", name="other", resource_request=True)
    assert rule_allows(allowed, rule)
    assert not rule_allows(denied, rule)


def test_rule_allows_non_resource_request():
    rule = PolicyRule(verbs=["get"], non_resource_urls=["/metrics"])
    assert rule_allows(Attributes(verb="get", path="/metrics"), rule)
    assert not rule_allows(Attributes(verb="post", path="/metrics"), rule)


def test_rules_allow_any_rule():
    rules = [
        PolicyRule(verbs=["get"], api_groups=[""], resources=["pods"]),
        PolicyRule(verbs=["create"], api_groups=[""], resources=["namespaces"]),
    ]
    attrs = Attributes(verb="create", resource="namespaces", resource_request=True)
    assert rules_allow(attrs, rules)
    assert not rules_allow(attrs, rules[:1])
    assert not rules_allow(attrs, [])


def test_binding_defaults_not_shared():
    first = ClusterRoleBinding(role_ref=RoleRef(api_group=GROUP_NAME, kind="ClusterRole", name="x"))
    second = ClusterRoleBinding()
    first.subjects.append(Subject(kind="User", name="foo"))
    assert second.subjects == []
    assert second.role_ref == RoleRef()
    assert ClusterRoleBinding.gvk.group == GROUP_NAME