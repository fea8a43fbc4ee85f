"""RBAC objects, rule matching and subject identifiers."""

from dataclasses import dataclass, field
from typing import ClassVar, Iterable

from kiosk.meta import GroupVersion, GroupVersionKind, ObjectMeta

GROUP_NAME = "rbac.authorization.k8s.io"
RBAC_GROUP_VERSION = GroupVersion(GROUP_NAME, "v1")

VERB_ALL = "*"
API_GROUP_ALL = "*"
RESOURCE_ALL = "*"
NON_RESOURCE_ALL = "*"

USER_KIND = "User"
GROUP_KIND = "Group"
SERVICE_ACCOUNT_KIND = "ServiceAccount"

USER_PREFIX = "user:"
GROUP_PREFIX = "group:"

_SERVICE_ACCOUNT_USERNAME_PREFIX = "system:serviceaccount:"


@dataclass
class Subject:
    """A user, group or service account a binding refers to."""

    kind: str = ""
    name: str = ""
    namespace: str = ""
    api_group: str = ""


@dataclass
class PolicyRule:
    """A single permission rule."""

    verbs: list[str] = field(default_factory=list)
    api_groups: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    resource_names: list[str] = field(default_factory=list)
    non_resource_urls: list[str] = field(default_factory=list)


@dataclass
class RoleRef:
    """The role a binding grants."""

    api_group: str = ""
    kind: str = ""
    name: str = ""


@dataclass
class Role:
    """A namespaced set of rules."""

    gvk: ClassVar[GroupVersionKind] = RBAC_GROUP_VERSION.with_kind("Role")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    rules: list[PolicyRule] = field(default_factory=list)


@dataclass
class ClusterRole:
    """A cluster-wide set of rules."""

    gvk: ClassVar[GroupVersionKind] = RBAC_GROUP_VERSION.with_kind("ClusterRole")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    rules: list[PolicyRule] = field(default_factory=list)


@dataclass
class RoleBinding:
    """Grants a role or cluster role to subjects within a namespace."""

    gvk: ClassVar[GroupVersionKind] = RBAC_GROUP_VERSION.with_kind("RoleBinding")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    subjects: list[Subject] = field(default_factory=list)
    role_ref: RoleRef = field(default_factory=RoleRef)


@dataclass
class ClusterRoleBinding:
    """Grants a cluster role to subjects cluster-wide."""

    gvk: ClassVar[GroupVersionKind] = RBAC_GROUP_VERSION.with_kind(
        "ClusterRoleBinding"
    )

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    subjects: list[Subject] = field(default_factory=list)
    role_ref: RoleRef = field(default_factory=RoleRef)


@dataclass(frozen=True)
class Attributes:
    """The attributes of a request being authorized."""

    verb: str = ""
    namespace: str = ""
    api_group: str = ""
    resource: str = ""
    subresource: str = ""
    name: str = ""
    path: str = ""
    resource_request: bool = False


def rules_allow(attributes: Attributes, rules: Iterable[PolicyRule]) -> bool:
    """Return True if any of the rules allows the request."""
    return any(rule_allows(attributes, rule) for rule in rules)


def rule_allows(attributes: Attributes, rule: PolicyRule) -> bool:
    """Return True if the rule allows the request."""
    if attributes.resource_request:
        combined = attributes.resource
        if attributes.subresource:
            combined = f"{attributes.resource}/{attributes.subresource}"
        return (
            verb_matches(rule, attributes.verb)
            and api_group_matches(rule, attributes.api_group)
            and resource_matches(rule, combined, attributes.subresource)
            and resource_name_matches(rule, attributes.name)
        )

    return verb_matches(rule, attributes.verb) and non_resource_url_matches(
        rule, attributes.path
    )


def verb_matches(rule: PolicyRule, requested_verb: str) -> bool:
    return any(verb in (VERB_ALL, requested_verb) for verb in rule.verbs)


def api_group_matches(rule: PolicyRule, requested_group: str) -> bool:
    return any(group in (API_GROUP_ALL, requested_group) for group in rule.api_groups)


def resource_matches(
    rule: PolicyRule, combined_requested_resource: str, requested_subresource: str
) -> bool:
    for rule_resource in rule.resources:
        if rule_resource in (RESOURCE_ALL, combined_requested_resource):
            return True
        if not requested_subresource:
            continue
        # A rule of the form */<subresource> matches that subresource of anything.
        if (
            len(rule_resource) == len(requested_subresource) + 2
            and rule_resource.startswith("*/")
            and rule_resource.endswith(requested_subresource)
        ):
            return True
    return False


def resource_name_matches(rule: PolicyRule, requested_name: str) -> bool:
    if not rule.resource_names:
        return True
    return requested_name in rule.resource_names


def non_resource_url_matches(rule: PolicyRule, requested_url: str) -> bool:
    for rule_url in rule.non_resource_urls:
        if rule_url in (NON_RESOURCE_ALL, requested_url):
            return True
        if rule_url.endswith("*") and requested_url.startswith(rule_url.rstrip("*")):
            return True
    return False


def make_service_account_username(namespace: str, name: str) -> str:
    """Return the user name a service account authenticates as."""
    return f"{_SERVICE_ACCOUNT_USERNAME_PREFIX}{namespace}:{name}"


def convert_subject(namespace: str, subject: Subject) -> str:
    """Return a unique id for the subject, or "" if it has none."""
    if subject.kind == USER_KIND:
        return USER_PREFIX + subject.name
    if subject.kind == GROUP_KIND:
        return GROUP_PREFIX + subject.name
    if subject.kind == SERVICE_ACCOUNT_KIND:
        sa_namespace = subject.namespace or namespace
        if not sa_namespace:
            return ""
        return USER_PREFIX + make_service_account_username(sa_namespace, subject.name)
    return ""