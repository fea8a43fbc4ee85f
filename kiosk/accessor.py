"""Works out which namespaces and accounts a subject may access."""

from abc import ABC, abstractmethod

from kiosk.client import Client, NotFoundError
from kiosk.config_types import Account
from kiosk.indices import INDEX_BY_SUBJECTS
from kiosk.meta import CONFIG_GROUP_VERSION, CORE_GROUP
from kiosk.rbac import (
    GROUP_NAME,
    RESOURCE_ALL,
    Attributes,
    ClusterRole,
    ClusterRoleBinding,
    Role,
    RoleBinding,
    api_group_matches,
    resource_matches,
    rules_allow,
    verb_matches,
)

_VIEW_VERBS = ("list", "get", "watch")


class Accessor(ABC):
    """Retrieves the namespaces and accounts a subject may access."""

    @abstractmethod
    def retrieve_allowed_namespaces(self, subject: str, verb: str) -> list[str]:
        """Return the namespaces the subject may use with verb; "*" means all."""

    @abstractmethod
    def retrieve_allowed_accounts(self, subject: str, verb: str) -> list[str]:
        """Return the accounts the subject may use with verb; "*" means all."""


class RbacAccessor(Accessor):
    """An accessor that evaluates RBAC roles and bindings read through a client."""

    def __init__(self, client: Client) -> None:
        self.client = client

    def _get_or_none(self, kind, name, namespace=""):
        try:
            return self.client.get(kind, name, namespace)
        except NotFoundError:
            return None

    def _cluster_wide_names(self, subject: str, verb: str, group: str, resource: str) -> set[str]:
        names: set[str] = set()
        for binding in self.client.list(ClusterRoleBinding, INDEX_BY_SUBJECTS, subject):
            ref = binding.role_ref
            if ref.api_group != GROUP_NAME or ref.kind != "ClusterRole":
                continue
            cluster_role = self._get_or_none(ClusterRole, ref.name)
            if cluster_role is None:
                continue
            for rule in cluster_role.rules:
                if (
                    verb_matches(rule, verb)
                    and api_group_matches(rule, group)
                    and resource_matches(rule, resource, "")
                ):
                    if rule.resource_names:
                        names.update(rule.resource_names)
                    else:
                        names.add(RESOURCE_ALL)
        return names

    def retrieve_allowed_namespaces(self, subject: str, verb: str) -> list[str]:
        namespaces = self._cluster_wide_names(subject, verb, CORE_GROUP, "namespaces")

        for binding in self.client.list(RoleBinding, INDEX_BY_SUBJECTS, subject):
            ref = binding.role_ref
            namespace = binding.metadata.namespace
            if ref.api_group != GROUP_NAME:
                continue
            if ref.kind == "ClusterRole":
                role = self._get_or_none(ClusterRole, ref.name)
            elif ref.kind == "Role":
                role = self._get_or_none(Role, ref.name, namespace)
            else:
                continue
            if role is None:
                continue
            attributes = Attributes(
                verb=verb,
                namespace=namespace,
                api_group=CORE_GROUP,
                resource="namespaces",
                name=namespace,
                resource_request=True,
            )
            if rules_allow(attributes, role.rules):
                namespaces.add(namespace)

        namespaces.discard("")
        return sorted(namespaces)

    def retrieve_allowed_accounts(self, subject: str, verb: str) -> list[str]:
        accounts = self._cluster_wide_names(
            subject, verb, CONFIG_GROUP_VERSION.group, "accounts"
        )
        accounts.discard("")

        # Members of an account may always view it.
        if verb in _VIEW_VERBS:
            for account in self.client.list(Account, INDEX_BY_SUBJECTS, subject):
                accounts.add(account.metadata.name)

        return sorted(accounts)