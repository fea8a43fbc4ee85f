"""Field indices that speed up lookups of accounts, namespaces and bindings."""

from typing import Any

from kiosk.config_types import Account
from kiosk.meta import Namespace
from kiosk.rbac import GROUP_NAME, ClusterRoleBinding, RoleBinding, convert_subject
from kiosk.tenancy_types import SPACE_ANNOTATION_ACCOUNT

INDEX_BY_SUBJECTS = "subjects"
INDEX_BY_ACCOUNT = "account"
INDEX_BY_ROLE = "role"
INDEX_BY_CLUSTER_ROLE = "clusterrole"


def _subject_ids(namespace, subjects) -> list[str]:
    return [sid for sid in (convert_subject(namespace, s) for s in subjects) if sid]


def _account_subjects(account: Account) -> list[str]:
    return _subject_ids("", account.spec.subjects)


def _namespace_account(namespace: Namespace) -> list[str]:
    account = namespace.metadata.annotations.get(SPACE_ANNOTATION_ACCOUNT, "")
    return [account] if account else []


def _role_binding_subjects(binding: RoleBinding) -> list[str]:
    return _subject_ids(binding.metadata.namespace, binding.subjects)


def _role_binding_role(binding: RoleBinding) -> list[str]:
    ref = binding.role_ref
    if ref.api_group == GROUP_NAME and ref.kind == "Role":
        return [f"{binding.metadata.namespace}/{ref.name}"]
    return []


def _binding_cluster_role(binding: Any) -> list[str]:
    ref = binding.role_ref
    if ref.api_group == GROUP_NAME and ref.kind == "ClusterRole":
        return [ref.name]
    return []


def _cluster_role_binding_subjects(binding: ClusterRoleBinding) -> list[str]:
    return _subject_ids("", binding.subjects)


def register_indices(indexer: Any) -> None:
    """Register every field index on an indexer that provides index_field."""
    indexer.index_field(Account, INDEX_BY_SUBJECTS, _account_subjects)
    indexer.index_field(Namespace, INDEX_BY_ACCOUNT, _namespace_account)
    indexer.index_field(RoleBinding, INDEX_BY_SUBJECTS, _role_binding_subjects)
    indexer.index_field(RoleBinding, INDEX_BY_ROLE, _role_binding_role)
    indexer.index_field(RoleBinding, INDEX_BY_CLUSTER_ROLE, _binding_cluster_role)
    indexer.index_field(ClusterRoleBinding, INDEX_BY_SUBJECTS, _cluster_role_binding_subjects)
    indexer.index_field(ClusterRoleBinding, INDEX_BY_CLUSTER_ROLE, _binding_cluster_role)