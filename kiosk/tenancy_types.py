"""Resource types of the tenancy API group: accounts and spaces."""

from dataclasses import dataclass, field
from typing import ClassVar, Optional

from kiosk.meta import (
    GroupKind,
    GroupResource,
    GroupVersion,
    GroupVersionKind,
    ObjectMeta,
)
from kiosk.rbac import Subject

__all__ = [
    "TENANCY_GROUP",
    "TENANCY_GROUP_VERSION",
    "SPACE_ANNOTATION_ACCOUNT",
    "SPACE_ANNOTATION_INITIALIZING",
    "RESOURCE_NAMES",
    "TemplateInstanceSpec",
    "AccountSpec",
    "AccountNamespaceStatus",
    "AccountStatus",
    "Account",
    "SpaceSpec",
    "SpaceStatus",
    "Space",
    "kind",
    "resource",
]

TENANCY_GROUP = "tenancy.kiosk.sh"
TENANCY_GROUP_VERSION = GroupVersion(TENANCY_GROUP, "v1alpha1")

# The account a space belongs to.
SPACE_ANNOTATION_ACCOUNT = "kiosk.sh/account"
# Marks a space as initializing; blocks role creation in its namespace.
SPACE_ANNOTATION_INITIALIZING = "kiosk.sh/initializing"

# Kind to resource name for the resources this group serves.
RESOURCE_NAMES = {"Account": "accounts", "Space": "spaces"}


@dataclass
class TemplateInstanceSpec:
    """A template to instantiate when a space is created."""

    template: str = ""


@dataclass
class AccountSpec:
    """Configuration of a single account."""

    # Cluster role bound to the account's subjects in each new space.
    space_cluster_role: Optional[str] = None
    space_default_templates: list[TemplateInstanceSpec] = field(default_factory=list)
    # How many spaces the account may create; None means unlimited.
    space_limit: Optional[int] = None
    subjects: list[Subject] = field(default_factory=list)


@dataclass
class AccountNamespaceStatus:
    """A namespace that belongs to an account."""

    name: str = ""


@dataclass
class AccountStatus:
    """Observed state of an account in the cluster."""

    namespaces: list[AccountNamespaceStatus] = field(default_factory=list)


@dataclass
class Account:
    """An account as served by the tenancy API."""

    gvk: ClassVar[GroupVersionKind] = TENANCY_GROUP_VERSION.with_kind("Account")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: AccountSpec = field(default_factory=AccountSpec)
    status: AccountStatus = field(default_factory=AccountStatus)


@dataclass
class SpaceSpec:
    """Desired state of a space."""

    # Owning account; filled automatically when the user belongs to one account only.
    account: str = ""
    finalizers: list[str] = field(default_factory=list)


@dataclass
class SpaceStatus:
    """Observed state of a space."""

    phase: str = ""


@dataclass
class Space:
    """A namespace as seen by a tenant."""

    gvk: ClassVar[GroupVersionKind] = TENANCY_GROUP_VERSION.with_kind("Space")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: SpaceSpec = field(default_factory=SpaceSpec)
    status: SpaceStatus = field(default_factory=SpaceStatus)


def kind(kind: str) -> GroupKind:
    """Qualify an unqualified kind with the tenancy group."""
    return TENANCY_GROUP_VERSION.with_kind(kind).group_kind()


def resource(resource: str) -> GroupResource:
    """Qualify an unqualified resource with the tenancy group."""
    return TENANCY_GROUP_VERSION.with_resource(resource).group_resource()