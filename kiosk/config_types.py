"""Resource types of the config API group."""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar

from kiosk.meta import CONFIG_GROUP_VERSION, GroupVersionKind, ObjectMeta
from kiosk.rbac import Subject

# When set on a template instance, it does not become owner of the objects it creates.
TEMPLATE_INSTANCE_NO_OWNER_ANNOTATION = "templateinstance.config.kiosk.sh/no-owner"


@dataclass
class TemplateInstanceSpec:
    """The template to instantiate; immutable once set."""

    template: str


@dataclass
class AccountSpec:
    """Configuration of a single account."""

    space_cluster_role: str | None = None
    space_default_templates: list[TemplateInstanceSpec] = field(default_factory=list)
    space_limit: int | None = None
    subjects: list[Subject] = field(default_factory=list)


@dataclass
class AccountNamespaceStatus:
    """A namespace belonging to an account."""

    name: str = ""


@dataclass
class AccountStatus:
    """Observed state of an account."""

    namespaces: list[AccountNamespaceStatus] = field(default_factory=list)


@dataclass
class Account:
    """A tenant account."""

    gvk: ClassVar[GroupVersionKind] = CONFIG_GROUP_VERSION.with_kind("Account")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: AccountSpec = field(default_factory=AccountSpec)
    status: AccountStatus = field(default_factory=AccountStatus)


@dataclass
class AccountQuotaSpec:
    """Desired quota for an account; quota holds resource quota fields."""

    account: str = ""
    quota: dict[str, Any] = field(default_factory=dict)


@dataclass
class AccountQuotaStatusByNamespace:
    """Quota usage within one namespace of the account."""

    namespace: str = ""
    status: dict[str, Any] = field(default_factory=dict)


@dataclass
class AccountQuotaStatus:
    """Enforced quota and usage, in total and per namespace."""

    total: dict[str, Any] = field(default_factory=dict)
    namespaces: list[AccountQuotaStatusByNamespace] = field(default_factory=list)


@dataclass
class AccountQuota:
    """A resource quota that spans all namespaces of an account."""

    gvk: ClassVar[GroupVersionKind] = CONFIG_GROUP_VERSION.with_kind("AccountQuota")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    spec: AccountQuotaSpec = field(default_factory=AccountQuotaSpec)
    status: AccountQuotaStatus = field(default_factory=AccountQuotaStatus)


@dataclass
class HelmSecretRef:
    """A reference to a key within a secret."""

    key: str
    name: str
    namespace: str


@dataclass
class HelmSetValue:
    """A name=value pair passed to helm template."""

    name: str
    value: str
    force_string: bool = False


@dataclass
class HelmChartRepository:
    """A chart repository to load a chart from."""

    name: str
    repo_url: str = ""
    username: HelmSecretRef | None = None
    password: HelmSecretRef | None = None


@dataclass
class HelmChart:
    """Where to find a chart to deploy."""

    repository: HelmChartRepository | None = None


@dataclass
class HelmConfiguration:
    """Helm deployment settings of a template."""

    release_name: str = ""
    set_values: list[HelmSetValue] = field(default_factory=list)
    values: str = ""
    chart: HelmChart = field(default_factory=HelmChart)


@dataclass
class TemplateResources:
    """The manifests and helm chart a template deploys."""

    manifests: list[dict[str, Any]] = field(default_factory=list)
    helm: HelmConfiguration | None = None


@dataclass
class Template:
    """A set of resources to deploy into a namespace."""

    gvk: ClassVar[GroupVersionKind] = CONFIG_GROUP_VERSION.with_kind("Template")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    resources: TemplateResources = field(default_factory=TemplateResources)


class TemplateInstanceDeploymentStatus(str, enum.Enum):
    """Deployment state of a template instance."""

    DEPLOYED = "Deployed"
    FAILED = "Failed"
    PENDING = ""


@dataclass
class ResourceStatus:
    """Identity and version of a deployed resource."""

    group: str = ""
    version: str = ""
    kind: str = ""
    resource_version: str = ""
    name: str = ""
    uid: str = ""
    namespace: str = ""


@dataclass
class TemplateInstanceStatus:
    """Observed state of a template instance."""

    status: TemplateInstanceDeploymentStatus = TemplateInstanceDeploymentStatus.PENDING
    message: str = ""
    reason: str = ""
    resources: list[ResourceStatus] = field(default_factory=list)
    template_resource_version: str = ""
    last_applied_at: datetime | None = None


@dataclass
class TemplateInstance:
    """A template applied to a namespace."""

    gvk: ClassVar[GroupVersionKind] = CONFIG_GROUP_VERSION.with_kind("TemplateInstance")

    spec: TemplateInstanceSpec
    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    status: TemplateInstanceStatus = field(default_factory=TemplateInstanceStatus)