"""Object metadata and API group/version identifiers."""

from dataclasses import dataclass, field
from typing import ClassVar


@dataclass(frozen=True)
class GroupKind:
    """A kind qualified by its API group."""

    group: str
    kind: str

    def __str__(self) -> str:
        return f"{self.kind}.{self.group}" if self.group else self.kind


@dataclass(frozen=True)
class GroupResource:
    """A resource qualified by its API group."""

    group: str
    resource: str

    def __str__(self) -> str:
        return f"{self.resource}.{self.group}" if self.group else self.resource


@dataclass(frozen=True)
class GroupVersionKind:
    """A kind qualified by API group and version."""

    group: str
    version: str
    kind: str

    def group_kind(self) -> GroupKind:
        return GroupKind(self.group, self.kind)


@dataclass(frozen=True)
class GroupVersionResource:
    """A resource qualified by API group and version."""

    group: str
    version: str
    resource: str

    def group_resource(self) -> GroupResource:
        return GroupResource(self.group, self.resource)


@dataclass(frozen=True)
class GroupVersion:
    """An API group together with one of its versions."""

    group: str
    version: str

    def with_kind(self, kind: str) -> GroupVersionKind:
        return GroupVersionKind(self.group, self.version, kind)

    def with_resource(self, resource: str) -> GroupVersionResource:
        return GroupVersionResource(self.group, self.version, resource)

    def __str__(self) -> str:
        return f"{self.group}/{self.version}" if self.group else self.version


CORE_GROUP = ""
CORE_GROUP_VERSION = GroupVersion(CORE_GROUP, "v1")
CONFIG_GROUP_VERSION = GroupVersion("config.kiosk.sh", "v1alpha1")


@dataclass
class ObjectMeta:
    """Metadata every stored object carries."""

    name: str = ""
    namespace: str = ""
    generate_name: str = ""
    uid: str = ""
    resource_version: str = ""
    generation: int = 0
    labels: dict[str, str] = field(default_factory=dict)
    annotations: dict[str, str] = field(default_factory=dict)
    finalizers: list[str] = field(default_factory=list)


@dataclass
class Namespace:
    """A cluster namespace."""

    gvk: ClassVar[GroupVersionKind] = CORE_GROUP_VERSION.with_kind("Namespace")

    metadata: ObjectMeta = field(default_factory=ObjectMeta)
    finalizers: list[str] = field(default_factory=list)
    phase: str = ""