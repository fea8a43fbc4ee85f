"""Validation of tenancy accounts and spaces."""

import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping

from kiosk.meta import ObjectMeta
from kiosk.rbac import (
    GROUP_KIND,
    GROUP_NAME,
    SERVICE_ACCOUNT_KIND,
    USER_KIND,
    Subject,
)
from kiosk.tenancy_types import Account, Space

REQUIRED = "Required value"
INVALID = "Invalid value"
FORBIDDEN = "Forbidden"
NOT_SUPPORTED = "Unsupported value"
TOO_LONG = "Too long"

_DNS1123_LABEL_MAX = 63
_DNS1123_SUBDOMAIN_MAX = 253
_QUALIFIED_NAME_MAX = 63
_LABEL_VALUE_MAX = 63
_TOTAL_ANNOTATION_SIZE_MAX = 256 * 1024

_DNS1123_LABEL = r"[a-z0-9]([-a-z0-9]*[a-z0-9])?"
_DNS1123_LABEL_RE = re.compile(rf"^{_DNS1123_LABEL}$")
_DNS1123_SUBDOMAIN_RE = re.compile(rf"^{_DNS1123_LABEL}(\.{_DNS1123_LABEL})*$")
_QUALIFIED_NAME_RE = re.compile(r"^([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9]$")
_LABEL_VALUE_RE = re.compile(r"^(([A-Za-z0-9][-A-Za-z0-9_.]*)?[A-Za-z0-9])?$")

NameValidator = Callable[[str, bool], list[str]]


@dataclass(frozen=True)
class FieldError:
    """A validation failure of a single field."""

    type: str
    field: str
    bad_value: Any = None
    detail: str = ""

    def __str__(self) -> str:
        text = f"{self.field}: {self.type}"
        if self.type in (INVALID, NOT_SUPPORTED):
            text += f": {self.bad_value!r}"
        if self.detail:
            text += f": {self.detail}"
        return text


def _key(path: str, key: str) -> str:
    return f"{path}[{key}]"


def _path_segment_name(name: str, prefix: bool) -> list[str]:
    if not prefix and name in (".", ".."):
        return [f"may not be '{name}'"]
    return [f"may not contain '{c}'" for c in ("/", "%") if c in name]


def _dns1123_label(value: str) -> list[str]:
    errors = []
    if len(value) > _DNS1123_LABEL_MAX:
        errors.append(f"must be no more than {_DNS1123_LABEL_MAX} characters")
    if not _DNS1123_LABEL_RE.match(value):
        errors.append(
            "a DNS-1123 label must consist of lower case alphanumeric characters "
            "or '-', and must start and end with an alphanumeric character"
        )
    return errors


def _dns1123_subdomain(value: str) -> list[str]:
    errors = []
    if len(value) > _DNS1123_SUBDOMAIN_MAX:
        errors.append(f"must be no more than {_DNS1123_SUBDOMAIN_MAX} characters")
    if not _DNS1123_SUBDOMAIN_RE.match(value):
        errors.append(
            "a DNS-1123 subdomain must consist of lower case alphanumeric "
            "characters, '-' or '.', and must start and end with an alphanumeric "
            "character"
        )
    return errors


def _qualified_name(value: str) -> list[str]:
    parts = value.split("/")
    if len(parts) == 1:
        name = parts[0]
        errors: list[str] = []
    elif len(parts) == 2:
        prefix, name = parts
        if not prefix:
            errors = ["prefix part must be non-empty"]
        else:
            errors = [f"prefix part {e}" for e in _dns1123_subdomain(prefix)]
    else:
        return ["a qualified name must consist of an optional prefix and a name"]

    if not name:
        errors.append("name part must be non-empty")
    elif len(name) > _QUALIFIED_NAME_MAX:
        errors.append(f"name part must be no more than {_QUALIFIED_NAME_MAX} characters")
    if name and not _QUALIFIED_NAME_RE.match(name):
        errors.append(
            "name part must consist of alphanumeric characters, '-', '_' or '.', "
            "and must start and end with an alphanumeric character"
        )
    return errors


def _label_value(value: str) -> list[str]:
    errors = []
    if len(value) > _LABEL_VALUE_MAX:
        errors.append(f"must be no more than {_LABEL_VALUE_MAX} characters")
    if not _LABEL_VALUE_RE.match(value):
        errors.append(
            "a valid label must be an empty string or consist of alphanumeric "
            "characters, '-', '_' or '.', and must start and end with an "
            "alphanumeric character"
        )
    return errors


def _validate_labels(labels: Mapping[str, str], path: str) -> list[FieldError]:
    errors = []
    for key, value in labels.items():
        errors += [FieldError(INVALID, path, key, d) for d in _qualified_name(key)]
        errors += [
            FieldError(INVALID, _key(path, key), value, d) for d in _label_value(value)
        ]
    return errors


def _validate_annotations(annotations: Mapping[str, str], path: str) -> list[FieldError]:
    errors = []
    total = 0
    for key, value in annotations.items():
        errors += [
            FieldError(INVALID, path, key, d) for d in _qualified_name(key.lower())
        ]
        total += len(key) + len(value)
    if total > _TOTAL_ANNOTATION_SIZE_MAX:
        errors.append(
            FieldError(
                TOO_LONG, path, "", f"must have at most {_TOTAL_ANNOTATION_SIZE_MAX} bytes"
            )
        )
    return errors


def _validate_object_meta(
    meta: ObjectMeta, namespaced: bool, validate: NameValidator, path: str
) -> list[FieldError]:
    errors: list[FieldError] = []
    if meta.generate_name:
        errors += [
            FieldError(INVALID, f"{path}.generateName", meta.generate_name, d)
            for d in validate(meta.generate_name, True)
        ]
    if not meta.name:
        if not meta.generate_name:
            errors.append(
                FieldError(REQUIRED, f"{path}.name", None, "name or generateName is required")
            )
    else:
        errors += [
            FieldError(INVALID, f"{path}.name", meta.name, d)
            for d in validate(meta.name, False)
        ]

    if namespaced:
        if not meta.namespace:
            errors.append(FieldError(REQUIRED, f"{path}.namespace"))
        else:
            errors += [
                FieldError(INVALID, f"{path}.namespace", meta.namespace, d)
                for d in _dns1123_label(meta.namespace)
            ]
    elif meta.namespace:
        errors.append(
            FieldError(FORBIDDEN, f"{path}.namespace", None, "not allowed on this type")
        )

    if meta.generation < 0:
        errors.append(
            FieldError(INVALID, f"{path}.generation", meta.generation, "must be greater than or equal to 0")
        )
    errors += _validate_labels(meta.labels, f"{path}.labels")
    errors += _validate_annotations(meta.annotations, f"{path}.annotations")
    return errors


def _validate_object_meta_update(
    new: ObjectMeta, old: ObjectMeta, path: str
) -> list[FieldError]:
    errors = []
    for attr, name in (("name", "name"), ("namespace", "namespace"), ("uid", "uid")):
        new_value, old_value = getattr(new, attr), getattr(old, attr)
        if new_value != old_value:
            errors.append(
                FieldError(INVALID, f"{path}.{name}", new_value, "field is immutable")
            )
    if new.generation < 0:
        errors.append(
            FieldError(INVALID, f"{path}.generation", new.generation, "must be greater than or equal to 0")
        )
    return errors


def validate_name(name: str, prefix: bool) -> list[str]:
    """Return the reasons name is not a valid account or space name."""
    reasons = _path_segment_name(name, prefix)
    if reasons:
        return reasons
    if len(name) < 2:
        return ["must be at least 2 characters long"]
    return _dns1123_label(name)


def _validate_subject(subject: Subject, namespaced: bool, path: str) -> list[FieldError]:
    errors = []
    if not subject.name:
        errors.append(FieldError(REQUIRED, f"{path}.name"))

    if subject.kind == SERVICE_ACCOUNT_KIND:
        if subject.name:
            errors += [
                FieldError(INVALID, f"{path}.name", subject.name, d)
                for d in _dns1123_subdomain(subject.name)
            ]
        if subject.api_group:
            errors.append(
                FieldError(NOT_SUPPORTED, f"{path}.apiGroup", subject.api_group, 'supported values: ""')
            )
        if not namespaced and not subject.namespace:
            errors.append(FieldError(REQUIRED, f"{path}.namespace"))
    elif subject.kind in (USER_KIND, GROUP_KIND):
        if subject.api_group != GROUP_NAME:
            errors.append(
                FieldError(
                    NOT_SUPPORTED,
                    f"{path}.apiGroup",
                    subject.api_group,
                    f'supported values: "{GROUP_NAME}"',
                )
            )
    else:
        errors.append(
            FieldError(
                NOT_SUPPORTED,
                f"{path}.kind",
                subject.kind,
                f'supported values: "{SERVICE_ACCOUNT_KIND}", "{USER_KIND}", "{GROUP_KIND}"',
            )
        )
    return errors


def validate_subjects(subjects: Iterable[Subject]) -> list[FieldError]:
    """Validate the subjects of an account."""
    errors = []
    for index, subject in enumerate(subjects):
        errors += _validate_subject(subject, False, f"spec.subjects[{index}]")
    return errors


def validate_account(account: Account) -> list[FieldError]:
    """Return the errors in the required fields of an account."""
    errors = _validate_object_meta(account.metadata, False, validate_name, "metadata")
    errors += validate_subjects(account.spec.subjects)
    return errors


def validate_account_update(new_account: Account, old_account: Account) -> list[FieldError]:
    """Return the errors that prevent new_account from replacing old_account."""
    errors = _validate_object_meta_update(
        new_account.metadata, old_account.metadata, "metadata"
    )
    errors += validate_account(new_account)
    if new_account.status != old_account.status:
        errors.append(
            FieldError(INVALID, "status", old_account.status, "field is immutable")
        )
    errors += validate_subjects(new_account.spec.subjects)
    return errors


def validate_space(space: Space) -> list[FieldError]:
    """Return the errors in the required fields of a space."""
    return _validate_object_meta(space.metadata, False, validate_name, "metadata")


def _immutable_map_errors(
    new: Mapping[str, str], old: Mapping[str, str], path: str, detail: str
) -> list[FieldError]:
    errors = [
        FieldError(INVALID, _key(path, name), value, detail)
        for name, value in new.items()
        if old.get(name, "") != value
    ]
    errors += [
        FieldError(INVALID, _key(path, name), value, detail)
        for name, value in old.items()
        if name not in new
    ]
    return errors


def validate_space_update(new_space: Space, old_space: Space) -> list[FieldError]:
    """Return the errors that prevent new_space from replacing old_space."""
    errors = _validate_object_meta_update(new_space.metadata, old_space.metadata, "metadata")
    errors += validate_space(new_space)

    if new_space.spec != old_space.spec:
        errors.append(FieldError(INVALID, "spec", old_space.spec, "field is immutable"))
    if new_space.status != old_space.status:
        errors.append(FieldError(INVALID, "status", old_space.status, "field is immutable"))

    detail = "field is immutable, try updating the namespace"
    errors += _immutable_map_errors(
        new_space.metadata.annotations,
        old_space.metadata.annotations,
        "metadata.annotations",
        detail,
    )
    errors += _immutable_map_errors(
        new_space.metadata.labels, old_space.metadata.labels, "metadata.labels", detail
    )
    return errors