"""Informers and the event handlers that turn object changes into subjects to refresh."""

import logging
import threading
from typing import Any, Callable, Iterable, Protocol

from kiosk.client import Client
from kiosk.config_types import Account
from kiosk.indices import INDEX_BY_CLUSTER_ROLE, INDEX_BY_ROLE
from kiosk.rbac import (
    ClusterRole,
    ClusterRoleBinding,
    Role,
    RoleBinding,
    Subject,
    convert_subject,
)

logger = logging.getLogger(__name__)

EnqueueSubject = Callable[[str], None]


class EventHandler(Protocol):
    """Receives add, update and delete notifications from an informer."""

    def on_add(self, obj: Any) -> None: ...

    def on_update(self, old_obj: Any, new_obj: Any) -> None: ...

    def on_delete(self, obj: Any) -> None: ...


class Informer:
    """Delivers object changes to the handlers registered on it."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handlers: list[EventHandler] = []
        self._synced = False

    def add_event_handler(self, handler: EventHandler) -> None:
        with self._lock:
            self._handlers.append(handler)

    def _handlers_snapshot(self) -> list[EventHandler]:
        with self._lock:
            return list(self._handlers)

    def add(self, obj: Any) -> None:
        for handler in self._handlers_snapshot():
            handler.on_add(obj)

    def update(self, old_obj: Any, new_obj: Any) -> None:
        for handler in self._handlers_snapshot():
            handler.on_update(old_obj, new_obj)

    def delete(self, obj: Any) -> None:
        for handler in self._handlers_snapshot():
            handler.on_delete(obj)

    def mark_synced(self) -> None:
        """Record that the informer has seen the initial state of its objects."""
        with self._lock:
            self._synced = True

    def has_synced(self) -> bool:
        with self._lock:
            return self._synced


def _expect(obj: Any, cls: type) -> Any:
    if not isinstance(obj, cls):
        raise TypeError("Supplied object has wrong type")
    return obj


def _enqueue_subjects(
    namespace: str, subjects: Iterable[Subject], enqueue: EnqueueSubject
) -> None:
    for subject in subjects:
        subject_id = convert_subject(namespace, subject)
        if subject_id:
            enqueue(subject_id)


def _invalidate_role_binding(binding: RoleBinding, enqueue: EnqueueSubject) -> None:
    _enqueue_subjects(binding.metadata.namespace, binding.subjects, enqueue)


def _invalidate_cluster_role_binding(
    binding: ClusterRoleBinding, enqueue: EnqueueSubject
) -> None:
    _enqueue_subjects("", binding.subjects, enqueue)


def _invalidate_account(account: Account, enqueue: EnqueueSubject) -> None:
    _enqueue_subjects("", account.spec.subjects, enqueue)


class AccountHandler:
    """Refreshes the subjects of changed accounts."""

    def __init__(self, enqueue: EnqueueSubject) -> None:
        self.enqueue = enqueue

    def on_add(self, obj: Any) -> None:
        _invalidate_account(_expect(obj, Account), self.enqueue)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        _invalidate_account(_expect(old_obj, Account), self.enqueue)
        _invalidate_account(_expect(new_obj, Account), self.enqueue)

    def on_delete(self, obj: Any) -> None:
        _invalidate_account(_expect(obj, Account), self.enqueue)


class RoleBindingHandler:
    """Refreshes the subjects of changed role bindings."""

    def __init__(self, enqueue: EnqueueSubject) -> None:
        self.enqueue = enqueue

    def on_add(self, obj: Any) -> None:
        _invalidate_role_binding(_expect(obj, RoleBinding), self.enqueue)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        _invalidate_role_binding(_expect(old_obj, RoleBinding), self.enqueue)
        _invalidate_role_binding(_expect(new_obj, RoleBinding), self.enqueue)

    def on_delete(self, obj: Any) -> None:
        _invalidate_role_binding(_expect(obj, RoleBinding), self.enqueue)


class RoleHandler:
    """Refreshes the subjects of every role binding that refers to a changed role."""

    def __init__(self, client: Client, enqueue: EnqueueSubject) -> None:
        self.client = client
        self.enqueue = enqueue

    def _invalidate(self, obj: Any) -> None:
        role = _expect(obj, Role)
        key = f"{role.metadata.namespace}/{role.metadata.name}"
        try:
            bindings = self.client.list(RoleBinding, INDEX_BY_ROLE, key)
        except Exception as err:  # noqa: BLE001 - a failed listing is only reported
            logger.error("Error listing role bindings: %s", err)
            return
        for binding in bindings:
            _invalidate_role_binding(binding, self.enqueue)

    def on_add(self, obj: Any) -> None:
        self._invalidate(obj)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        self._invalidate(new_obj)

    def on_delete(self, obj: Any) -> None:
        self._invalidate(obj)


class ClusterRoleBindingHandler:
    """Refreshes the subjects of changed cluster role bindings."""

    def __init__(self, enqueue: EnqueueSubject) -> None:
        self.enqueue = enqueue

    def on_add(self, obj: Any) -> None:
        _invalidate_cluster_role_binding(_expect(obj, ClusterRoleBinding), self.enqueue)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        _invalidate_cluster_role_binding(
            _expect(old_obj, ClusterRoleBinding), self.enqueue
        )
        _invalidate_cluster_role_binding(
            _expect(new_obj, ClusterRoleBinding), self.enqueue
        )

    def on_delete(self, obj: Any) -> None:
        _invalidate_cluster_role_binding(_expect(obj, ClusterRoleBinding), self.enqueue)


class ClusterRoleHandler:
    """Refreshes the subjects of all bindings that refer to a changed cluster role."""

    def __init__(self, client: Client, enqueue: EnqueueSubject) -> None:
        self.client = client
        self.enqueue = enqueue

    def _invalidate(self, obj: Any) -> None:
        cluster_role = _expect(obj, ClusterRole)
        name = cluster_role.metadata.name

        try:
            bindings = self.client.list(RoleBinding, INDEX_BY_CLUSTER_ROLE, name)
        except Exception as err:  # noqa: BLE001
            logger.error("Error listing role bindings: %s", err)
            return
        for binding in bindings:
            _invalidate_role_binding(binding, self.enqueue)

        try:
            cluster_bindings = self.client.list(
                ClusterRoleBinding, INDEX_BY_CLUSTER_ROLE, name
            )
        except Exception as err:  # noqa: BLE001
            logger.error("Error listing cluster role bindings: %s", err)
            return
        for cluster_binding in cluster_bindings:
            _invalidate_cluster_role_binding(cluster_binding, self.enqueue)

    def on_add(self, obj: Any) -> None:
        self._invalidate(obj)

    def on_update(self, old_obj: Any, new_obj: Any) -> None:
        self._invalidate(new_obj)

    def on_delete(self, obj: Any) -> None:
        self._invalidate(obj)