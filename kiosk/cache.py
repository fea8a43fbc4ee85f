"""A cache of the namespaces and accounts each user and group may access."""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field

from kiosk.accessor import Accessor, RbacAccessor
from kiosk.client import Client, NotFoundError
from kiosk.config_types import Account
from kiosk.events import (
    AccountHandler,
    ClusterRoleBindingHandler,
    ClusterRoleHandler,
    Informer,
    RoleBindingHandler,
    RoleHandler,
)
from kiosk.indices import register_indices
from kiosk.meta import Namespace
from kiosk.rbac import GROUP_PREFIX, RESOURCE_ALL, USER_PREFIX

logger = logging.getLogger(__name__)

_SYNC_POLL_INTERVAL = 0.1
_SYNC_TIMEOUT = 60.0
_RUN_POLL_INTERVAL = 0.1
_VIEW_VERBS = ("get", "list", "watch")


@dataclass(frozen=True)
class UserInfo:
    """An authenticated user and the groups it belongs to."""

    name: str
    groups: tuple[str, ...] | list[str] = ()


@dataclass
class Allowed:
    """The names a subject may view, create, update and delete."""

    view: list[str] = field(default_factory=list)
    create: list[str] = field(default_factory=list)
    update: list[str] = field(default_factory=list)
    delete: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.view or self.create or self.update or self.delete)

    def for_verb(self, verb: str) -> list[str]:
        if verb in _VIEW_VERBS:
            return self.view
        if verb == "create":
            return self.create
        if verb == "update":
            return self.update
        if verb == "delete":
            return self.delete
        raise ValueError(
            f"Verb is unrecognized: {verb}, must be one of: "
            "list,watch,get,create,update,delete"
        )


def _fetch(client: Client, kind: type, names: list[str]) -> list:
    if not names:
        return []
    if names[0] == RESOURCE_ALL:
        return client.list(kind)
    found = []
    for name in names:
        try:
            found.append(client.get(kind, name))
        except NotFoundError:
            continue
    return found


def get_accounts(client: Client, accounts: list[str]) -> list[Account]:
    """Return the named accounts that exist, or all of them for ["*"]."""
    return _fetch(client, Account, accounts)


def get_namespaces(client: Client, namespaces: list[str]) -> list[Namespace]:
    """Return the named namespaces that exist, or all of them for ["*"]."""
    return _fetch(client, Namespace, namespaces)


class _SubjectQueue:
    """A FIFO queue of subjects that holds each pending subject only once."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._items: deque[str] = deque()
        self._pending: set[str] = set()

    def add(self, subject: str) -> None:
        with self._cond:
            if subject in self._pending:
                return
            self._pending.add(subject)
            self._items.append(subject)
            self._cond.notify()

    def get(self, timeout: float | None) -> str | None:
        with self._cond:
            if not self._cond.wait_for(lambda: bool(self._items), timeout):
                return None
            subject = self._items.popleft()
            self._pending.discard(subject)
            return subject

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)


class AuthCache:
    """Keeps per-subject access lists current as RBAC objects and accounts change."""

    def __init__(
        self,
        client: Client,
        *,
        accessor: Accessor | None = None,
        indexer=None,
        account_informer: Informer | None = None,
        role_informer: Informer | None = None,
        role_binding_informer: Informer | None = None,
        cluster_role_informer: Informer | None = None,
        cluster_role_binding_informer: Informer | None = None,
    ) -> None:
        self.client = client
        self.accessor = accessor if accessor is not None else RbacAccessor(client)
        self.account_informer = account_informer or Informer()
        self.role_informer = role_informer or Informer()
        self.role_binding_informer = role_binding_informer or Informer()
        self.cluster_role_informer = cluster_role_informer or Informer()
        self.cluster_role_binding_informer = cluster_role_binding_informer or Informer()

        self._lock = threading.RLock()
        self._namespace_store: dict[str, Allowed] = {}
        self._account_store: dict[str, Allowed] = {}
        self._queue = _SubjectQueue()

        self._register_event_handlers()
        if indexer is not None:
            register_indices(indexer)

    def _informers(self) -> list[Informer]:
        return [
            self.account_informer,
            self.role_informer,
            self.role_binding_informer,
            self.cluster_role_informer,
            self.cluster_role_binding_informer,
        ]

    def _register_event_handlers(self) -> None:
        enqueue = self.enqueue_subject
        self.account_informer.add_event_handler(AccountHandler(enqueue))
        self.role_binding_informer.add_event_handler(RoleBindingHandler(enqueue))
        self.role_informer.add_event_handler(RoleHandler(self.client, enqueue))
        self.cluster_role_binding_informer.add_event_handler(
            ClusterRoleBindingHandler(enqueue)
        )
        self.cluster_role_informer.add_event_handler(
            ClusterRoleHandler(self.client, enqueue)
        )

    def enqueue_subject(self, subject: str) -> None:
        """Schedule the access lists of a subject for recomputation."""
        self._queue.add(subject)

    def _compute(self, retrieve, subject: str) -> Allowed:
        return Allowed(
            view=retrieve(subject, "get"),
            create=retrieve(subject, "create"),
            update=retrieve(subject, "update"),
            delete=retrieve(subject, "delete"),
        )

    @staticmethod
    def _store(store: dict[str, Allowed], subject: str, allowed: Allowed) -> None:
        # Subjects that may access nothing are dropped from the store.
        if allowed.is_empty():
            store.pop(subject, None)
        else:
            store[subject] = allowed

    def process_cache_change(self, timeout: float | None = None) -> bool:
        """Refresh one queued subject; return False if none arrived within timeout."""
        subject = self._queue.get(timeout)
        if subject is None:
            return False

        with self._lock:
            try:
                namespaces = self._compute(
                    self.accessor.retrieve_allowed_namespaces, subject
                )
            except Exception:  # noqa: BLE001 - the next change retries
                logger.exception("invalidate subject %s namespace cache", subject)
                return True
            self._store(self._namespace_store, subject, namespaces)

            try:
                accounts = self._compute(self.accessor.retrieve_allowed_accounts, subject)
            except Exception:  # noqa: BLE001
                logger.exception("invalidate subject %s account cache", subject)
                return True
            self._store(self._account_store, subject, accounts)
        return True

    def _wait_for_cache_sync(self, stop_event: threading.Event) -> bool:
        deadline = time.monotonic() + _SYNC_TIMEOUT
        while True:
            if all(informer.has_synced() for informer in self._informers()):
                return True
            if stop_event.is_set() or time.monotonic() >= deadline:
                return False
            stop_event.wait(_SYNC_POLL_INTERVAL)

    def run(self, stop_event: threading.Event) -> None:
        """Process queued subjects until stop_event is set."""
        if not self._wait_for_cache_sync(stop_event):
            logger.error("run auth cache: waiting for cache sync failed")
            return
        while not stop_event.is_set():
            self.process_cache_change(timeout=_RUN_POLL_INTERVAL)

    def _allowed_for(
        self, user: UserInfo, verb: str, store: dict[str, Allowed]
    ) -> list[str]:
        subjects = [USER_PREFIX + user.name, *(GROUP_PREFIX + g for g in user.groups)]
        names: set[str] = set()
        with self._lock:
            for subject in subjects:
                allowed = store.get(subject) or Allowed()
                names.update(allowed.for_verb(verb))
                if RESOURCE_ALL in names:
                    return [RESOURCE_ALL]
        names.discard("")
        return sorted(names)

    def get_accounts_for_user(self, user: UserInfo, verb: str) -> list[str]:
        """Return the accounts the user may use with verb; ["*"] means all."""
        return self._allowed_for(user, verb, self._account_store)

    def get_namespaces_for_user(self, user: UserInfo, verb: str) -> list[str]:
        """Return the namespaces the user may use with verb; ["*"] means all."""
        return self._allowed_for(user, verb, self._namespace_store)