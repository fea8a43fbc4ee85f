# kiosk

Building blocks for multi-tenant access control in a cluster-style API.
Users are grouped into **accounts**, and accounts own **spaces**
(namespaces). The package has no dependencies outside the standard library.

## Modules

- **`kiosk.meta`**: `ObjectMeta`, `Namespace` and the group/version helpers
  `GroupVersion`, `GroupKind`, `GroupResource`, `GroupVersionKind` and
  `GroupVersionResource`.
- **`kiosk.rbac`**: RBAC objects (`Subject`, `PolicyRule`, `RoleRef`, `Role`,
  `ClusterRole`, `RoleBinding`, `ClusterRoleBinding`), request `Attributes`,
  and rule matching (`rules_allow`, `rule_allows`, `verb_matches`,
  `api_group_matches`, `resource_matches`, `resource_name_matches`,
  `non_resource_url_matches`). `convert_subject(namespace, subject)` turns a
  subject into an id string such as `user:foo`, `group:bar` or
  `user:system:serviceaccount:ns:name`. It returns `""` for unknown kinds and
  for service accounts without a namespace.
- **`kiosk.config_types`**: `Account`, `AccountQuota`, `Template`,
  `TemplateInstance` and the types they are built from.
- **`kiosk.tenancy_types`**: the tenancy `Account` and `Space` types, the
  `kiosk.sh/account` and `kiosk.sh/initializing` annotation names, and
  `kind()` / `resource()` for group-qualified names.
- **`kiosk.client`**: the abstract `Client` (`get`, `list`) and
  `InMemoryClient`, a thread-safe in-memory store with field indices
  (`create`, `delete`, `get`, `list`, `index_field`, `set_index_value`).
  A lookup of a missing object raises `NotFoundError`.
- **`kiosk.indices`**: `register_indices(indexer)` registers the field
  indices (subjects, account, role, cluster role) on anything with an
  `index_field` method.
- **`kiosk.accessor`**: `RbacAccessor` works out which namespaces and
  accounts a subject may use with a given verb. `"*"` means all.
- **`kiosk.events`**: `Informer` passes add, update and delete events to its
  handlers. `AccountHandler`, `RoleBindingHandler`, `RoleHandler`,
  `ClusterRoleBindingHandler` and `ClusterRoleHandler` queue the subjects
  that an event affects. A handler raises `TypeError` when it gets an object
  of the wrong type.
- **`kiosk.cache`**: `AuthCache` keeps the `Allowed` namespaces and accounts
  of each subject. `get_accounts` and `get_namespaces` fetch objects by name.
  `["*"]` fetches every object.
- **`kiosk.validation`**: `validate_name`, `validate_subjects`,
  `validate_account`, `validate_account_update`, `validate_space` and
  `validate_space_update`. Each returns a list of `FieldError`. An empty
  list means the object is valid.

## Installation

```
pip install .
```

## Checking a rule

```python
from kiosk.rbac import Attributes, PolicyRule, rules_allow

rule = PolicyRule(verbs=["get", "list"], api_groups=[""], resources=["namespaces"])
request = Attributes(
    verb="get",
    api_group="",
    resource="namespaces",
    name="team-a",
    resource_request=True,
)
assert rules_allow(request, [rule])
```

## Asking what a subject may reach

```python
from kiosk.accessor import RbacAccessor
from kiosk.client import InMemoryClient
from kiosk.indices import register_indices
from kiosk.meta import ObjectMeta
from kiosk.rbac import ClusterRole, ClusterRoleBinding, PolicyRule, RoleRef, Subject

client = InMemoryClient()
register_indices(client)

client.create(ClusterRole(
    metadata=ObjectMeta(name="ns-admin"),
    rules=[PolicyRule(verbs=["*"], api_groups=[""], resources=["namespaces"])],
))
client.create(ClusterRoleBinding(
    metadata=ObjectMeta(name="ns-admin"),
    subjects=[Subject(kind="User", name="foo")],
    role_ref=RoleRef(api_group="rbac.authorization.k8s.io", kind="ClusterRole", name="ns-admin"),
))

accessor = RbacAccessor(client)
print(accessor.retrieve_allowed_namespaces("user:foo", "create"))  # ['*']
```

## The authorization cache

`AuthCache(client)` uses an `RbacAccessor` over the client unless you pass
`accessor=`. It creates five informers (account, role, role binding, cluster
role, cluster role binding) unless you pass your own, and registers the
event handlers on them. Events on those informers queue the affected
subjects. `process_cache_change(timeout)` works out the permissions of one
queued subject again. `run(stop_event)` does this in a loop until the
`threading.Event` is set. It first waits, for up to a minute, until every
informer has been marked synced with `mark_synced()`.

```python
from kiosk.cache import AuthCache, UserInfo

cache = AuthCache(client)
cache.enqueue_subject("user:foo")
cache.process_cache_change(timeout=1)
print(cache.get_namespaces_for_user(UserInfo("foo"), "get"))  # ['*']
```

A user's lists combine the entries for the user and for each of its groups.
A verb other than `get`, `list`, `watch`, `create`, `update` or `delete`
raises `ValueError`.

## Validation

```python
from kiosk.meta import ObjectMeta
from kiosk.tenancy_types import Space
from kiosk.validation import validate_space

errors = validate_space(Space(metadata=ObjectMeta(name="testABC")))
assert errors  # upper-case letters are not allowed in names
```

## What this package does not do

It is a library only. It has no command, it serves no API, and it does not
connect to a cluster. Objects live in `InMemoryClient` or in your own
`Client` implementation, and events reach the cache only through the
`Informer` methods you call.

## Running the tests

```
pip install ".[test]"
pytest
```