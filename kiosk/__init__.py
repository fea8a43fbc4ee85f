"""Multi-tenant access control: RBAC matching, tenancy types, an in-memory client, validation and an authorization cache."""

__version__ = "0.1.0"

__all__ = [
    "meta",
    "rbac",
    "config_types",
    "tenancy_types",
    "client",
    "indices",
    "accessor",
    "events",
    "cache",
    "validation",
]