"""Per-object access control."""

from .models import AclGrant, AclPolicy, Permission, Visibility
from .policy_store import AclPolicyStore
from .repository import InMemoryPolicyRepository, PolicyRepository, SqlAlchemyPolicyRepository

__all__ = [
    "AclGrant",
    "AclPolicy",
    "AclPolicyStore",
    "InMemoryPolicyRepository",
    "Permission",
    "PolicyRepository",
    "SqlAlchemyPolicyRepository",
    "Visibility",
]
