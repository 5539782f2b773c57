"""ACL data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class Permission(str, Enum):
    """Capability requested against an object."""

    READ = "read"
    WRITE = "write"

    @classmethod
    def _missing_(cls, value: object) -> "Permission | None":
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


class Visibility(str, Enum):
    """Who besides the owner may read an object."""

    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def _missing_(cls, value: object) -> "Visibility | None":
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


@dataclass(frozen=True, slots=True)
class AclGrant:
    """Explicit permission granted to a non-owner principal."""

    principal: str
    permission: Permission


@dataclass(frozen=True, slots=True)
class AclPolicy:
    """Owner and visibility attached to one object identifier."""

    object_id: str
    owner: str
    visibility: Visibility
    permissions: tuple[AclGrant, ...] = field(default_factory=tuple)

    def same_definition(self, owner: str, visibility: Visibility) -> bool:
        return self.owner == owner and self.visibility == visibility

    def with_visibility(self, visibility: Visibility) -> "AclPolicy":
        return replace(self, visibility=visibility)

    def with_grant(self, grant: AclGrant) -> "AclPolicy":
        if grant in self.permissions:
            return self
        return replace(self, permissions=self.permissions + (grant,))

    def allows(self, requester_id: str, permission: Permission) -> bool:
        """Pure access decision for ``requester_id``."""
        if requester_id == self.owner:
            return True
        if permission is Permission.READ and self.visibility is Visibility.PUBLIC:
            return True
        return AclGrant(requester_id, permission) in self.permissions


__all__ = ["AclGrant", "AclPolicy", "Permission", "Visibility"]
