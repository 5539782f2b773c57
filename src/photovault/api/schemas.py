"""Request and response bodies for the object routes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..acl.models import AclPolicy, Permission, Visibility
from ..storage.grants import LocalPath, SignedURL, WriteTarget


class UploadGrantResponse(BaseModel):
    object_id: str
    upload_url: str | None = None
    upload_path: str | None = None
    expires_at: datetime

    @classmethod
    def from_target(cls, target: WriteTarget) -> "UploadGrantResponse":
        if isinstance(target, SignedURL):
            return cls(object_id=target.object_id, upload_url=target.url, expires_at=target.expires_at)
        if isinstance(target, LocalPath):
            return cls(
                object_id=target.object_id,
                upload_path=str(target.path),
                expires_at=target.expires_at,
            )
        raise TypeError(f"unsupported write target: {type(target).__name__}")


class UploadReceipt(BaseModel):
    object_id: str
    size: int


class RegisterObjectRequest(BaseModel):
    object_path: str = Field(
        min_length=1,
        description="Object id, logical path or the upload URL returned by the grant.",
    )
    visibility: Visibility = Visibility.PRIVATE


class RegisteredObjectResponse(BaseModel):
    object_path: str


class VisibilityUpdateRequest(BaseModel):
    visibility: Visibility


class GrantRequest(BaseModel):
    principal: str = Field(min_length=1)
    permission: Permission


class GrantEntry(BaseModel):
    principal: str
    permission: Permission


class ObjectPolicyResponse(BaseModel):
    object_id: str
    owner: str
    visibility: Visibility
    permissions: list[GrantEntry] = Field(default_factory=list)

    @classmethod
    def from_policy(cls, policy: AclPolicy) -> "ObjectPolicyResponse":
        return cls(
            object_id=policy.object_id,
            owner=policy.owner,
            visibility=policy.visibility,
            permissions=[
                GrantEntry(principal=grant.principal, permission=grant.permission)
                for grant in policy.permissions
            ],
        )


__all__ = [
    "GrantRequest",
    "ObjectPolicyResponse",
    "RegisterObjectRequest",
    "RegisteredObjectResponse",
    "UploadGrantResponse",
    "UploadReceipt",
    "VisibilityUpdateRequest",
]
