"""Database models and bootstrap helpers."""

from .db_init import create_session_factory, init_db
from .db_models import Base, ObjectAclGrantModel, ObjectAclPolicyModel, UploadGrantModel

__all__ = [
    "Base",
    "ObjectAclGrantModel",
    "ObjectAclPolicyModel",
    "UploadGrantModel",
    "create_session_factory",
    "init_db",
]
