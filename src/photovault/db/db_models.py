"""SQLAlchemy ORM models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base declarative class."""


class ObjectAclPolicyModel(Base):
    __tablename__ = "object_acl_policy"

    object_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    owner: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False)  # public|private
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    grants: Mapped[list["ObjectAclGrantModel"]] = relationship(
        back_populates="policy",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ObjectAclGrantModel(Base):
    __tablename__ = "object_acl_grant"
    __table_args__ = (UniqueConstraint("object_id", "principal", "permission"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    object_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("object_acl_policy.object_id", ondelete="CASCADE"), nullable=False
    )
    principal: Mapped[str] = mapped_column(String(128), nullable=False)
    permission: Mapped[str] = mapped_column(String(16), nullable=False)  # read|write

    policy: Mapped[ObjectAclPolicyModel] = relationship(back_populates="grants")


class UploadGrantModel(Base):
    __tablename__ = "upload_grant"

    object_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    issued_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    registered_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
