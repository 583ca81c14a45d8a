"""SQLAlchemy ORM models for service requests and the records they reference."""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.infrastructure.database.base import Base


def _uuid() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class DepartmentModel(Base):
    """ORM model for the 'departments' table."""

    __tablename__ = "departments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    def __repr__(self) -> str:
        return f"<DepartmentModel(id={self.id}, slug='{self.slug}')>"


class UserModel(Base):
    """ORM model for the 'users' table."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="CITIZEN")
    department_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("departments.id"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<UserModel(id={self.id}, role='{self.role}')>"


class ServiceRequestModel(Base):
    """ORM model for the 'service_requests' table."""

    __tablename__ = "service_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[str | None] = mapped_column(String(16), nullable=True, default="MEDIUM")
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="SUBMITTED")
    date_of_request: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Location
    street_address: Mapped[str | None] = mapped_column(String(255), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location_text: Mapped[str | None] = mapped_column(String(512), nullable=True)
    landmark: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Contact
    contact_method: Mapped[str | None] = mapped_column(String(32), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    alternate_phone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    best_time_to_contact: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Issue details
    issue_type: Mapped[str | None] = mapped_column(String(128), nullable=True)
    severity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_emergency: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_permits: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    affected_services: Mapped[str | None] = mapped_column(Text, nullable=True)    # JSON text
    estimated_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    additional_contacts: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON text
    satisfaction_rating: Mapped[int | None] = mapped_column(Integer, nullable=True)
    form_comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    agrees_to_terms: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    wants_updates: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    preferred_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    preferred_time: Mapped[str | None] = mapped_column(String(32), nullable=True)

    # Ownership & workflow
    created_by: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    assigned_to: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=True
    )
    department_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("departments.id"), nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    sla_due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    closed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reopen_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, onupdate=_now, nullable=False
    )

    creator: Mapped["UserModel"] = relationship(foreign_keys=[created_by], lazy="raise")
    assignee: Mapped["UserModel | None"] = relationship(foreign_keys=[assigned_to], lazy="raise")
    department: Mapped["DepartmentModel | None"] = relationship(lazy="raise")
    comments: Mapped[list["CommentModel"]] = relationship(lazy="raise")
    attachments: Mapped[list["AttachmentModel"]] = relationship(lazy="raise")
    upvotes: Mapped[list["UpvoteModel"]] = relationship(lazy="raise")

    __table_args__ = (
        Index("ix_service_requests_status", "status"),
        Index("ix_service_requests_priority", "priority"),
        Index("ix_service_requests_category", "category"),
        Index("ix_service_requests_created_by", "created_by"),
        Index("ix_service_requests_assigned_to", "assigned_to"),
        Index("ix_service_requests_department", "department_id"),
        Index("ix_service_requests_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ServiceRequestModel(id={self.id}, code='{self.code}', status='{self.status}')>"


class CommentModel(Base):
    """ORM model for the 'comments' table."""

    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    visibility: Mapped[str] = mapped_column(String(16), nullable=False, default="PUBLIC")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )


class AttachmentModel(Base):
    """ORM model for the 'attachments' table."""

    __tablename__ = "attachments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_by_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime: Mapped[str] = mapped_column(String(128), nullable=False)
    size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )


class UpvoteModel(Base):
    """ORM model for the 'upvotes' table."""

    __tablename__ = "upvotes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False)
    request_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("service_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_now, nullable=False
    )

    __table_args__ = (
        Index("uq_upvotes_user_request", "user_id", "request_id", unique=True),
    )


class FeatureFlagModel(Base):
    """ORM model for the 'feature_flags' table. ``value`` is JSON text."""

    __tablename__ = "feature_flags"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False, default="false")
