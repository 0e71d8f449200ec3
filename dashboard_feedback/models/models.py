"""SQLAlchemy ORM Models for the dashboard feedback workflow."""

from enum import Enum as PyEnum
from uuid import UUID

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin


# =============================================================================
# ENUMS
# =============================================================================


class UserRole(str, PyEnum):
    BUSINESS = "business"
    DATA_SCIENCE = "data_science"
    ADMIN = "admin"


class IssueStatus(str, PyEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"


class NotificationType(str, PyEnum):
    """Tag stored with every persisted notification."""
    NEW_ISSUE = "new_issue"
    STATUS_CHANGE = "status_change"
    ASSIGNMENT = "assignment"
    REPLY = "reply"
    ADMIN_REQUEST = "admin_request"


class AdminRequestType(str, PyEnum):
    NEW_DASHBOARD = "new_dashboard"
    ADD_CHART = "add_chart"
    ADD_TEAM_MEMBER = "add_team_member"
    MODIFY_DASHBOARD = "modify_dashboard"
    OTHER = "other"


class AdminRequestStatus(str, PyEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    REJECTED = "rejected"


class ActivityAction(str, PyEnum):
    RESPONDED = "responded"
    RESOLVED = "resolved"


def _enum(enum_cls: type[PyEnum], name: str) -> Enum:
    return Enum(enum_cls, name=name, values_callable=lambda x: [e.value for e in x])


# =============================================================================
# DIRECTORY MODELS
# =============================================================================


class Team(Base, UUIDMixin, CreatedAtMixin):
    """Named group of data science users."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # Membership of the lead is enforced by the application, not the schema
    lead_user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", use_alter=True, ondelete="SET NULL")
    )

    # Relationships
    members: Mapped[list["User"]] = relationship(
        back_populates="team", foreign_keys="User.team_id"
    )
    lead: Mapped["User | None"] = relationship(foreign_keys=[lead_user_id], post_update=True)
    dashboards: Mapped[list["Dashboard"]] = relationship(back_populates="assigned_team")


class User(Base, UUIDMixin, TimestampMixin):
    """Application user. The role is fixed at creation."""

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255))
    role: Mapped[UserRole] = mapped_column(_enum(UserRole, "user_role"), nullable=False)
    team_id: Mapped[UUID | None] = mapped_column(ForeignKey("teams.id", ondelete="SET NULL"))

    # Relationships
    team: Mapped["Team | None"] = relationship(
        back_populates="members", foreign_keys=[team_id]
    )

    __table_args__ = (
        Index("idx_users_team", "team_id"),
        Index("idx_users_role", "role"),
    )


class Dashboard(Base, UUIDMixin, CreatedAtMixin):
    """A dashboard owned by an admin, optionally assigned to a team."""

    __tablename__ = "dashboards"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    owner_id: Mapped[UUID | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    assigned_team_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL")
    )

    # Relationships
    owner: Mapped["User | None"] = relationship(foreign_keys=[owner_id])
    assigned_team: Mapped["Team | None"] = relationship(back_populates="dashboards")
    charts: Mapped[list["Chart"]] = relationship(
        back_populates="dashboard", cascade="all, delete-orphan"
    )


class Chart(Base, UUIDMixin, CreatedAtMixin):
    """A named visual inside a dashboard."""

    __tablename__ = "charts"

    dashboard_id: Mapped[UUID] = mapped_column(
        ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    dashboard: Mapped["Dashboard"] = relationship(back_populates="charts")


# =============================================================================
# ISSUE MODELS (Core)
# =============================================================================


class Issue(Base, UUIDMixin, TimestampMixin):
    """A feedback thread raised by a business user against a dashboard."""

    __tablename__ = "issues"

    dashboard_id: Mapped[UUID] = mapped_column(
        ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False
    )
    chart_id: Mapped[UUID | None] = mapped_column(ForeignKey("charts.id", ondelete="SET NULL"))
    submitted_by_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    subject: Mapped[str | None] = mapped_column(String(500))
    description: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_url: Mapped[str | None] = mapped_column(String(1000))
    status: Mapped[IssueStatus] = mapped_column(
        _enum(IssueStatus, "issue_status"),
        default=IssueStatus.PENDING,
        nullable=False,
    )
    priority: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    assigned_team_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL")
    )
    assigned_user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    # Relationships
    dashboard: Mapped["Dashboard"] = relationship()
    chart: Mapped["Chart | None"] = relationship()
    submitter: Mapped["User"] = relationship(foreign_keys=[submitted_by_user_id])
    assigned_team: Mapped["Team | None"] = relationship(foreign_keys=[assigned_team_id])
    assigned_user: Mapped["User | None"] = relationship(foreign_keys=[assigned_user_id])

    __table_args__ = (
        CheckConstraint("priority >= 1", name="priority_positive"),
        Index("idx_issues_dashboard", "dashboard_id"),
        Index("idx_issues_status", "status"),
        Index("idx_issues_assigned_team", "assigned_team_id"),
        Index("idx_issues_submitted_by", "submitted_by_user_id"),
        Index("idx_issues_updated_at", "updated_at"),
    )


class ThreadSecond(Base, UUIDMixin, CreatedAtMixin):
    """A business user's endorsement of someone else's thread."""

    __tablename__ = "thread_seconds"

    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("issue_id", "user_id"),
        Index("idx_thread_seconds_issue", "issue_id"),
        Index("idx_thread_seconds_user", "user_id"),
    )


class Comment(Base, UUIDMixin, TimestampMixin):
    """A reply posted on a thread."""

    __tablename__ = "comments"

    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    comment_text: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_url: Mapped[str | None] = mapped_column(String(1000))

    author: Mapped["User"] = relationship()

    __table_args__ = (
        Index("idx_comments_issue", "issue_id", "created_at"),
    )


class LeaderboardActivity(Base, UUIDMixin, CreatedAtMixin):
    """Contribution record consumed by the leaderboard report."""

    __tablename__ = "leaderboard_activity"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    issue_id: Mapped[UUID] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[ActivityAction] = mapped_column(
        _enum(ActivityAction, "activity_action"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("user_id", "issue_id", "action"),
    )


# =============================================================================
# NOTIFICATION MODEL
# =============================================================================


class Notification(Base, UUIDMixin, CreatedAtMixin):
    """Durable notification record. Only the recipient toggles is_read."""

    __tablename__ = "notifications"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    issue_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("issues.id", ondelete="CASCADE")
    )
    type: Mapped[NotificationType] = mapped_column(
        _enum(NotificationType, "notification_type"), nullable=False
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    issue: Mapped["Issue | None"] = relationship()

    __table_args__ = (
        Index("idx_notifications_user", "user_id", "created_at"),
        Index("idx_notifications_unread", "user_id", "is_read"),
    )


# =============================================================================
# ADMIN REQUEST MODEL
# =============================================================================


class AdminRequest(Base, UUIDMixin, TimestampMixin):
    """Escalation raised by a data science user for the admins."""

    __tablename__ = "admin_requests"

    submitted_by_user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    request_type: Mapped[AdminRequestType] = mapped_column(
        _enum(AdminRequestType, "admin_request_type"), nullable=False
    )
    dashboard_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("dashboards.id", ondelete="SET NULL")
    )
    team_id: Mapped[UUID | None] = mapped_column(ForeignKey("teams.id", ondelete="SET NULL"))
    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[AdminRequestStatus] = mapped_column(
        _enum(AdminRequestStatus, "admin_request_status"),
        default=AdminRequestStatus.PENDING,
        nullable=False,
    )
    admin_response: Mapped[str | None] = mapped_column(Text)
    resolved_by_admin_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL")
    )

    # Relationships
    submitter: Mapped["User"] = relationship(foreign_keys=[submitted_by_user_id])
    dashboard: Mapped["Dashboard | None"] = relationship()
    team: Mapped["Team | None"] = relationship()
    resolved_by: Mapped["User | None"] = relationship(foreign_keys=[resolved_by_admin_id])

    __table_args__ = (
        Index("idx_admin_requests_submitter", "submitted_by_user_id"),
        Index("idx_admin_requests_status", "status"),
    )
