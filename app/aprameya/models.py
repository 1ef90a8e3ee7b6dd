from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from app.aprameya.constants import Role


class Base(DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"
    __table_args__ = (Index("idx_users_role", "role"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default=Role.ASPIRANT.value)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    # Profile (member card on the team page)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    profile_image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    department: Mapped[str | None] = mapped_column(String(128), nullable=True)
    year: Mapped[str | None] = mapped_column(String(16), nullable=True)
    role_title: Mapped[str | None] = mapped_column(String(128), nullable=True)
    tags: Mapped[str | None] = mapped_column(String(255), nullable=True)  # comma separated
    linkedin: Mapped[str | None] = mapped_column(String(512), nullable=True)
    github: Mapped[str | None] = mapped_column(String(512), nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        """Public representation. Never includes the password hash."""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "display_name": self.display_name,
            "profile_image": self.profile_image,
            "department": self.department,
            "year": self.year,
            "role_title": self.role_title,
            "tags": self.tags,
            "linkedin": self.linkedin,
            "github": self.github,
            "bio": self.bio,
        }


class UserSession(Base):
    """Server-side login session, used when SESSION_BACKEND=database."""

    __tablename__ = "user_sessions"
    __table_args__ = (Index("idx_user_sessions_expires_at", "expires_at"),)

    token: Mapped[str] = mapped_column(String(128), primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)


class AuditEvent(Base):
    """
    Append-only audit trail event.
    Keep this table intentionally generic; module-specific tables can refer to it by id if needed.
    """

    __tablename__ = "audit_events"
    __table_args__ = (
        UniqueConstraint("request_id", "id", name="uq_audit_request_id_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)

    actor_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_username: Mapped[str | None] = mapped_column(String(64), nullable=True)

    action: Mapped[str] = mapped_column(String(128), nullable=False)  # e.g. "auth.login"
    entity_type: Mapped[str | None] = mapped_column(String(128), nullable=True)  # e.g. "Project"
    entity_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    metadata_json: Mapped[str | None] = mapped_column(Text, nullable=True)  # small JSON string


# Upper bound for unbounded (Text) string columns.
MAX_TEXT_LENGTH = 20000


def column_max_length(model: type, name: str) -> int:
    """Character limit of a string column; MAX_TEXT_LENGTH for Text columns."""
    length = getattr(model.__table__.c[name].type, "length", None)
    return length or MAX_TEXT_LENGTH


# Ensure module models are imported so Base.metadata includes their tables.
# (Kept at bottom to avoid circular imports.)
from app.aprameya.modules.content.models import Blog, Event, Project, ResearchItem  # noqa: E402,F401
from app.aprameya.modules.comments.models import Comment  # noqa: E402,F401
from app.aprameya.modules.messages.models import Message  # noqa: E402,F401
from app.aprameya.modules.registrations.models import EventRegistration  # noqa: E402,F401
