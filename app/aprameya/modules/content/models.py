from __future__ import annotations

from datetime import datetime
from typing import ClassVar

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.aprameya.models import Base


class OwnedContent:
    """
    Columns shared by every publishable content entity.

    `creator_id` is the owning user: stamped once at creation from the acting
    session and never written again.
    """

    # Editable payload fields, in display order.
    FIELDS: ClassVar[tuple[str, ...]] = ()
    # Fields holding lists of strings (stored as JSON).
    LIST_FIELDS: ClassVar[frozenset[str]] = frozenset()
    # Fields holding integers.
    INT_FIELDS: ClassVar[frozenset[str]] = frozenset()
    # Resource key used in policy actions and audit entries.
    resource: ClassVar[str] = ""

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    creator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    def to_dict(self) -> dict:
        d: dict = {"id": self.id}
        for name in self.FIELDS:
            value = getattr(self, name)
            if name in self.LIST_FIELDS and value is None:
                value = []
            d[name] = value
        d["creator_id"] = self.creator_id
        d["created_at"] = self.created_at.isoformat() if self.created_at else None
        d["updated_at"] = self.updated_at.isoformat() if self.updated_at else None
        return d


class Project(OwnedContent, Base):
    __tablename__ = "projects"
    __table_args__ = (Index("idx_projects_category", "category"),)

    FIELDS = ("title", "category", "description", "image", "technologies", "team")
    LIST_FIELDS = frozenset({"technologies", "team"})
    resource = "project"

    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    technologies: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)
    team: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)


class Blog(OwnedContent, Base):
    __tablename__ = "blogs"
    __table_args__ = (Index("idx_blogs_category", "category"),)

    FIELDS = ("title", "excerpt", "content", "category", "date", "image", "author")
    resource = "blog"

    excerpt: Mapped[str | None] = mapped_column(String(512), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    date: Mapped[str | None] = mapped_column(String(32), nullable=True)  # display date, e.g. "2024-03-01"
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    author: Mapped[str | None] = mapped_column(String(128), nullable=True)


class ResearchItem(OwnedContent, Base):
    __tablename__ = "research_items"
    __table_args__ = (Index("idx_research_items_category", "category"),)

    FIELDS = ("title", "category", "description", "image", "date", "authors", "citations")
    LIST_FIELDS = frozenset({"authors"})
    INT_FIELDS = frozenset({"citations"})
    resource = "research"

    category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)
    date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    authors: Mapped[list | None] = mapped_column(JSON, nullable=True, default=list)
    citations: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class Event(OwnedContent, Base):
    __tablename__ = "events"
    __table_args__ = (Index("idx_events_date", "date"),)

    FIELDS = ("title", "type", "date", "time", "location", "description", "image")
    resource = "event"

    type: Mapped[str | None] = mapped_column(String(64), nullable=True)  # Workshop, Competition, Talk, ...
    date: Mapped[str | None] = mapped_column(String(32), nullable=True)  # ISO date, sortable
    time: Mapped[str | None] = mapped_column(String(64), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(String(512), nullable=True)


CONTENT_MODELS: dict[str, type[OwnedContent]] = {
    Project.resource: Project,
    Blog.resource: Blog,
    ResearchItem.resource: ResearchItem,
    Event.resource: Event,
}
