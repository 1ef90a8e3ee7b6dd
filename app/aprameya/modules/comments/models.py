from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.aprameya.models import Base

# Comment target resource -> foreign key column on Comment.
TARGET_COLUMNS = {
    "project": "project_id",
    "blog": "blog_id",
    "research": "research_id",
}


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        # Exactly one target is set.
        CheckConstraint(
            "(CASE WHEN project_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN blog_id IS NULL THEN 0 ELSE 1 END"
            " + CASE WHEN research_id IS NULL THEN 0 ELSE 1 END) = 1",
            name="ck_comments_single_target",
        ),
        Index("idx_comments_user", "user_id"),
        Index("idx_comments_project", "project_id"),
        Index("idx_comments_blog", "blog_id"),
        Index("idx_comments_research", "research_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=True)
    blog_id: Mapped[int | None] = mapped_column(ForeignKey("blogs.id", ondelete="CASCADE"), nullable=True)
    research_id: Mapped[int | None] = mapped_column(ForeignKey("research_items.id", ondelete="CASCADE"), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    @property
    def target(self) -> tuple[str, int]:
        for resource, column in TARGET_COLUMNS.items():
            value = getattr(self, column)
            if value is not None:
                return resource, value
        raise ValueError(f"Comment {self.id} has no target.")

    def to_dict(self) -> dict:
        resource, target_id = self.target
        return {
            "id": self.id,
            "content": self.content,
            "user_id": self.user_id,
            "project_id": self.project_id,
            "blog_id": self.blog_id,
            "research_id": self.research_id,
            "target_type": resource,
            "target_id": target_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
