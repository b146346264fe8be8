"""
Blog post database model.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Index, Integer, JSON, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class BlogPost(Base, TimestampMixin):
    """Published or draft blog article."""

    __tablename__ = "blog_posts"

    id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        primary_key=True,
        default=lambda: str(uuid4()),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[str] = mapped_column(String(500), nullable=False, unique=True, index=True)
    excerpt: Mapped[str] = mapped_column(Text, nullable=False, default="")
    content: Mapped[str] = mapped_column(Text, nullable=False)

    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    tags: Mapped[str] = mapped_column(Text, nullable=False, default="")
    """Comma-joined tag list, e.g. "ERAS, residency application, medical school"."""

    icon: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    read_time: Mapped[int] = mapped_column(Integer, nullable=False, default=1)  # minutes
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    author: Mapped[str] = mapped_column(String(255), nullable=False)

    # SEO
    meta_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    faq_section: Mapped[Optional[list]] = mapped_column(JSON, nullable=True)
    """
    Structure:
    [
        {"question": "...", "answer": "..."},
        ...
    ]
    """
    schema_markup: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # None means draft
    published_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    __table_args__ = (
        Index("ix_blog_posts_category_published", "category", "published_at"),
    )

    def __repr__(self) -> str:
        return f"<BlogPost(id={self.id}, slug={self.slug[:40]}, category={self.category})>"

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    @property
    def tag_list(self) -> list[str]:
        return [t.strip() for t in self.tags.split(",") if t.strip()]
