"""
SQLAlchemy implementation of the blog post repository.
"""

import logging
from typing import Any, Optional

from sqlalchemy import delete, desc, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.domain.blog import BlogCategory, BlogPostRecord
from core.domain.errors import SlugConflictError
from core.interfaces.repositories import BlogPostRepository
from infrastructure.database.models.blog import BlogPost

logger = logging.getLogger(__name__)

# Fields an admin may change after creation. Slug is immutable.
EDITABLE_FIELDS = frozenset(
    {
        "title",
        "excerpt",
        "content",
        "category",
        "tags",
        "icon",
        "read_time",
        "featured",
        "meta_description",
        "faq_section",
        "published_at",
    }
)


def _filters(
    category: Optional[BlogCategory] = None,
    published: Optional[bool] = None,
    featured: Optional[bool] = None,
) -> list:
    clauses = []
    if category is not None:
        clauses.append(BlogPost.category == BlogCategory(category).value)
    if published is True:
        clauses.append(BlogPost.published_at.is_not(None))
    elif published is False:
        clauses.append(BlogPost.published_at.is_(None))
    if featured is not None:
        clauses.append(BlogPost.featured == featured)
    return clauses


class SqlAlchemyBlogPostRepository(BlogPostRepository):
    """Blog post storage backed by an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def get_by_id(self, post_id: str) -> Optional[BlogPost]:
        result = await self._db.execute(select(BlogPost).where(BlogPost.id == post_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[BlogPost]:
        result = await self._db.execute(select(BlogPost).where(BlogPost.slug == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str) -> bool:
        result = await self._db.execute(select(BlogPost.id).where(BlogPost.slug == slug).limit(1))
        return result.scalar_one_or_none() is not None

    async def create(self, record: BlogPostRecord) -> BlogPost:
        post = BlogPost(
            title=record.title,
            slug=record.slug,
            excerpt=record.excerpt,
            content=record.content,
            category=record.category.value,
            tags=record.tags_string,
            icon=record.icon,
            read_time=record.read_time,
            featured=record.featured,
            views=0,
            author=record.author,
            meta_description=record.meta_description,
            faq_section=record.faq_section,
            schema_markup=record.schema_markup,
            published_at=record.published_at,
        )
        self._db.add(post)
        try:
            await self._db.commit()
        except IntegrityError:
            # The unique index on slug closes the check-then-write race
            await self._db.rollback()
            logger.warning("Slug collision on insert: %s", record.slug)
            raise SlugConflictError(record.slug) from None
        await self._db.refresh(post)
        return post

    async def update(self, post: BlogPost, changes: dict[str, Any]) -> BlogPost:
        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                raise ValueError(f"Field {key!r} cannot be updated")
            if key == "category" and value is not None:
                value = BlogCategory(value).value
            setattr(post, key, value)
        await self._db.commit()
        await self._db.refresh(post)
        return post

    async def delete(self, post_id: str) -> bool:
        result = await self._db.execute(delete(BlogPost).where(BlogPost.id == post_id))
        await self._db.commit()
        return result.rowcount > 0

    async def count(
        self,
        category: Optional[BlogCategory] = None,
        published: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> int:
        query = select(func.count()).select_from(BlogPost)
        for clause in _filters(category, published, featured):
            query = query.where(clause)
        result = await self._db.execute(query)
        return result.scalar_one()

    async def list_posts(
        self,
        page: int = 1,
        limit: int = 20,
        category: Optional[BlogCategory] = None,
        published: Optional[bool] = None,
    ) -> tuple[list[BlogPost], int]:
        query = select(BlogPost)
        for clause in _filters(category, published):
            query = query.where(clause)
        query = query.order_by(desc(BlogPost.created_at)).offset((page - 1) * limit).limit(limit)

        result = await self._db.execute(query)
        posts = list(result.scalars().all())
        total = await self.count(category=category, published=published)
        return posts, total

    async def list_titles(self, category: Optional[BlogCategory] = None, limit: int = 50) -> list[str]:
        query = select(BlogPost.title)
        for clause in _filters(category):
            query = query.where(clause)
        query = query.order_by(desc(BlogPost.created_at)).limit(limit)
        result = await self._db.execute(query)
        return list(result.scalars().all())

    async def list_published(self, limit: int = 30) -> list[BlogPost]:
        result = await self._db.execute(
            select(BlogPost)
            .where(BlogPost.published_at.is_not(None))
            .order_by(desc(BlogPost.published_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_related(self, category: str, exclude_slug: str, limit: int = 3) -> list[BlogPost]:
        result = await self._db.execute(
            select(BlogPost)
            .where(
                BlogPost.category == category,
                BlogPost.slug != exclude_slug,
                BlogPost.published_at.is_not(None),
            )
            .order_by(desc(BlogPost.published_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def increment_views(self, post: BlogPost) -> BlogPost:
        # Atomic increment so concurrent readers don't lose counts
        await self._db.execute(
            update(BlogPost).where(BlogPost.id == post.id).values(views=BlogPost.views + 1)
        )
        await self._db.commit()
        await self._db.refresh(post)
        return post

    async def count_by_category(self) -> dict[str, int]:
        result = await self._db.execute(
            select(BlogPost.category, func.count(BlogPost.id)).group_by(BlogPost.category)
        )
        return {category: count for category, count in result.all()}

    async def stats(self) -> dict[str, Any]:
        total = await self.count()
        published = await self.count(published=True)
        featured = await self.count(featured=True)
        return {
            "total": total,
            "published": published,
            "drafts": total - published,
            "featured": featured,
            "by_category": await self.count_by_category(),
        }
