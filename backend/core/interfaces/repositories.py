"""Repository interfaces for data access."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from ..domain.blog import BlogCategory, BlogPostRecord

if TYPE_CHECKING:
    from infrastructure.database.models.blog import BlogPost


class BlogPostRepository(ABC):
    """Abstract repository for blog posts.

    Slugs are unique across all posts; ``create`` raises
    ``SlugConflictError`` when the storage layer rejects a duplicate.
    """

    @abstractmethod
    async def get_by_id(self, post_id: str) -> Optional["BlogPost"]:
        """Get a post by ID."""
        ...

    @abstractmethod
    async def get_by_slug(self, slug: str) -> Optional["BlogPost"]:
        """Get a post by slug."""
        ...

    @abstractmethod
    async def slug_exists(self, slug: str) -> bool:
        """Check whether a post already uses *slug*."""
        ...

    @abstractmethod
    async def create(self, record: BlogPostRecord) -> "BlogPost":
        """Persist an assembled post."""
        ...

    @abstractmethod
    async def update(self, post: "BlogPost", changes: dict[str, Any]) -> "BlogPost":
        """Apply field changes to an existing post."""
        ...

    @abstractmethod
    async def delete(self, post_id: str) -> bool:
        """Delete a post. Returns False if it did not exist."""
        ...

    @abstractmethod
    async def count(
        self,
        category: Optional[BlogCategory] = None,
        published: Optional[bool] = None,
        featured: Optional[bool] = None,
    ) -> int:
        """Count posts matching the filters."""
        ...

    @abstractmethod
    async def list_posts(
        self,
        page: int = 1,
        limit: int = 20,
        category: Optional[BlogCategory] = None,
        published: Optional[bool] = None,
    ) -> tuple[list["BlogPost"], int]:
        """Paginated listing, newest first. Returns (posts, total)."""
        ...

    @abstractmethod
    async def list_titles(self, category: Optional[BlogCategory] = None, limit: int = 50) -> list[str]:
        """Most recent post titles, optionally within a category."""
        ...

    @abstractmethod
    async def list_published(self, limit: int = 30) -> list["BlogPost"]:
        """Published posts, newest publication first."""
        ...

    @abstractmethod
    async def list_related(self, category: str, exclude_slug: str, limit: int = 3) -> list["BlogPost"]:
        """Other published posts in the same category."""
        ...

    @abstractmethod
    async def increment_views(self, post: "BlogPost") -> "BlogPost":
        """Bump the public view counter."""
        ...

    @abstractmethod
    async def count_by_category(self) -> dict[str, int]:
        """Number of posts per category."""
        ...

    @abstractmethod
    async def stats(self) -> dict[str, Any]:
        """Totals for the admin dashboard: total, published, drafts, featured, by_category."""
        ...
