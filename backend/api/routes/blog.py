"""
Public blog API routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from api.deps_blog import get_blog_repository
from api.schemas.blog import (
    PublicBlogPostDetail,
    PublicBlogPostListResponse,
    PublicBlogPostSummary,
)
from infrastructure.database.repositories import SqlAlchemyBlogPostRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["Blog"])

LATEST_POSTS_LIMIT = 30
RELATED_POSTS_LIMIT = 3


@router.get("/posts", response_model=PublicBlogPostListResponse)
async def list_published_posts(
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """Latest published posts, newest first."""
    posts = await repository.list_published(limit=LATEST_POSTS_LIMIT)
    return PublicBlogPostListResponse(
        posts=[PublicBlogPostSummary.model_validate(p) for p in posts]
    )


@router.get("/posts/{slug}", response_model=PublicBlogPostDetail)
async def get_published_post(
    slug: str,
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """
    A published post with up to three related posts from its category.

    Each read bumps the post's view counter. Drafts are not visible here.
    """
    post = await repository.get_by_slug(slug)
    if not post or post.published_at is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")

    post = await repository.increment_views(post)
    related = await repository.list_related(post.category, post.slug, limit=RELATED_POSTS_LIMIT)

    detail = PublicBlogPostDetail.model_validate(post)
    detail.related_posts = [PublicBlogPostSummary.model_validate(p) for p in related]
    return detail
