"""
Admin blog API routes.

AI generation (single post, batch, topic suggestions) and management of
existing posts. Every endpoint requires an admin.
"""

import logging
from math import ceil
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps_admin import get_current_admin_user
from api.deps_blog import (
    get_blog_generator,
    get_blog_repository,
    get_completion_client,
    get_search_notifier,
    get_session_factory,
    get_topic_suggester,
)
from api.middleware.rate_limit import get_rate_limit, limiter
from api.schemas.blog import (
    BatchGenerateRequest,
    BatchGenerateResponse,
    BatchJobStatusResponse,
    BlogPostDetail,
    BlogPostListItem,
    BlogPostListResponse,
    BlogPostUpdateRequest,
    BlogStatsResponse,
    GenerateBlogPostRequest,
    GenerateBlogPostResponse,
    GenerationJobItem,
    GenerationJobListResponse,
    SuggestTopicsRequest,
    SuggestTopicsResponse,
    TopicSuggestionItem,
)
from core.domain.blog import BlogCategory, GenerationRequest, parse_category
from core.domain.errors import BlogGenerationError, GenerationRejected
from core.interfaces.services import CompletionClient, SearchEngineNotifier
from infrastructure.config.settings import settings
from infrastructure.database.models.user import User
from infrastructure.database.repositories import SqlAlchemyBlogPostRepository
from services.blog_generator import BlogGenerator
from services.generation_jobs import GenerationJob, generation_jobs
from services.topic_suggester import TopicSuggester

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/blog", tags=["Admin - Blog"])


def _generation_http_error(exc: BlogGenerationError) -> HTTPException:
    """Precondition rejections are 400, everything else is 500 with the message."""
    if isinstance(exc, GenerationRejected):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


async def _get_post_or_404(repository: SqlAlchemyBlogPostRepository, post_id: str):
    post = await repository.get_by_id(post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


# --- Generation ---


@router.post("/generate", response_model=GenerateBlogPostResponse)
@limiter.limit(get_rate_limit("generate"))
async def generate_blog_post(
    request: Request,
    body: GenerateBlogPostRequest,
    admin_user: User = Depends(get_current_admin_user),
    generator: BlogGenerator = Depends(get_blog_generator),
):
    """
    Generate, store and (optionally) publish one post with the two-pass pipeline.

    Takes tens of seconds: one structural call plus one call per section.
    """
    generation_request = GenerationRequest(
        category=body.category,
        topic=body.topic or "",
        target_keywords=body.target_keywords,
        word_count_target=body.word_count_target,
        include_faq=body.include_faq,
        auto_publish=body.auto_publish,
    )
    logger.info(f"Admin {admin_user.email} generating blog post: {body.topic!r}")

    try:
        result = await generator.generate(generation_request)
    except BlogGenerationError as e:
        raise _generation_http_error(e)

    return GenerateBlogPostResponse(
        success=True,
        post_id=result.post_id,
        slug=result.slug,
        read_time=result.read_time,
    )


@router.post(
    "/generate/batch",
    response_model=BatchGenerateResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
@limiter.limit(get_rate_limit("generate_batch"))
async def generate_blog_batch(
    request: Request,
    body: BatchGenerateRequest,
    admin_user: User = Depends(get_current_admin_user),
    client: CompletionClient = Depends(get_completion_client),
    notifier: SearchEngineNotifier = Depends(get_search_notifier),
    session_factory: Callable[[], AsyncSession] = Depends(get_session_factory),
):
    """
    Start a background batch of unattended generations.

    Posts are generated one after another with a pause between them; poll
    the returned job id for progress.
    """
    count = body.count

    async def run_batch(job: GenerationJob) -> None:
        async with session_factory() as db:
            generator = BlogGenerator(
                repository=SqlAlchemyBlogPostRepository(db),
                completion_client=client,
                notifier=notifier,
                config=settings,
            )

            async def on_progress(_index: int, post) -> None:
                if post is not None:
                    job.record_progress(post.id, post.slug)
                else:
                    job.record_progress()

            await generator.generate_batch(count, on_progress=on_progress)

    generation_jobs.cleanup_old()
    job_id = generation_jobs.enqueue(count, run_batch)
    logger.info(f"Admin {admin_user.email} started batch job {job_id} ({count} posts)")
    return BatchGenerateResponse(job_id=job_id, count=count)


@router.get("/generate/batch/{job_id}", response_model=BatchJobStatusResponse)
async def get_blog_batch_status(
    job_id: str,
    admin_user: User = Depends(get_current_admin_user),
):
    """Progress of a batch job."""
    info = generation_jobs.get_status(job_id)
    if info is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return BatchJobStatusResponse(**info)


@router.post("/suggest-topics", response_model=SuggestTopicsResponse)
@limiter.limit(get_rate_limit("suggest_topics"))
async def suggest_topics(
    request: Request,
    body: SuggestTopicsRequest,
    admin_user: User = Depends(get_current_admin_user),
    suggester: TopicSuggester = Depends(get_topic_suggester),
):
    """Up to five new topic ideas for a category, avoiding existing titles."""
    if not body.category:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category is required")

    try:
        category = parse_category(body.category)
        suggestions = await suggester.suggest(category)
    except BlogGenerationError as e:
        raise _generation_http_error(e)

    return SuggestTopicsResponse(
        topics=[
            TopicSuggestionItem(title=s.title, description=s.description, keywords=s.keywords)
            for s in suggestions
        ]
    )


# --- Posts ---


@router.get("/posts", response_model=BlogPostListResponse)
async def list_blog_posts(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    category: Optional[BlogCategory] = Query(None, description="Filter by category"),
    post_status: Optional[str] = Query(
        None, alias="status", pattern="^(published|draft)$", description="published or draft"
    ),
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """Paginated list of all posts, newest first."""
    published = None
    if post_status == "published":
        published = True
    elif post_status == "draft":
        published = False

    posts, total = await repository.list_posts(
        page=page, limit=limit, category=category, published=published
    )
    return BlogPostListResponse(
        posts=[BlogPostListItem.model_validate(p) for p in posts],
        total=total,
        page=page,
        total_pages=ceil(total / limit) if total > 0 else 0,
    )


@router.get("/posts/{post_id}", response_model=BlogPostDetail)
async def get_blog_post(
    post_id: str,
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    post = await _get_post_or_404(repository, post_id)
    return BlogPostDetail.model_validate(post)


@router.patch("/posts/{post_id}", response_model=BlogPostDetail)
async def update_blog_post(
    post_id: str,
    body: BlogPostUpdateRequest,
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """
    Partially update a post.

    Only fields present in the body change. ``publishedAt: null`` moves the
    post back to draft. The slug cannot be changed.
    """
    post = await _get_post_or_404(repository, post_id)
    changes = body.model_dump(exclude_unset=True)

    for field in ("title", "content", "category", "featured"):
        if field in changes and changes[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=f"{field} cannot be null"
            )

    post = await repository.update(post, changes)
    logger.info(f"Admin {admin_user.email} updated blog post {post.slug}: {sorted(changes)}")
    return BlogPostDetail.model_validate(post)


@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blog_post(
    post_id: str,
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    deleted = await repository.delete(post_id)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    logger.info(f"Admin {admin_user.email} deleted blog post {post_id}")


@router.get("/stats", response_model=BlogStatsResponse)
async def get_blog_stats(
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """Post counts for the admin dashboard."""
    return BlogStatsResponse(**await repository.stats())


@router.get("/jobs", response_model=GenerationJobListResponse)
async def list_generation_jobs(
    limit: int = Query(10, ge=1, le=100),
    admin_user: User = Depends(get_current_admin_user),
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
):
    """Most recent posts shown as generation jobs (completed = published)."""
    posts, _ = await repository.list_posts(page=1, limit=limit)
    return GenerationJobListResponse(
        jobs=[
            GenerationJobItem(
                id=p.id,
                topic=p.title,
                category=p.category,
                status="completed" if p.published_at else "draft",
                created_at=p.created_at,
            )
            for p in posts
        ]
    )
