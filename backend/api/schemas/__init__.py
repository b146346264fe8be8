"""
API request and response schemas.
"""

from .blog import (
    BatchGenerateRequest,
    BatchGenerateResponse,
    BatchJobStatusResponse,
    BlogPostDetail,
    BlogPostListResponse,
    BlogPostUpdateRequest,
    BlogStatsResponse,
    GenerateBlogPostRequest,
    GenerateBlogPostResponse,
    GenerationJobListResponse,
    PublicBlogPostDetail,
    PublicBlogPostListResponse,
    SuggestTopicsRequest,
    SuggestTopicsResponse,
)

__all__ = [
    "BatchGenerateRequest",
    "BatchGenerateResponse",
    "BatchJobStatusResponse",
    "BlogPostDetail",
    "BlogPostListResponse",
    "BlogPostUpdateRequest",
    "BlogStatsResponse",
    "GenerateBlogPostRequest",
    "GenerateBlogPostResponse",
    "GenerationJobListResponse",
    "PublicBlogPostDetail",
    "PublicBlogPostListResponse",
    "SuggestTopicsRequest",
    "SuggestTopicsResponse",
]
