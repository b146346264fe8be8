"""
Blog API request/response schemas.

The admin UI and public blog pages speak camelCase, so every model uses a
camelCase alias generator and also accepts snake_case field names.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from core.domain.blog import BlogCategory


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Generation ---


class GenerateBlogPostRequest(CamelModel):
    """Admin generation trigger.

    category and topic are optional at the schema level so that a missing
    value is reported as "Category and topic are required" (400) by the
    generator rather than as a validation error.
    """

    category: Optional[str] = None
    topic: Optional[str] = Field(None, max_length=300)
    target_keywords: list[str] = Field(default_factory=list, max_length=20)
    word_count_target: int = Field(default=2000, ge=1000, le=3000)
    include_faq: bool = True
    auto_publish: bool = True


class GenerateBlogPostResponse(CamelModel):
    success: bool = True
    post_id: str
    slug: str
    read_time: int


class BatchGenerateRequest(CamelModel):
    count: int = Field(default=5, ge=1, le=10)


class BatchGenerateResponse(CamelModel):
    job_id: str
    count: int


class CreatedPostRef(CamelModel):
    id: str
    slug: str


class BatchJobStatusResponse(CamelModel):
    job_id: str
    status: str
    total: int
    completed: int
    created: int
    posts: list[CreatedPostRef] = Field(default_factory=list)
    error: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None


class SuggestTopicsRequest(CamelModel):
    category: Optional[str] = None


class TopicSuggestionItem(CamelModel):
    title: str
    description: str = ""
    keywords: list[str] = Field(default_factory=list)


class SuggestTopicsResponse(CamelModel):
    topics: list[TopicSuggestionItem]


# --- Posts ---


class FaqItem(CamelModel):
    question: str
    answer: str


class BlogPostListItem(CamelModel):
    """Row in the admin post table."""

    id: str
    title: str
    slug: str
    category: str
    published_at: Optional[datetime] = None
    featured: bool
    views: int
    created_at: datetime


class BlogPostListResponse(CamelModel):
    posts: list[BlogPostListItem]
    total: int
    page: int
    total_pages: int


class BlogPostDetail(CamelModel):
    """Full post record."""

    id: str
    title: str
    slug: str
    excerpt: str
    content: str
    category: str
    tags: str
    icon: str
    read_time: int
    featured: bool
    views: int
    author: str
    meta_description: Optional[str] = None
    faq_section: Optional[list[FaqItem]] = None
    schema_markup: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class BlogPostUpdateRequest(CamelModel):
    """Partial update. Fields left out are unchanged; publishedAt=null unpublishes."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    excerpt: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    category: Optional[BlogCategory] = None
    tags: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=100)
    read_time: Optional[int] = Field(None, ge=1)
    meta_description: Optional[str] = None
    faq_section: Optional[list[FaqItem]] = None
    featured: Optional[bool] = None
    published_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def join_tag_list(cls, v):
        """Accept either the stored comma string or a list of tags."""
        if isinstance(v, list):
            return ", ".join(str(t).strip() for t in v if str(t).strip())
        return v


class BlogStatsResponse(CamelModel):
    total: int
    published: int
    drafts: int
    featured: int
    by_category: dict[str, int]


class GenerationJobItem(CamelModel):
    id: str
    topic: str
    category: str
    status: str
    created_at: datetime


class GenerationJobListResponse(CamelModel):
    jobs: list[GenerationJobItem]


# --- Public blog ---


class PublicBlogPostSummary(CamelModel):
    """Card on the public blog index."""

    id: str
    title: str
    slug: str
    excerpt: str
    category: str
    tags: list[str] = Field(default_factory=list)
    icon: str
    read_time: int
    featured: bool
    author: str
    published_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def split_tags(cls, v):
        if isinstance(v, str):
            return [t.strip() for t in v.split(",") if t.strip()]
        return v


class PublicBlogPostListResponse(CamelModel):
    posts: list[PublicBlogPostSummary]


class PublicBlogPostDetail(PublicBlogPostSummary):
    content: str
    views: int
    meta_description: Optional[str] = None
    faq_section: Optional[list[FaqItem]] = None
    schema_markup: Optional[str] = None
    related_posts: list[PublicBlogPostSummary] = Field(default_factory=list)
