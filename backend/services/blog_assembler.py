"""
Assembly of a persistable blog post from an enhanced article.

Derives the excerpt, tag list, structured-data markup, icon and the
featured flag. Nothing here talks to the database or the model.
"""

import json
import logging
import random
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from core.domain.blog import BlogCategory, BlogPostRecord, EnhancedArticle
from infrastructure.config.settings import Settings
from services.blog_text import slugify, strip_html

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200
ELLIPSIS = "..."


def build_excerpt(content: str, meta_description: Optional[str] = None) -> str:
    """
    metaDescription when present, else the first 200 characters of the
    tag-stripped content. The ellipsis is added only when the stripped
    text was at least 200 characters long.
    """
    if meta_description:
        return meta_description
    plain = strip_html(content)
    excerpt = plain[:EXCERPT_LENGTH]
    if len(plain) >= EXCERPT_LENGTH:
        excerpt += ELLIPSIS
    return excerpt


def generate_tags(
    topic: str,
    category: BlogCategory,
    keywords: Iterable[str] = (),
    related_keywords: Iterable[str] = (),
    match_year: Optional[int] = None,
    max_tags: int = 12,
) -> list[str]:
    """
    Ordered, de-duplicated tag list capped at *max_tags*.

    Duplicates are detected case-insensitively and the first spelling wins.
    Without *match_year* the current UTC year is used.
    """
    if match_year is None:
        match_year = datetime.now(timezone.utc).year
    candidates: list[str] = [
        "ERAS",
        "residency application",
        "medical school",
        f"match {match_year}",
    ]
    topic_words = " ".join(topic.split()[:3]).lower()
    if topic_words:
        candidates.append(topic_words)
    candidates.append(category.label)
    candidates.extend(category.tags)
    candidates.extend(keywords)
    candidates.extend(related_keywords)

    tags: list[str] = []
    seen: set[str] = set()
    for tag in candidates:
        tag = (tag or "").strip()
        key = tag.lower()
        if not tag or key in seen:
            continue
        seen.add(key)
        tags.append(tag)
        if len(tags) >= max_tags:
            break
    return tags


def build_schema_markup(
    headline: str,
    description: str,
    published: datetime,
    author_name: str,
    publisher_name: str,
    publisher_url: str,
) -> str:
    """Serialized schema.org BlogPosting object."""
    return json.dumps(
        {
            "@context": "https://schema.org",
            "@type": "BlogPosting",
            "headline": headline,
            "description": description,
            "author": {
                "@type": "Person",
                "name": author_name,
            },
            "datePublished": published.isoformat(),
            "publisher": {
                "@type": "Organization",
                "name": publisher_name,
                "url": publisher_url,
            },
        }
    )


class PostAssembler:
    """Builds BlogPostRecord instances ready for the repository."""

    def __init__(
        self,
        config: Settings,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._config = config
        self._rng = rng or random.Random()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def draw_featured(self) -> bool:
        """Independent draw with the configured probability."""
        return self._rng.random() < self._config.featured_probability

    def assemble(
        self,
        topic: str,
        category: BlogCategory,
        keywords: Iterable[str],
        article: EnhancedArticle,
        auto_publish: bool = True,
        slug: Optional[str] = None,
    ) -> BlogPostRecord:
        now = self._clock()
        slug = slug or slugify(topic)
        excerpt = build_excerpt(article.content, article.meta_description)
        tags = generate_tags(
            topic,
            category,
            keywords,
            article.related_keywords,
            match_year=self._config.match_year or now.year,
            max_tags=self._config.max_tags,
        )
        featured = self.draw_featured()
        logger.debug(f"Featured draw for '{slug}': {featured}")

        return BlogPostRecord(
            title=topic,
            slug=slug,
            excerpt=excerpt,
            content=article.content,
            category=category,
            tags=tags,
            icon=category.icon,
            read_time=article.read_time,
            featured=featured,
            author=self._config.author_name,
            meta_description=article.meta_description,
            faq_section=article.faq_section or None,
            schema_markup=build_schema_markup(
                headline=topic,
                description=article.meta_description or excerpt,
                published=now,
                author_name=self._config.author_name,
                publisher_name=self._config.publisher_name,
                publisher_url=self._config.site_url,
            ),
            published_at=now if auto_publish else None,
        )
