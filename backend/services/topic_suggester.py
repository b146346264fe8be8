"""
AI topic suggestions for the admin generate form.
"""

import logging
from typing import Optional

from core.domain.blog import BlogCategory, TopicSuggestion
from core.domain.errors import BlogGenerationError
from core.interfaces.repositories import BlogPostRepository
from core.interfaces.services import CompletionClient, ModelTier
from infrastructure.config.settings import Settings, settings as default_settings
from services.blog_parser import extract_json_object
from services.blog_prompts import build_topic_suggestion_prompt
from services.blog_text import slugify

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5


class TopicSuggester:
    """Asks the model for new topic ideas that don't repeat existing posts."""

    def __init__(
        self,
        repository: BlogPostRepository,
        completion_client: CompletionClient,
        config: Optional[Settings] = None,
    ):
        self.repository = repository
        self.client = completion_client
        self.config = config or default_settings

    async def suggest(self, category: BlogCategory) -> list[TopicSuggestion]:
        """
        Up to five suggestions for *category*.

        Raises:
            AIProviderError: the model call failed
            BlogGenerationError: the reply could not be parsed
        """
        existing = await self.repository.list_titles(
            category=category, limit=self.config.recent_titles_sample
        )
        prompt = build_topic_suggestion_prompt(
            category,
            existing,
            count=MAX_SUGGESTIONS,
            site_name=self.config.site_name,
        )
        raw = await self.client.complete(prompt, ModelTier.SUGGESTION)

        data = extract_json_object(raw or "")
        if data is None:
            logger.error(f"Failed to parse topic suggestions ({len(raw or '')} chars)")
            raise BlogGenerationError("Failed to parse suggestions")

        taken = {slugify(title) for title in existing}
        suggestions: list[TopicSuggestion] = []
        for item in data.get("topics") or []:
            if not isinstance(item, dict):
                continue
            title = str(item.get("title") or "").strip()
            if not title or slugify(title) in taken:
                continue
            keywords = item.get("keywords")
            suggestions.append(
                TopicSuggestion(
                    title=title,
                    description=str(item.get("description") or "").strip(),
                    keywords=[k for k in keywords if isinstance(k, str)] if isinstance(keywords, list) else [],
                )
            )
            taken.add(slugify(title))
            if len(suggestions) >= MAX_SUGGESTIONS:
                break

        logger.info(f"Suggested {len(suggestions)} topics for {category.value}")
        return suggestions
