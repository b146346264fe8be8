"""
Blog generation orchestrator.

Runs one article through the two-pass pipeline:

    selecting topic -> checking slug -> generating draft -> parsing draft
    -> enhancing sections -> assembling -> persisting -> notifying -> done

Any failure before persistence moves the run to FAILED and re-raises, so
nothing is written. Enhancement failures are absorbed per section, and
notification runs as a background task whose failures are only logged.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from core.domain.blog import (
    BlogCategory,
    EnhancedArticle,
    GenerationRequest,
    GenerationResult,
    GenerationStage,
)
from core.domain.errors import (
    AIProviderError,
    GenerationRejected,
    SlugConflictError,
)
from core.interfaces.repositories import BlogPostRepository
from core.interfaces.services import CompletionClient, ModelTier, SearchEngineNotifier
from infrastructure.config.settings import Settings, settings as default_settings
from infrastructure.database.models.blog import BlogPost
from services.blog_assembler import PostAssembler
from services.blog_enhancer import SectionEnhancer
from services.blog_parser import parse_structured_response
from services.blog_prompts import build_structural_prompt
from services.blog_text import calculate_read_time, slugify
from services.blog_topics import TopicSelector

logger = logging.getLogger(__name__)

# Search-engine notifications still in flight, keyed by slug
_pending_notifications: dict[str, asyncio.Task] = {}


async def drain_notifications() -> None:
    """Wait for every in-flight search-engine notification to finish."""
    loop = asyncio.get_running_loop()
    tasks = [t for t in _pending_notifications.values() if not t.done() and t.get_loop() is loop]
    if tasks:
        await asyncio.gather(*tasks, return_exceptions=True)


@dataclass
class GenerationRun:
    """Stage history of a single run, kept for logging and inspection."""

    topic: str = ""
    slug: str = ""
    stage: GenerationStage = GenerationStage.SELECTING_TOPIC
    stages: list[GenerationStage] = field(default_factory=list)
    error: Optional[str] = None
    started_at: float = field(default_factory=time.monotonic)

    def advance(self, stage: GenerationStage) -> None:
        self.stage = stage
        self.stages.append(stage)
        logger.debug(
            "Generation stage: %s",
            stage.value,
            extra={"stage": stage.value, "slug": self.slug or None},
        )

    def fail(self, error: Exception) -> None:
        self.error = str(error)
        self.advance(GenerationStage.FAILED)

    @property
    def duration_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


class BlogGenerator:
    """Generates, stores and announces AI-written blog posts."""

    def __init__(
        self,
        repository: BlogPostRepository,
        completion_client: CompletionClient,
        notifier: Optional[SearchEngineNotifier] = None,
        topic_selector: Optional[TopicSelector] = None,
        assembler: Optional[PostAssembler] = None,
        enhancer: Optional[SectionEnhancer] = None,
        config: Optional[Settings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or default_settings
        self.repository = repository
        self.client = completion_client
        self.notifier = notifier
        self.topic_selector = topic_selector or TopicSelector()
        self.assembler = assembler or PostAssembler(self.config, clock=clock)
        self.enhancer = enhancer or SectionEnhancer(
            completion_client,
            min_section_length=self.config.enhancement_min_section_length,
            delay_seconds=self.config.enhancement_delay_seconds,
            sleep=sleep,
        )
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_run: Optional[GenerationRun] = None

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Generate and persist one post for an explicit topic.

        Raises:
            GenerationRejected: missing category/topic or the slug is taken.
                Raised before any model call.
            EmptyContentError: the draft had no usable content.
            AIProviderError: the structural model call failed.
        """
        post = await self._run(request)
        return GenerationResult(
            post_id=post.id,
            slug=post.slug,
            read_time=post.read_time,
            title=post.title,
            published=post.published_at is not None,
        )

    async def _run(self, request: GenerationRequest) -> BlogPost:
        run = GenerationRun(topic=request.topic or "")
        self.last_run = run
        run.advance(GenerationStage.SELECTING_TOPIC)

        try:
            request.validate()
            slug = slugify(request.topic)
            if not slug:
                raise GenerationRejected("Topic must contain letters or digits")
            run.slug = slug

            run.advance(GenerationStage.CHECKING_SLUG)
            if await self.repository.slug_exists(slug):
                raise SlugConflictError(slug)

            run.advance(GenerationStage.GENERATING_DRAFT)
            raw = await self._generate_draft(request)

            run.advance(GenerationStage.PARSING_DRAFT)
            draft = parse_structured_response(raw)

            run.advance(GenerationStage.ENHANCING_SECTIONS)
            enhancement_keywords = list(
                dict.fromkeys([*request.target_keywords, *draft.related_keywords])
            )
            try:
                content = await self.enhancer.enhance(
                    draft.content, request.topic, enhancement_keywords
                )
            except Exception as e:
                logger.warning(f"Enhancement pass failed for '{slug}', using draft: {e}")
                content = draft.content

            article = EnhancedArticle(
                content=content,
                meta_description=draft.meta_description,
                faq_section=draft.faq_section,
                related_keywords=draft.related_keywords,
                read_time=calculate_read_time(content),
            )

            run.advance(GenerationStage.ASSEMBLING)
            record = self.assembler.assemble(
                topic=request.topic,
                category=request.category,
                keywords=request.target_keywords,
                article=article,
                auto_publish=request.auto_publish,
                slug=slug,
            )

            run.advance(GenerationStage.PERSISTING)
            post = await self.repository.create(record)
        except Exception as e:
            failed_at = run.stage
            run.fail(e)
            if isinstance(e, GenerationRejected):
                logger.info(f"Generation rejected for '{run.topic}': {e}")
            else:
                logger.error(f"Generation failed for '{run.topic}' at {failed_at.value}: {e}")
            raise

        run.advance(GenerationStage.NOTIFYING)
        self._notify_in_background(post.slug)

        run.advance(GenerationStage.DONE)
        logger.info(
            f"Generated blog post '{post.title}' ({post.read_time} min read) in {run.duration_ms}ms",
            extra={"post_id": post.id, "slug": post.slug, "duration_ms": run.duration_ms},
        )
        return post

    async def _generate_draft(self, request: GenerationRequest) -> str:
        prompt = build_structural_prompt(
            topic=request.topic,
            category=request.category,
            target_keywords=request.target_keywords,
            word_count_target=request.word_count_target,
            include_faq=request.include_faq,
            year=self._clock().year,
        )
        try:
            return await self.client.complete(prompt, ModelTier.STRUCTURAL)
        except AIProviderError:
            raise
        except Exception as e:
            raise AIProviderError(f"AI provider request failed: {e}") from e

    def _notify_in_background(self, slug: str) -> None:
        """Schedule notification without holding up the caller."""
        if self.notifier is None:
            return
        task = asyncio.create_task(self._notify(slug), name=f"blog-notify-{slug}")
        _pending_notifications[slug] = task
        task.add_done_callback(lambda t: _pending_notifications.pop(slug, None))

    async def _notify(self, slug: str) -> None:
        """Tell search engines about the new post. Never raises."""
        if self.notifier is None:
            return
        try:
            await self.notifier.ping_sitemap()
            await self.notifier.submit_url(self.config.blog_post_url(slug))
        except Exception as e:
            logger.error(f"Search engine notification failed for '{slug}': {e}")

    async def generate_scheduled(
        self,
        now: Optional[datetime] = None,
        category: Optional[BlogCategory] = None,
    ) -> Optional[BlogPost]:
        """
        Unattended generation: pick a topic and publish it.

        Returns None when the catalog is exhausted or the chosen topic's slug
        already exists. Other failures propagate.
        """
        used_titles = await self.repository.list_titles(
            category=category, limit=self.config.recent_titles_sample
        )
        choice = self.topic_selector.select(used_titles, now=now or self._clock(), category=category)
        if choice is None:
            logger.warning("No available topics to generate blog post")
            return None

        request = GenerationRequest(
            category=choice.category,
            topic=choice.topic,
            target_keywords=[],
            word_count_target=self.config.default_word_count,
            include_faq=True,
            auto_publish=True,
        )
        try:
            return await self._run(request)
        except SlugConflictError:
            logger.info(f"Blog post with slug '{slugify(choice.topic)}' already exists, skipping")
            return None

    async def generate_batch(
        self,
        count: int,
        on_progress: Optional[Callable[[int, Optional[BlogPost]], Awaitable[None]]] = None,
    ) -> list[BlogPost]:
        """
        Run scheduled generation *count* times, one after another.

        Failures are logged and skipped; the created posts are returned.
        """
        posts: list[BlogPost] = []
        for i in range(count):
            post: Optional[BlogPost] = None
            try:
                post = await self.generate_scheduled()
            except Exception as e:
                logger.error(f"Batch generation {i + 1}/{count} failed: {e}")
            if post is not None:
                posts.append(post)
            if on_progress is not None:
                await on_progress(i + 1, post)

            if i < count - 1 and self.config.batch_delay_seconds > 0:
                await self._sleep(self.config.batch_delay_seconds)

        logger.info(f"Batch generation finished: {len(posts)}/{count} posts created")
        return posts
