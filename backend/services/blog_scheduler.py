"""
Blog Auto-Generation Scheduler.

Background loop that publishes one catalog topic every configured
interval. Started from the app lifespan when AUTO_GENERATION_ENABLED is
set; each run gets its own database session.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from core.interfaces.services import CompletionClient, SearchEngineNotifier
from infrastructure.config.settings import Settings, settings as default_settings
from infrastructure.database import async_session_maker
from infrastructure.database.models.blog import BlogPost
from infrastructure.database.repositories import SqlAlchemyBlogPostRepository
from services.blog_generator import BlogGenerator

logger = logging.getLogger(__name__)


class BlogSchedulerService:
    """Runs unattended blog generation on a fixed interval."""

    def __init__(
        self,
        completion_client: CompletionClient,
        notifier: Optional[SearchEngineNotifier] = None,
        config: Optional[Settings] = None,
        session_factory: Callable[[], AsyncSession] = async_session_maker,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.config = config or default_settings
        self.client = completion_client
        self.notifier = notifier
        self.session_factory = session_factory
        self.check_interval = self.config.auto_generation_interval_hours * 3600
        self.is_running = False
        self._sleep = sleep

    async def start(self):
        """Start the scheduler background loop."""
        if self.is_running:
            logger.warning("Blog scheduler is already running")
            return

        self.is_running = True
        logger.info(
            "Blog scheduler started - generating a post every %.1f hours",
            self.config.auto_generation_interval_hours,
        )

        while self.is_running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Blog scheduler error: {e}", exc_info=True)

            await self._sleep(self.check_interval)

    async def stop(self):
        """Stop the scheduler."""
        if not self.is_running:
            return

        self.is_running = False
        logger.info("Blog scheduler stopped")

    async def run_once(self) -> Optional[BlogPost]:
        """Generate one scheduled post. None when skipped."""
        async with self.session_factory() as db:
            generator = BlogGenerator(
                repository=SqlAlchemyBlogPostRepository(db),
                completion_client=self.client,
                notifier=self.notifier,
                config=self.config,
            )
            post = await generator.generate_scheduled()

        if post is None:
            logger.info("Scheduled blog generation skipped (no topic or slug taken)")
        else:
            logger.info(
                f"Scheduled blog post published: {post.slug}",
                extra={"post_id": post.id, "slug": post.slug},
            )
        return post
