"""
Dependencies wiring the blog generation pipeline into FastAPI.

Provider clients are built once per process from settings; repositories
and generators are built per request around the request's session.
"""

from functools import lru_cache
from typing import Callable

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.ai import build_completion_client
from adapters.search import SearchEnginePinger
from core.interfaces.services import CompletionClient, SearchEngineNotifier
from infrastructure.config.settings import settings
from infrastructure.database.connection import async_session_maker, get_db
from infrastructure.database.repositories import SqlAlchemyBlogPostRepository
from services.blog_generator import BlogGenerator
from services.topic_suggester import TopicSuggester


@lru_cache
def get_completion_client() -> CompletionClient:
    """Completion client for the configured AI provider."""
    return build_completion_client(settings)


@lru_cache
def get_search_notifier() -> SearchEngineNotifier:
    """Shared search-engine pinger."""
    return SearchEnginePinger(settings)


def get_session_factory() -> Callable[[], AsyncSession]:
    """Session factory for work that outlives the request (batch jobs)."""
    return async_session_maker


async def get_blog_repository(
    db: AsyncSession = Depends(get_db),
) -> SqlAlchemyBlogPostRepository:
    return SqlAlchemyBlogPostRepository(db)


async def get_blog_generator(
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
    client: CompletionClient = Depends(get_completion_client),
    notifier: SearchEngineNotifier = Depends(get_search_notifier),
) -> BlogGenerator:
    return BlogGenerator(
        repository=repository,
        completion_client=client,
        notifier=notifier,
        config=settings,
    )


async def get_topic_suggester(
    repository: SqlAlchemyBlogPostRepository = Depends(get_blog_repository),
    client: CompletionClient = Depends(get_completion_client),
) -> TopicSuggester:
    return TopicSuggester(repository, client, config=settings)
