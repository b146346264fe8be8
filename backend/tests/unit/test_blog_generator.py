"""
Unit tests for the blog generation orchestrator.

Runs the whole pipeline against an in-memory database with a scripted
completion client.

Covers:
- End-to-end generation of a published post
- Rejections before any model call (missing fields, slug taken)
- Nothing persisted on empty content or provider failure
- Enhancement and notification failures do not fail the run
- Scheduled generation and batches
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import pytest

from conftest import FakeCompletionClient, FakeNotifier, no_sleep
from core.domain.blog import (
    BlogCategory,
    GenerationRequest,
    GenerationStage,
    TopicChoice,
)
from core.domain.errors import (
    AIProviderError,
    EmptyContentError,
    GenerationRejected,
    SlugConflictError,
)
from core.interfaces.services import ModelTier
from infrastructure.config.settings import Settings
from infrastructure.database.repositories import SqlAlchemyBlogPostRepository
from services.blog_generator import BlogGenerator, drain_notifications
from services.blog_topics import TopicSelector

FIXED_NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)

E2E_TOPIC = "How to Write a Compelling ERAS Personal Statement"
E2E_REPLY = json.dumps(
    {
        "content": "<h2>Intro</h2><p>...</p><h2>Tips</h2><p>...</p>",
        "metaDescription": "...",
        "faqSection": [{"question": "Q1", "answer": "A1"}],
        "relatedKeywords": ["residency"],
    }
)


def _config(**overrides) -> Settings:
    values = {
        "jwt_secret_key": "test-secret",
        "enhancement_delay_seconds": 0,
        "batch_delay_seconds": 0,
        "site_url": "https://www.myerasediting.com",
    }
    values.update(overrides)
    return Settings(**values)


def _request(**overrides) -> GenerationRequest:
    values = {
        "category": "PERSONAL_STATEMENT",
        "topic": E2E_TOPIC,
        "target_keywords": ["ERAS personal statement"],
        "word_count_target": 2000,
        "include_faq": True,
        "auto_publish": True,
    }
    values.update(overrides)
    return GenerationRequest(**values)


class _FixedSelector(TopicSelector):
    """Always offers the same topic, used or not."""

    def __init__(self, choice: Optional[TopicChoice]):
        super().__init__(catalog={})
        self.choice = choice

    def select(self, used_titles, now=None, category=None):
        return self.choice


class _SleepRecorder:
    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def repository(db_session):
    return SqlAlchemyBlogPostRepository(db_session)


def _generator(repository, client, notifier=None, **kwargs) -> BlogGenerator:
    kwargs.setdefault("config", _config())
    kwargs.setdefault("sleep", no_sleep)
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return BlogGenerator(repository, client, notifier=notifier, **kwargs)


# ---------------------------------------------------------------------------
# End to end
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_generates_published_post(repository):
    client = FakeCompletionClient().script(ModelTier.STRUCTURAL, E2E_REPLY)
    generator = _generator(repository, client)

    result = await generator.generate(_request())

    post = await repository.get_by_id(result.post_id)
    assert post is not None
    assert post.slug == "how-to-write-a-compelling-eras-personal-statement"
    assert result.slug == post.slug
    assert post.published_at is not None
    assert post.faq_section == [{"question": "Q1", "answer": "A1"}]
    assert "ERAS" in post.tag_list
    assert "residency" in post.tag_list
    assert post.category == "PERSONAL_STATEMENT"
    assert post.icon == "personal-statement"
    assert post.excerpt == "..."
    assert post.views == 0
    assert post.read_time >= 1
    assert result.published is True
    assert generator.last_run.stage == GenerationStage.DONE


@pytest.mark.asyncio
async def test_stages_run_in_order(repository):
    generator = _generator(repository, FakeCompletionClient())

    await generator.generate(_request())

    assert generator.last_run.stages == [
        GenerationStage.SELECTING_TOPIC,
        GenerationStage.CHECKING_SLUG,
        GenerationStage.GENERATING_DRAFT,
        GenerationStage.PARSING_DRAFT,
        GenerationStage.ENHANCING_SECTIONS,
        GenerationStage.ASSEMBLING,
        GenerationStage.PERSISTING,
        GenerationStage.NOTIFYING,
        GenerationStage.DONE,
    ]


@pytest.mark.asyncio
async def test_draft_when_not_auto_publish(repository):
    generator = _generator(repository, FakeCompletionClient())

    result = await generator.generate(_request(auto_publish=False))

    post = await repository.get_by_id(result.post_id)
    assert post.published_at is None
    assert result.published is False


@pytest.mark.asyncio
async def test_structural_prompt_uses_request_fields(repository):
    client = FakeCompletionClient()
    generator = _generator(repository, client)

    await generator.generate(_request(word_count_target=1500, include_faq=False))

    prompt = client.calls_for(ModelTier.STRUCTURAL)[0]["prompt"]
    assert "Target word count: 1500 words" in prompt
    assert '"faqSection"' not in prompt
    assert "(2025)" in prompt


@pytest.mark.asyncio
async def test_prompt_year_and_match_tag_agree(repository):
    later = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)
    client = FakeCompletionClient()
    generator = _generator(repository, client, clock=lambda: later)

    result = await generator.generate(_request())

    prompt = client.calls_for(ModelTier.STRUCTURAL)[0]["prompt"]
    assert "Include current year (2026)" in prompt
    post = await repository.get_by_id(result.post_id)
    assert "match 2026" in post.tag_list
    assert "match 2025" not in post.tag_list


@pytest.mark.asyncio
async def test_enhanced_sections_are_persisted(repository):
    long_a = "<h2>Alpha</h2><p>" + "a" * 300 + "</p>"
    long_b = "<h2>Beta</h2><p>" + "b" * 300 + "</p>"
    client = (
        FakeCompletionClient()
        .script(ModelTier.STRUCTURAL, json.dumps({"content": long_a + long_b}))
        .script(ModelTier.ENHANCEMENT, "<h2>Alpha</h2><p>expanded</p>", AIProviderError("busy"))
    )
    generator = _generator(repository, client)

    result = await generator.generate(_request())

    post = await repository.get_by_id(result.post_id)
    assert post.content == "<h2>Alpha</h2><p>expanded</p>\n\n" + long_b


@pytest.mark.asyncio
async def test_enhancement_prompts_carry_draft_related_keywords(repository):
    long_a = "<h2>Alpha</h2><p>" + "a" * 300 + "</p>"
    long_b = "<h2>Beta</h2><p>" + "b" * 300 + "</p>"
    reply = json.dumps(
        {"content": long_a + long_b, "relatedKeywords": ["match rank list", "userkw"]}
    )
    client = FakeCompletionClient().script(ModelTier.STRUCTURAL, reply)
    generator = _generator(repository, client)

    await generator.generate(_request(target_keywords=["userkw"]))

    prompts = [c["prompt"] for c in client.calls_for(ModelTier.ENHANCEMENT)]
    assert len(prompts) == 2
    for prompt in prompts:
        assert "Target Keywords: userkw, match rank list" in prompt


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides",
    [
        {"category": None},
        {"topic": ""},
        {"topic": "   "},
        {"category": "NOT_A_CATEGORY"},
        {"topic": "!!!"},
    ],
)
async def test_invalid_request_is_rejected_before_model_call(repository, overrides):
    client = FakeCompletionClient()
    generator = _generator(repository, client)

    with pytest.raises(GenerationRejected):
        await generator.generate(_request(**overrides))

    assert client.calls == []
    assert await repository.count() == 0
    assert generator.last_run.stage == GenerationStage.FAILED


@pytest.mark.asyncio
async def test_existing_slug_is_rejected_before_model_call(repository):
    await _generator(repository, FakeCompletionClient()).generate(_request())

    client = FakeCompletionClient()
    generator = _generator(repository, client)
    with pytest.raises(SlugConflictError) as exc_info:
        await generator.generate(_request(topic="How to write a compelling ERAS personal statement!"))

    assert str(exc_info.value) == "A post with this topic already exists"
    assert client.calls == []
    assert await repository.count() == 1


# ---------------------------------------------------------------------------
# Failures that persist nothing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   ", json.dumps({"content": ""}), json.dumps({"metaDescription": "m"})])
async def test_empty_content_persists_nothing(repository, reply):
    client = FakeCompletionClient().script(ModelTier.STRUCTURAL, reply)
    generator = _generator(repository, client)

    with pytest.raises(EmptyContentError):
        await generator.generate(_request())

    assert await repository.count() == 0
    assert client.calls_for(ModelTier.ENHANCEMENT) == []
    assert GenerationStage.PARSING_DRAFT in generator.last_run.stages
    assert generator.last_run.stage == GenerationStage.FAILED


@pytest.mark.asyncio
async def test_provider_error_persists_nothing(repository):
    client = FakeCompletionClient().script(ModelTier.STRUCTURAL, AIProviderError("timed out"))
    generator = _generator(repository, client)

    with pytest.raises(AIProviderError):
        await generator.generate(_request())

    assert await repository.count() == 0
    assert generator.last_run.error == "timed out"


@pytest.mark.asyncio
async def test_unexpected_client_error_is_wrapped(repository):
    client = FakeCompletionClient().script(ModelTier.STRUCTURAL, RuntimeError("socket closed"))
    generator = _generator(repository, client)

    with pytest.raises(AIProviderError):
        await generator.generate(_request())

    assert await repository.count() == 0


# ---------------------------------------------------------------------------
# Notification
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_search_engines_are_notified(repository):
    notifier = FakeNotifier()
    generator = _generator(repository, FakeCompletionClient(), notifier=notifier)

    result = await generator.generate(_request())

    await drain_notifications()
    assert notifier.sitemap_pings == 1
    assert notifier.submitted == [f"https://www.myerasediting.com/blog/{result.slug}"]


@pytest.mark.asyncio
async def test_notification_failure_is_swallowed(repository):
    notifier = FakeNotifier(error=RuntimeError("ping endpoint down"))
    generator = _generator(repository, FakeCompletionClient(), notifier=notifier)

    result = await generator.generate(_request())
    await drain_notifications()

    assert await repository.get_by_id(result.post_id) is not None
    assert generator.last_run.stage == GenerationStage.DONE


class _SlowNotifier(FakeNotifier):
    def __init__(self):
        super().__init__()
        self.gate = asyncio.Event()

    async def ping_sitemap(self) -> dict[str, bool]:
        await self.gate.wait()
        return await super().ping_sitemap()


@pytest.mark.asyncio
async def test_generation_does_not_wait_for_slow_notification(repository):
    notifier = _SlowNotifier()
    generator = _generator(repository, FakeCompletionClient(), notifier=notifier)

    result = await generator.generate(_request())

    assert result.published is True
    assert notifier.submitted == []

    notifier.gate.set()
    await drain_notifications()
    assert notifier.sitemap_pings == 1
    assert notifier.submitted == [f"https://www.myerasediting.com/blog/{result.slug}"]


# ---------------------------------------------------------------------------
# Scheduled and batch generation
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_scheduled_generation_publishes_catalog_topic(repository):
    selector = TopicSelector(catalog={BlogCategory.APPLICATION_TIPS: ["Only Catalog Topic"]})
    client = FakeCompletionClient()
    generator = _generator(repository, client, topic_selector=selector)

    post = await generator.generate_scheduled()

    assert post is not None
    assert post.title == "Only Catalog Topic"
    assert post.published_at is not None
    assert "Target word count: 2000 words" in client.calls_for(ModelTier.STRUCTURAL)[0]["prompt"]


@pytest.mark.asyncio
async def test_scheduled_generation_returns_none_when_exhausted(repository):
    selector = TopicSelector(catalog={BlogCategory.APPLICATION_TIPS: ["Only Catalog Topic"]})
    generator = _generator(repository, FakeCompletionClient(), topic_selector=selector)

    assert await generator.generate_scheduled() is not None
    assert await generator.generate_scheduled() is None
    assert await repository.count() == 1


@pytest.mark.asyncio
async def test_scheduled_generation_returns_none_on_slug_conflict(repository):
    choice = TopicChoice(topic="Repeated Topic", category=BlogCategory.MATCH_STRATEGY)
    await _generator(repository, FakeCompletionClient()).generate(
        _request(topic="Repeated Topic", category="MATCH_STRATEGY")
    )

    client = FakeCompletionClient()
    generator = _generator(repository, client, topic_selector=_FixedSelector(choice))

    assert await generator.generate_scheduled() is None
    assert client.calls == []


@pytest.mark.asyncio
async def test_batch_continues_past_failures(repository):
    selector = TopicSelector(
        catalog={BlogCategory.INTERVIEW_PREP: ["Batch Topic One", "Batch Topic Two", "Batch Topic Three"]}
    )
    client = FakeCompletionClient().script(
        ModelTier.STRUCTURAL,
        json.dumps({"content": "<p>first</p>"}),
        AIProviderError("overloaded"),
        json.dumps({"content": "<p>third</p>"}),
    )
    sleep = _SleepRecorder()
    generator = _generator(
        repository, client, topic_selector=selector, sleep=sleep, config=_config(batch_delay_seconds=10)
    )
    progress: list[tuple[int, bool]] = []

    async def on_progress(completed, post):
        progress.append((completed, post is not None))

    posts = await generator.generate_batch(3, on_progress=on_progress)

    assert len(posts) == 2
    assert await repository.count() == 2
    assert progress == [(1, True), (2, False), (3, True)]
    assert sleep.calls == [10, 10]
