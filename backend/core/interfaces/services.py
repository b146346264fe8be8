"""Service interfaces for external integrations."""

from abc import ABC, abstractmethod
from enum import Enum


class ModelTier(str, Enum):
    """Which model a completion is issued against.

    STRUCTURAL drafts the whole article, ENHANCEMENT expands single
    sections and is expected to be cheaper/faster, SUGGESTION brainstorms
    topic ideas.
    """

    STRUCTURAL = "structural"
    ENHANCEMENT = "enhancement"
    SUGGESTION = "suggestion"


class CompletionClient(ABC):
    """Submit a prompt to a language-model provider and get text back.

    Implementations must not retry internally; any provider failure is
    raised as ``AIProviderError`` so the caller decides what to do with it.
    """

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        tier: ModelTier,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """Return the raw completion text for *prompt*."""
        ...


class SearchEngineNotifier(ABC):
    """Best-effort notification of search engines about new content."""

    @abstractmethod
    async def ping_sitemap(self) -> dict[str, bool]:
        """Tell search engines the sitemap changed. Returns per-engine success."""
        ...

    @abstractmethod
    async def submit_url(self, url: str) -> dict[str, bool]:
        """Submit a single new URL for indexing. Returns per-endpoint success."""
        ...
