"""
OpenAI chat-completions adapter.

Same contract as the Anthropic client, for deployments that select
``AI_PROVIDER=openai``. Talks to the REST API directly over httpx.
"""

import logging
from typing import Optional

import httpx

from core.domain.errors import AIProviderError
from core.interfaces.services import CompletionClient, ModelTier
from infrastructure.config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class OpenAICompletionClient(CompletionClient):
    """Completion client backed by the OpenAI chat completions endpoint."""

    CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

    # Used when the configured model ids are Anthropic ones
    DEFAULT_MODELS = {
        ModelTier.STRUCTURAL: "gpt-4o",
        ModelTier.ENHANCEMENT: "gpt-4o-mini",
        ModelTier.SUGGESTION: "gpt-4o",
    }

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = config or default_settings
        self.api_key = api_key or self._settings.openai_api_key
        self._client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=float(self._settings.ai_timeout))
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _tier_defaults(self, tier: ModelTier) -> tuple[str, int, float]:
        s = self._settings
        if tier == ModelTier.STRUCTURAL:
            model, max_tokens, temperature = s.structural_model, s.structural_max_tokens, s.structural_temperature
        elif tier == ModelTier.ENHANCEMENT:
            model, max_tokens, temperature = s.enhancement_model, s.enhancement_max_tokens, s.enhancement_temperature
        else:
            model, max_tokens, temperature = s.suggestion_model, s.suggestion_max_tokens, s.suggestion_temperature
        if model.startswith("claude"):
            model = self.DEFAULT_MODELS[tier]
        return model, max_tokens, temperature

    async def complete(
        self,
        prompt: str,
        tier: ModelTier,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if not self.api_key:
            raise AIProviderError("OPENAI_API_KEY is not set")

        model, default_max_tokens, default_temperature = self._tier_defaults(tier)
        payload = {
            "model": model,
            "max_tokens": max_tokens or default_max_tokens,
            "temperature": default_temperature if temperature is None else temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        try:
            response = await self._get_client().post(
                self.CHAT_COMPLETIONS_URL,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json=payload,
            )
        except httpx.HTTPError as e:
            logger.error("OpenAI %s request failed: %s", tier.value, e)
            raise AIProviderError(f"AI provider request failed: {e}") from e

        if response.status_code != 200:
            logger.error("OpenAI %s call returned %d: %s", tier.value, response.status_code, response.text[:500])
            raise AIProviderError(f"AI provider returned status {response.status_code}")

        try:
            data = response.json()
            return data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AIProviderError(f"Unexpected AI provider response: {e}") from e
