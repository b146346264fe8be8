"""
Anthropic Claude adapter for blog content generation.
"""

import logging
from typing import Optional

import anthropic

from core.domain.errors import AIProviderError
from core.interfaces.services import CompletionClient, ModelTier
from infrastructure.config.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class AnthropicCompletionClient(CompletionClient):
    """Completion client backed by the Anthropic Messages API.

    Each model tier maps to its own model id, token budget and temperature
    from settings. Calls are made once; errors surface as AIProviderError.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        config: Optional[Settings] = None,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        self._settings = config or default_settings
        key = api_key or self._settings.anthropic_api_key
        if client is not None:
            self._client = client
        elif key:
            self._client = anthropic.AsyncAnthropic(
                api_key=key,
                timeout=float(self._settings.ai_timeout),
                max_retries=0,
            )
        else:
            self._client = None

    def _tier_defaults(self, tier: ModelTier) -> tuple[str, int, float]:
        s = self._settings
        if tier == ModelTier.STRUCTURAL:
            return s.structural_model, s.structural_max_tokens, s.structural_temperature
        if tier == ModelTier.ENHANCEMENT:
            return s.enhancement_model, s.enhancement_max_tokens, s.enhancement_temperature
        return s.suggestion_model, s.suggestion_max_tokens, s.suggestion_temperature

    async def complete(
        self,
        prompt: str,
        tier: ModelTier,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Submit a single user message and return the text of the reply.

        Args:
            prompt: Full prompt text
            tier: Which configured model to use
            max_tokens: Override the tier's token budget
            temperature: Override the tier's temperature

        Returns:
            Raw completion text (empty string if the reply held no text block)

        Raises:
            AIProviderError: If the key is missing or the API call fails
        """
        if not self._client:
            raise AIProviderError("ANTHROPIC_API_KEY is not set")

        model, default_max_tokens, default_temperature = self._tier_defaults(tier)

        try:
            message = await self._client.messages.create(
                model=model,
                max_tokens=max_tokens or default_max_tokens,
                temperature=default_temperature if temperature is None else temperature,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error("Anthropic %s call failed (model=%s): %s", tier.value, model, e)
            raise AIProviderError(f"AI provider request failed: {e}") from e

        if message.stop_reason == "max_tokens":
            logger.warning(
                "Anthropic %s completion truncated (model=%s, max_tokens=%d)",
                tier.value, model, max_tokens or default_max_tokens,
            )

        for block in message.content:
            if getattr(block, "type", None) == "text":
                logger.debug("Anthropic %s completion: %d chars", tier.value, len(block.text))
                return block.text
        return ""
