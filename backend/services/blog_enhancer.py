"""
Second-pass section enhancement.

The draft is split at every <h2> boundary and each substantial section is
sent back to the cheaper model for expansion, one call at a time. A
section that fails to enhance is kept as it was; the others carry on.
"""

import asyncio
import logging
import re
from typing import Awaitable, Callable, Iterable, Optional

from core.interfaces.services import CompletionClient, ModelTier
from services.blog_prompts import build_enhancement_prompt
from services.blog_text import strip_html

logger = logging.getLogger(__name__)

SECTION_BOUNDARY_RE = re.compile(r"(?=<h2[^>]*>)", re.IGNORECASE)
SECTION_HEADING_RE = re.compile(r"<h2[^>]*>(.*?)</h2>", re.IGNORECASE | re.DOTALL)

SKIP_HEADING_KEYWORD = "conclusion"
SECTION_SEPARATOR = "\n\n"


def split_sections(content: str) -> list[str]:
    """
    Split HTML into segments, each starting at an <h2> tag.

    Anything before the first <h2> is its own leading segment. Blank
    segments are dropped.
    """
    return [s for s in SECTION_BOUNDARY_RE.split(content) if s.strip()]


def extract_heading(section: str, index: int) -> str:
    """Plain text of the section's <h2>, or "Section N" (1-based) without one."""
    match = SECTION_HEADING_RE.search(section)
    if match:
        heading = strip_html(match.group(1)).strip()
        if heading:
            return heading
    return f"Section {index + 1}"


def should_skip(section: str, heading: str, min_length: int = 200) -> bool:
    """Short sections and conclusions are passed through untouched."""
    return len(section) < min_length or SKIP_HEADING_KEYWORD in heading.lower()


class SectionEnhancer:
    """Expands article sections sequentially with a pause between calls."""

    def __init__(
        self,
        client: CompletionClient,
        min_section_length: int = 200,
        delay_seconds: float = 0.5,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self._min_section_length = min_section_length
        self._delay_seconds = delay_seconds
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._sleep = sleep

    async def enhance_section(
        self,
        section: str,
        title: str,
        topic: str,
        keywords: Iterable[str],
    ) -> str:
        """
        Enhance a single section.

        Never raises: provider errors and empty replies fall back to the
        original section.
        """
        prompt = build_enhancement_prompt(section, title, topic, keywords)
        try:
            enhanced = await self._client.complete(
                prompt,
                ModelTier.ENHANCEMENT,
                max_tokens=self._max_tokens,
                temperature=self._temperature,
            )
        except Exception as e:
            logger.warning(f"Failed to enhance section '{title}': {e}")
            return section

        if not enhanced or not enhanced.strip():
            logger.warning(f"Empty enhancement for section '{title}', keeping original")
            return section
        return enhanced.strip()

    async def enhance(self, content: str, topic: str, keywords: Iterable[str] = ()) -> str:
        """
        Enhance every eligible section of *content* and reassemble.

        Output order always matches input order, whichever sections were
        skipped or failed.
        """
        keywords = list(keywords)
        sections = split_sections(content)

        if len(sections) <= 1:
            return await self.enhance_section(content, topic, topic, keywords)

        results: list[str] = []
        calls_made = 0
        for index, section in enumerate(sections):
            heading = extract_heading(section, index)
            if should_skip(section, heading, self._min_section_length):
                logger.debug(f"Skipping section '{heading}' ({len(section)} chars)")
                results.append(section)
                continue

            if calls_made and self._delay_seconds > 0:
                await self._sleep(self._delay_seconds)
            calls_made += 1
            results.append(await self.enhance_section(section, heading, topic, keywords))

        logger.info(
            "Enhanced %d of %d sections for '%s'", calls_made, len(sections), topic
        )
        return SECTION_SEPARATOR.join(results)
