"""
Parsing of the structural-pass response into a DraftArticle.

The model is asked for a bare JSON object, but replies are not always
well formed. Recovery order:

1. strict JSON parse of the whole reply
2. JSON parse of the body of a ```json fence, if the reply has one
3. the raw reply itself as content (wrapped in <p> when it has no tags)

Only empty content after recovery is an error.
"""

import json
import logging
from typing import Any, Optional

from core.domain.blog import DraftArticle
from core.domain.errors import EmptyContentError
from services.blog_text import has_html_tags

logger = logging.getLogger(__name__)


def _unwrap_code_fence(text: str) -> Optional[str]:
    if "```json" in text:
        return text.split("```json")[1].split("```")[0]
    if "```" in text:
        parts = text.split("```")
        if len(parts) >= 3:
            return parts[1]
    return None


def extract_json_object(raw_text: str) -> Optional[dict[str, Any]]:
    """Return the JSON object in *raw_text*, or None when there isn't one."""
    candidates = [raw_text.strip()]
    fenced = _unwrap_code_fence(raw_text)
    if fenced is not None:
        candidates.append(fenced.strip())

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(data, dict):
            return data
    return None


def wrap_plain_text(text: str) -> str:
    """Give tagless text minimal HTML framing."""
    if has_html_tags(text):
        return text
    return f"<p>{text}</p>"


def _clean_faq(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    faqs = []
    for item in value:
        if isinstance(item, dict) and "question" in item and "answer" in item:
            faqs.append({"question": str(item["question"]), "answer": str(item["answer"])})
    return faqs


def _clean_keywords(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [k.strip() for k in value if isinstance(k, str) and k.strip()]


def parse_structured_response(raw_text: str) -> DraftArticle:
    """
    Turn a raw structural-pass reply into a DraftArticle.

    Raises:
        EmptyContentError: if no non-blank content survives recovery.
    """
    raw_text = raw_text or ""
    data = extract_json_object(raw_text)

    if data is not None:
        content = data.get("content")
        if content is None:
            content = ""
        elif not isinstance(content, str):
            content = str(content)

        meta = data.get("metaDescription")
        draft = DraftArticle(
            content=content,
            meta_description=str(meta) if meta else None,
            faq_section=_clean_faq(data.get("faqSection")),
            related_keywords=_clean_keywords(data.get("relatedKeywords")),
        )
    else:
        logger.warning(
            "Structural response was not valid JSON (%d chars), using raw text", len(raw_text)
        )
        draft = DraftArticle(content=raw_text)

    if not draft.content.strip():
        raise EmptyContentError()

    draft.content = wrap_plain_text(draft.content)
    return draft
