"""
Text helpers shared by the blog pipeline: slugs, tag stripping, word counts.
"""

import math
import re
import unicodedata

_TAG_RE = re.compile(r"<[^>]*>")
_MARKUP_RE = re.compile(r"<[a-zA-Z/!][^>]*>")


def slugify(text: str) -> str:
    """Convert text to a lowercase, URL-safe slug (ASCII letters, digits, hyphens)."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    text = re.sub(r"^-+|-+$", "", text)
    return text[:200]


def has_html_tags(text: str) -> bool:
    """True if *text* contains an actual tag, comment or doctype."""
    return _MARKUP_RE.search(text) is not None


def strip_html(html: str) -> str:
    """Remove every tag, keeping the text between them as-is."""
    return _TAG_RE.sub("", html)


def count_words(html: str) -> int:
    """Whitespace-delimited tokens in the tag-stripped text."""
    return len(strip_html(html).split())


def calculate_read_time(html: str, words_per_minute: int = 200) -> int:
    """Estimated read time in whole minutes, rounded up, never below 1."""
    return max(1, math.ceil(count_words(html) / words_per_minute))
