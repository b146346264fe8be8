"""
Prompt templates for the blog pipeline.

Three prompts: the structural pass that drafts the whole article as one
JSON object, the per-section enhancement pass, and topic suggestions.
All builders are pure functions of their arguments.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from core.domain.blog import BlogCategory


def sanitize_prompt_input(text: Optional[str], max_length: int) -> str:
    """Strip control characters and limit length to prevent prompt injection."""
    if not text:
        return ""
    text = re.sub(r"[\r\n\t\x00-\x1f\x7f]", " ", text)
    text = re.sub(r" +", " ", text).strip()
    return text[:max_length]


def _clean_keywords(keywords: Iterable[str]) -> list[str]:
    cleaned = (sanitize_prompt_input(k, 100) for k in keywords)
    return [k for k in cleaned if k]


def _current_year() -> int:
    return datetime.now(timezone.utc).year


def build_structural_prompt(
    topic: str,
    category: BlogCategory,
    target_keywords: Iterable[str] = (),
    word_count_target: int = 2000,
    include_faq: bool = True,
    year: Optional[int] = None,
) -> str:
    """Prompt for the first pass: a full article plus metadata as a single JSON object."""
    topic = sanitize_prompt_input(topic, 300)
    keywords = _clean_keywords(target_keywords)
    year = year or _current_year()

    keywords_prompt = (
        f"- Target these keywords naturally: {', '.join(keywords)}\n" if keywords else ""
    )
    faq_prompt = (
        'Include 5-8 relevant FAQs that address common "People Also Ask" questions about the topic.'
        if include_faq
        else ""
    )
    faq_field = (
        """
  "faqSection": [
    {
      "question": "Frequently asked question",
      "answer": "Detailed answer"
    }
  ],"""
        if include_faq
        else ""
    )

    return f"""You are an expert medical educator and residency application advisor with deep knowledge of SEO and content marketing. Write a comprehensive, SEO-optimized blog post about: "{topic}"

The blog post should be targeted at medical students applying for residency through ERAS.
Category: {category.label}
Target word count: {word_count_target} words

IMPORTANT SEO REQUIREMENTS:
- Include the main keyword "{topic}" in the first paragraph
- Use related keywords naturally throughout the content
{keywords_prompt}- Include long-tail keyword variations
- Optimize for featured snippets with clear, concise answers
- Include current year ({year}) where relevant
- Target specific search intents

IMPORTANT: Return ONLY a valid JSON object (not markdown code blocks) with this exact structure:
{{
  "content": "HTML content of the main article",
  "metaDescription": "A 150-160 character SEO description including the main keyword",{faq_field}
  "relatedKeywords": ["keyword1", "keyword2", "keyword3"]
}}

Do not include any text before or after the JSON object. Do not wrap it in code fences. The response should start with {{ and end with }}

For the main content:
1. Start with an engaging introduction (2-3 paragraphs) that includes the main keyword
2. Include 5-7 main sections with clear, keyword-rich subheadings
3. Use bullet points and numbered lists for better readability and featured snippets
4. Include specific, actionable advice with current statistics and data
5. Add a "Quick Answer" section near the beginning for featured snippet optimization
6. Include real examples and scenarios from residency applications
7. End with a conclusion that summarizes key points and includes a call-to-action

Write the content in HTML format with proper tags:
- Use <h2> for main section headings
- Use <h3> for subsection headings
- Use <p> for paragraphs
- Use <ul> and <li> for bullet points
- Use <ol> and <li> for numbered lists
- Use <strong> for emphasis
- Use <blockquote> for important quotes or tips

{faq_prompt}

Make the content informative, practical, and engaging. Include specific examples and real scenarios that medical students face during the residency application process."""


def build_enhancement_prompt(
    section_content: str,
    section_title: str,
    topic: str,
    target_keywords: Iterable[str] = (),
) -> str:
    """Prompt for the second pass: expand one HTML section, keeping its heading."""
    keywords = _clean_keywords(target_keywords)

    return f"""You are an expert content enhancer for medical residency application articles. Your task is to expand and enrich this content section while maintaining accuracy and SEO optimization.

Guidelines:
- Add more detailed explanations, examples, and practical tips
- Include relevant statistics, facts, or real scenarios medical students face
- Maintain a professional but approachable tone
- Keep the HTML formatting (h2, h3, p, ul, li, strong tags)
- Naturally incorporate keywords without stuffing
- Add bullet points or numbered lists where they improve readability
- Include actionable advice applicants can use immediately
- Reference current ERAS/NRMP data where applicable

Topic: "{sanitize_prompt_input(topic, 300)}"
Section Title: {sanitize_prompt_input(section_title, 300)}
Target Keywords: {', '.join(keywords)}

Original Content:
{section_content}

Please expand this section to be 2-3x more detailed with:
- More specific examples and real scenarios
- Practical, actionable tips
- Relevant statistics or data points
- Better structured information (lists, subpoints)
- Insider tips from successful applicants

Return ONLY the enhanced HTML content for this section (including the heading tag). Do not include any explanation or markdown - just the HTML."""


def build_topic_suggestion_prompt(
    category: BlogCategory,
    existing_titles: Iterable[str],
    count: int = 5,
    year: Optional[int] = None,
    site_name: str = "myerasediting.com",
) -> str:
    """Prompt asking for *count* new topic ideas that avoid existing titles."""
    titles = [sanitize_prompt_input(t, 300) for t in existing_titles]
    existing = "\n".join(t for t in titles if t) or "No existing topics yet"
    year = year or _current_year()

    return f"""You are an expert in ERAS residency applications and SEO content strategy.

Generate {count} unique, SEO-optimized blog post topic ideas for the category: "{category.description}"

These posts will be published on {site_name}, a service that helps medical students with their ERAS residency applications.

AVOID these existing topics (or very similar ones):
{existing}

Each topic should:
1. Be highly searchable (target what medical students actually search for)
2. Include specific keywords that people use in Google
3. Be actionable and provide value
4. Target the {year} residency application cycle
5. Be between 8-15 words

Return ONLY a valid JSON object with this structure:
{{
  "topics": [
    {{
      "title": "The exact blog post title",
      "description": "A 1-2 sentence description of what the post will cover",
      "keywords": ["keyword1", "keyword2", "keyword3"]
    }}
  ]
}}

Do not include any text before or after the JSON object."""
