"""
Topic catalog and selection for unattended blog generation.

Topics are drawn from a fixed catalog. The hour of day decides which
categories are tried first; any topic whose slug matches an existing
post title is skipped.
"""

import logging
import random
from datetime import datetime
from typing import Iterable, Optional

from core.domain.blog import BlogCategory, TopicChoice
from services.blog_text import slugify

logger = logging.getLogger(__name__)


TOPIC_CATALOG: dict[BlogCategory, list[str]] = {
    BlogCategory.APPLICATION_TIPS: [
        "How to Write ERAS Experience Descriptions That Stand Out",
        "Choosing Your Three Most Meaningful Experiences on ERAS",
        "Common ERAS Application Mistakes and How to Avoid Them",
        "How to Request Strong Letters of Recommendation for Residency",
        "Writing ERAS Hobbies and Interests That Spark Interview Conversations",
        "How to Address Red Flags in Your Residency Application",
    ],
    BlogCategory.PERSONAL_STATEMENT: [
        "How to Write a Compelling ERAS Personal Statement",
        "Personal Statement Opening Lines That Grab Program Directors",
        "Tailoring Your Personal Statement for Different Specialties",
        "Personal Statement Mistakes That Cost Applicants Interviews",
        "How Long Should Your Residency Personal Statement Be",
        "Turning Clinical Stories Into a Memorable Personal Statement",
    ],
    BlogCategory.INTERVIEW_PREP: [
        "Top Residency Interview Questions and How to Answer Them",
        "How to Prepare for Virtual Residency Interviews",
        "Behavioral Interview Questions for Residency Applicants",
        "Questions to Ask Program Directors During Residency Interviews",
        "Residency Interview Thank You Notes and Follow Up Etiquette",
        "How to Talk About Weaknesses in a Residency Interview",
    ],
    BlogCategory.SPECIALTY_GUIDES: [
        "Internal Medicine Residency Application Guide",
        "How to Match Into Emergency Medicine Residency",
        "Applying to Competitive Surgical Residencies",
        "Family Medicine Residency Application Tips",
        "Psychiatry Residency Application Strategy",
        "Pediatrics Residency Application Guide for Medical Students",
    ],
    BlogCategory.TIMELINE_PLANNING: [
        "ERAS Application Timeline Month by Month",
        "When to Submit Your ERAS Application for the Best Results",
        "Planning Away Rotations Around the Residency Application Cycle",
        "Key NRMP Match Deadlines Every Applicant Should Know",
        "How to Plan Your Fourth Year of Medical School for Residency Applications",
    ],
    BlogCategory.PROGRAM_SELECTION: [
        "How Many Residency Programs Should You Apply To",
        "How to Research Residency Programs Before Applying",
        "Community Versus Academic Residency Programs Compared",
        "Using Program Signals Effectively in ERAS",
        "Evaluating Residency Program Culture and Wellness",
    ],
    BlogCategory.MATCH_STRATEGY: [
        "How to Build Your Residency Rank Order List",
        "Couples Match Strategy for Residency Applicants",
        "What to Do If You Do Not Match Into Residency",
        "Navigating SOAP During Match Week",
        "Dual Applying to Two Specialties Without Hurting Your Match Chances",
    ],
    BlogCategory.SUCCESS_STORIES: [
        "How an IMG Matched Into Internal Medicine on the First Try",
        "From Unmatched to Matched Lessons From a Reapplicant",
        "How a Low Step Score Applicant Matched Into Their Top Choice",
        "Lessons From Applicants Who Matched Into Competitive Specialties",
        "How Nontraditional Medical Students Matched Into Residency",
    ],
}

# Categories tried first for each part of the day
MORNING_CATEGORIES = (
    BlogCategory.APPLICATION_TIPS,
    BlogCategory.TIMELINE_PLANNING,
    BlogCategory.PERSONAL_STATEMENT,
)
AFTERNOON_CATEGORIES = (
    BlogCategory.INTERVIEW_PREP,
    BlogCategory.PROGRAM_SELECTION,
    BlogCategory.SPECIALTY_GUIDES,
)
EVENING_CATEGORIES = (
    BlogCategory.MATCH_STRATEGY,
    BlogCategory.SUCCESS_STORIES,
)


def categories_for_hour(hour: int) -> tuple[BlogCategory, ...]:
    """Preferred categories for a given hour (0-23)."""
    if 5 <= hour < 12:
        return MORNING_CATEGORIES
    if 12 <= hour < 18:
        return AFTERNOON_CATEGORIES
    return EVENING_CATEGORIES


class TopicSelector:
    """Picks an unused topic from the catalog."""

    def __init__(
        self,
        catalog: Optional[dict[BlogCategory, list[str]]] = None,
        rng: Optional[random.Random] = None,
    ):
        self._catalog = catalog if catalog is not None else TOPIC_CATALOG
        self._rng = rng or random.Random()

    def available_topics(
        self,
        used_titles: Iterable[str],
        categories: Optional[Iterable[BlogCategory]] = None,
    ) -> list[TopicChoice]:
        """Catalog topics in *categories* whose slug is not already taken."""
        used_slugs = {slugify(title) for title in used_titles}
        wanted = list(categories) if categories is not None else list(self._catalog)
        return [
            TopicChoice(topic=topic, category=category)
            for category in wanted
            for topic in self._catalog.get(category, [])
            if slugify(topic) not in used_slugs
        ]

    def select_random(
        self,
        used_titles: Iterable[str],
        category: Optional[BlogCategory] = None,
    ) -> Optional[TopicChoice]:
        """Random unused topic, optionally restricted to one category."""
        candidates = self.available_topics(used_titles, [category] if category else None)
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def select_for_hour(self, hour: int, used_titles: Iterable[str]) -> Optional[TopicChoice]:
        """Random unused topic from the categories preferred at *hour*."""
        candidates = self.available_topics(used_titles, categories_for_hour(hour))
        if not candidates:
            return None
        return self._rng.choice(candidates)

    def select(
        self,
        used_titles: Iterable[str],
        now: Optional[datetime] = None,
        category: Optional[BlogCategory] = None,
    ) -> Optional[TopicChoice]:
        """
        Choose a topic for the next post.

        An explicit category restricts the choice to that category. Otherwise
        the time-of-day categories are tried first, then the whole catalog.
        Returns None only when no unused topic remains.
        """
        used = list(used_titles)
        if category is not None:
            return self.select_random(used, category)

        hour = (now or datetime.now()).hour
        choice = self.select_for_hour(hour, used) or self.select_random(used)
        if choice is None:
            logger.warning("Topic catalog exhausted (%d titles checked)", len(used))
        return choice
