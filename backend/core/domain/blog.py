"""Blog domain entities."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .errors import GenerationRejected


class BlogCategory(str, Enum):
    """Fixed set of blog categories."""

    APPLICATION_TIPS = "APPLICATION_TIPS"
    PERSONAL_STATEMENT = "PERSONAL_STATEMENT"
    INTERVIEW_PREP = "INTERVIEW_PREP"
    SPECIALTY_GUIDES = "SPECIALTY_GUIDES"
    TIMELINE_PLANNING = "TIMELINE_PLANNING"
    PROGRAM_SELECTION = "PROGRAM_SELECTION"
    MATCH_STRATEGY = "MATCH_STRATEGY"
    SUCCESS_STORIES = "SUCCESS_STORIES"

    @property
    def label(self) -> str:
        """Human-readable name, e.g. "personal statement"."""
        return self.value.replace("_", " ").lower()

    @property
    def icon(self) -> str:
        """Icon key used by the blog UI, e.g. "personal-statement"."""
        return self.value.lower().replace("_", "-")

    @property
    def description(self) -> str:
        return CATEGORY_DESCRIPTIONS[self]

    @property
    def tags(self) -> list[str]:
        return list(CATEGORY_TAGS[self])


CATEGORY_DESCRIPTIONS: dict[BlogCategory, str] = {
    BlogCategory.APPLICATION_TIPS: "Tips for completing ERAS applications, activity descriptions, and overall application strategy",
    BlogCategory.PERSONAL_STATEMENT: "Writing compelling personal statements for residency applications",
    BlogCategory.INTERVIEW_PREP: "Preparing for residency interviews, common questions, and interview etiquette",
    BlogCategory.SPECIALTY_GUIDES: "Guides for specific medical specialties and their application requirements",
    BlogCategory.TIMELINE_PLANNING: "Application timelines, deadlines, and scheduling strategies",
    BlogCategory.PROGRAM_SELECTION: "How to research and select residency programs",
    BlogCategory.MATCH_STRATEGY: "Strategies for the match process and ranking programs",
    BlogCategory.SUCCESS_STORIES: "Success stories and lessons learned from matched residents",
}

CATEGORY_TAGS: dict[BlogCategory, tuple[str, ...]] = {
    BlogCategory.APPLICATION_TIPS: ("application tips", "ERAS tips", "application strategy"),
    BlogCategory.PERSONAL_STATEMENT: ("personal statement", "PS writing", "residency essay"),
    BlogCategory.INTERVIEW_PREP: ("interview tips", "residency interview", "MMI prep"),
    BlogCategory.SPECIALTY_GUIDES: ("specialty selection", "medical specialties", "career path"),
    BlogCategory.TIMELINE_PLANNING: ("application timeline", "ERAS deadlines", "match calendar"),
    BlogCategory.PROGRAM_SELECTION: ("program research", "residency programs", "where to apply"),
    BlogCategory.MATCH_STRATEGY: ("match strategy", "rank list", "NRMP match"),
    BlogCategory.SUCCESS_STORIES: ("match success", "residency journey", "applicant stories"),
}


def parse_category(value: Any) -> BlogCategory:
    """Coerce a raw category value, raising GenerationRejected on unknown values."""
    if isinstance(value, BlogCategory):
        return value
    try:
        return BlogCategory(str(value).strip().upper())
    except ValueError:
        raise GenerationRejected(f"Unknown category: {value!r}") from None


class GenerationStage(str, Enum):
    """Stages of a single generation run."""

    SELECTING_TOPIC = "selecting_topic"
    CHECKING_SLUG = "checking_slug_uniqueness"
    GENERATING_DRAFT = "generating_draft"
    PARSING_DRAFT = "parsing_draft"
    ENHANCING_SECTIONS = "enhancing_sections"
    ASSEMBLING = "assembling"
    PERSISTING = "persisting"
    NOTIFYING = "notifying_search_engines"
    DONE = "done"
    FAILED = "failed"


@dataclass
class TopicChoice:
    """A (topic, category, icon) triple picked for generation."""

    topic: str
    category: BlogCategory
    icon: str = ""

    def __post_init__(self):
        if isinstance(self.category, str):
            self.category = BlogCategory(self.category)
        if not self.icon:
            self.icon = self.category.icon


@dataclass
class GenerationRequest:
    """Parameters for one article generation run. Never persisted."""

    category: Optional[BlogCategory]
    topic: str
    target_keywords: list[str] = field(default_factory=list)
    word_count_target: int = 2000
    include_faq: bool = True
    auto_publish: bool = True

    def validate(self) -> None:
        """Reject the request before any model call if required fields are missing."""
        if not self.category or not (self.topic or "").strip():
            raise GenerationRejected("Category and topic are required")
        self.category = parse_category(self.category)
        self.topic = self.topic.strip()
        self.target_keywords = [k.strip() for k in self.target_keywords if k and k.strip()]


@dataclass
class DraftArticle:
    """Result of the structural pass after parsing."""

    content: str
    meta_description: Optional[str] = None
    faq_section: list[dict] = field(default_factory=list)
    related_keywords: list[str] = field(default_factory=list)


@dataclass
class EnhancedArticle(DraftArticle):
    """Draft after the section enhancement pass, with computed read time."""

    read_time: int = 1


@dataclass
class BlogPostRecord:
    """A fully assembled blog post that has not been persisted yet."""

    title: str
    slug: str
    excerpt: str
    content: str
    category: BlogCategory
    tags: list[str]
    icon: str
    read_time: int
    featured: bool
    author: str
    meta_description: Optional[str]
    faq_section: Optional[list[dict]]
    schema_markup: str
    published_at: Optional[datetime] = None

    @property
    def tags_string(self) -> str:
        """Flattened comma-joined tag list, as stored."""
        return ", ".join(self.tags)


@dataclass
class GenerationResult:
    """Outcome returned to the caller of a successful generation."""

    post_id: str
    slug: str
    read_time: int
    title: str = ""
    published: bool = False


@dataclass
class TopicSuggestion:
    """A topic idea returned by the suggestion call."""

    title: str
    description: str = ""
    keywords: list[str] = field(default_factory=list)
