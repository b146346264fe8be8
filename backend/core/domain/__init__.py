# Domain Entities
# Pure business objects with no external dependencies
from .blog import (
    BlogCategory,
    BlogPostRecord,
    DraftArticle,
    EnhancedArticle,
    GenerationRequest,
    GenerationResult,
    GenerationStage,
    TopicChoice,
    TopicSuggestion,
    parse_category,
)
from .errors import (
    AIProviderError,
    BlogGenerationError,
    EmptyContentError,
    GenerationRejected,
    SlugConflictError,
)

__all__ = [
    "BlogCategory",
    "BlogPostRecord",
    "DraftArticle",
    "EnhancedArticle",
    "GenerationRequest",
    "GenerationResult",
    "GenerationStage",
    "TopicChoice",
    "TopicSuggestion",
    "parse_category",
    "AIProviderError",
    "BlogGenerationError",
    "EmptyContentError",
    "GenerationRejected",
    "SlugConflictError",
]
