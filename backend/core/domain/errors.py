"""Blog generation error taxonomy."""


class BlogGenerationError(Exception):
    """Base class for all generation failures."""


class GenerationRejected(BlogGenerationError):
    """Precondition failed before any model call (missing fields, slug taken)."""


class SlugConflictError(GenerationRejected):
    """A post with the derived slug already exists."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__("A post with this topic already exists")


class EmptyContentError(BlogGenerationError):
    """The structural pass produced no usable content."""

    def __init__(self, message: str = "No valid content generated"):
        super().__init__(message)


class AIProviderError(BlogGenerationError):
    """The language-model provider call failed."""

