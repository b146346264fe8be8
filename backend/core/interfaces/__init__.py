# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .repositories import BlogPostRepository
from .services import CompletionClient, ModelTier, SearchEngineNotifier

__all__ = [
    "BlogPostRepository",
    "CompletionClient",
    "ModelTier",
    "SearchEngineNotifier",
]
