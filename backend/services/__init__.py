"""
Service layer: the blog generation pipeline and its background runners.
"""

from services.blog_generator import BlogGenerator
from services.blog_scheduler import BlogSchedulerService
from services.generation_jobs import generation_jobs
from services.topic_suggester import TopicSuggester

__all__ = [
    "BlogGenerator",
    "BlogSchedulerService",
    "TopicSuggester",
    "generation_jobs",
]
