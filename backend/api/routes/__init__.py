"""API Routes."""

from fastapi import APIRouter

from .admin_blog import router as admin_blog_router
from .blog import router as blog_router
from .health import router as health_router

# Create main API router
api_router = APIRouter()

# Include route modules
api_router.include_router(health_router, tags=["Health"])
api_router.include_router(blog_router)
api_router.include_router(admin_blog_router)
