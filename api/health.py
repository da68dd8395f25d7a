"""Health check endpoint."""

from fastapi import APIRouter

from config.settings import get_settings

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health")
async def health():
    settings = get_settings()
    return {
        "status": "healthy",
        "classifier": "keyword" if settings.use_keyword_classifier else settings.classifier_model,
        "contentModel": settings.content_model,
    }
