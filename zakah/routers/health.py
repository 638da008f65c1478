from fastapi import APIRouter

from zakah.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/health", summary="Liveness probe")
async def health():
    settings = get_settings()
    return {"status": "ok", "version": settings.version, "rate_provider": settings.rate_provider}
