"""Version 1 API routers."""

from fastapi import APIRouter

from .sessions import router as sessions_router

api_router = APIRouter()
api_router.include_router(sessions_router)


@api_router.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}


__all__ = ["api_router"]
