"""Health check route."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter()


@router.get("/healthcheck", response_class=PlainTextResponse)
async def healthcheck() -> str:
    """Liveness probe. Does not touch the database."""
    return "healthy\n"
