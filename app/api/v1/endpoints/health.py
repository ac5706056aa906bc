from fastapi import APIRouter
from typing import Any

from app.core.config import settings

router = APIRouter()

@router.get("", response_model=dict[str, Any])
def health_check() -> Any:
    """
    Liveness probe; does not touch the database.
    """
    return {"success": True, "status": "ok", "version": settings.VERSION}
