from typing import Any

from fastapi import APIRouter

from core.config import get_settings
from legal.frameworks import FRAMEWORKS, LANGUAGES
from schemas.responses import FrameworkCatalog

router = APIRouter()

@router.get("/config", tags=["System"])
async def get_configuration() -> dict[str, Any]:
    """Get current runtime configuration with credentials masked."""
    return get_settings().redacted_dump()


@router.get("/frameworks", response_model=FrameworkCatalog, tags=["System"])
async def list_frameworks():
    """Supported legal frameworks and translation languages."""
    return FrameworkCatalog(frameworks=dict(FRAMEWORKS), languages=dict(LANGUAGES))
