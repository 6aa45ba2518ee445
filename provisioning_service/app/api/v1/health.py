from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ...core.settings import get_settings
from ...utils.health_check import (
    create_provisioning_service_health_check_async as create_basic_health_check,
)

router = APIRouter()


@router.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint; 503 while the broker connection is down."""
    settings = get_settings()
    result = await create_basic_health_check(
        settings.SERVICE_NAME, settings.APP_VERSION
    )
    status_code = 200 if result["status"] == "healthy" else 503
    return JSONResponse(status_code=status_code, content=result)
