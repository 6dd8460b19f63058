from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    settings = request.app.state.settings
    return {
        "ok": True,
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "app_name": settings.APP_NAME
    }
