"""
API version 1 main router
"""
from fastapi import APIRouter
from app.api.v1.routes import study_plans, flashcards, mind_maps, providers

# Create main v1 router
router = APIRouter(prefix="/v1")

# Include all route modules
router.include_router(study_plans.router)
router.include_router(flashcards.router)
router.include_router(mind_maps.router)
router.include_router(providers.router)

# API v1 root endpoint
@router.get("/")
async def api_v1_root():
    """
    API v1 root endpoint
    """
    return {
        "message": "Learning Hub AI API v1",
        "version": "1.0.0",
        "endpoints": {
            "study_plans": {
                "generate": "POST /v1/study-plans/generate",
                "get": "GET /v1/study-plans/{resource_id}"
            },
            "flashcards": {
                "generate": "POST /v1/flashcards/generate",
                "get": "GET /v1/flashcards/{resource_id}"
            },
            "mind_maps": {
                "generate": "POST /v1/mind-maps/generate",
                "get": "GET /v1/mind-maps/{resource_id}"
            },
            "providers": {
                "status": "GET /v1/providers/status"
            }
        },
        "docs": "/docs",
        "redoc": "/redoc"
    }
