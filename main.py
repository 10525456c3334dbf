"""
Learning Hub AI - Main FastAPI Application

Generates study aids for the Learning Hub web app:
- Study plans from a course syllabus
- Flashcard decks from a document
- Mind maps from a study plan
"""
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.openapi.utils import get_openapi
from loguru import logger
import uvicorn
import time

from app.core.config import settings
from app.api.v1 import router as v1_router


# Configure logging
logger.remove()  # Remove default handler
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.log_level
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager

    Handles startup and shutdown events for the FastAPI application
    """
    # Startup
    logger.info("🚀 Starting Learning Hub AI...")
    logger.info(f"🔧 Configuration: {settings.app_name} v{settings.app_version}")
    logger.info(f"🔧 Environment: Debug={settings.debug}, Store={settings.store_backend}")

    try:
        from app.utils.dependencies import get_provider_handles
        handles = get_provider_handles()
        logger.info(f"🤖 Provider chain: {', '.join(h.id for h in handles) or 'fallback only'}")
    except Exception as e:
        logger.error(f"❌ Provider initialization failed: {e}")

    yield

    # Shutdown
    logger.info("🛑 Shutting down Learning Hub AI...")


# Create FastAPI application
app = FastAPI(
    title="Learning Hub AI",
    description="""
## 📚 Learning Hub AI - Study Aid Generation

Generates study plans, flashcards and mind maps with a chain of LLM providers.
If every provider fails, a deterministic offline generator answers instead, so
a well-formed request always gets an artifact back.

### 🌟 Key Features

- **📅 Study plans**: Week-by-week plans from a syllabus
- **🃏 Flashcards**: Open, multiple choice and fill-in-the-blank cards
- **🧠 Mind maps**: Node graph plus a text tree for a study plan
- **♻️ Caching**: One stored artifact per resource and user, reused until regenerated
- **🔁 Provider fallback**: OpenRouter models and Gemini tried in priority order

### 📖 Usage Example

```bash
curl -X POST "/v1/study-plans/generate" \\
  -H "Content-Type: application/json" \\
  -H "X-User-Id: user-1" \\
  -d '{"resource_id": "course-42", "syllabus": "Variables, loops, functions", "weeks": 4}'
```
    """,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


# Custom OpenAPI schema with enhanced documentation
def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Learning Hub AI API",
        version=settings.app_version,
        description="Study plan, flashcard and mind map generation",
        routes=app.routes,
    )

    openapi_schema["servers"] = [
        {"url": "/", "description": "Current server"},
        {"url": "http://localhost:8000", "description": "Local development"},
    ]

    openapi_schema["tags"] = [
        {"name": "Study Plans", "description": "Week-by-week study plans for a course."},
        {"name": "Flashcards", "description": "Flashcard decks for a document."},
        {"name": "Mind Maps", "description": "Mind maps for a study plan."},
        {"name": "Providers", "description": "Configured text-generation providers."},
    ]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


# Include API routers
app.include_router(v1_router)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """
    Learning Hub AI root endpoint
    """
    return {
        "message": "📚 Welcome to Learning Hub AI",
        "version": settings.app_version,
        "description": "Study aid generation with provider fallback",
        "features": [
            "📅 Study plan generation",
            "🃏 Flashcard generation",
            "🧠 Mind map generation",
            "♻️ Cached artifacts per resource"
        ],
        "api_docs": "/docs",
        "endpoints": {
            "v1": "/v1"
        },
        "status": "🟢 Service running"
    }


# Health check endpoint
@app.get("/health", tags=["Health"])
async def health_check():
    """
    Service health check

    Returns the overall health status of the service and its components.
    """
    try:
        from app.utils.dependencies import check_services_health
        health_status = await check_services_health()

        return {
            "status": "healthy",
            "timestamp": time.time(),
            "version": settings.app_version,
            "services": health_status
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "unhealthy",
                "error": str(e),
                "version": settings.app_version
            }
        )


# Malformed request bodies use the same envelope as pipeline validation errors
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Malformed request for {request.url}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Invalid request",
            "details": [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
        }
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler for unhandled errors
    """
    logger.error(f"Unhandled exception for {request.url}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "details": str(exc) if settings.debug else "Internal server error",
            "path": str(request.url),
            "method": request.method
        }
    )


# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Log all HTTP requests for monitoring and debugging
    """
    start_time = time.time()

    logger.info(f"📥 {request.method} {request.url}")

    response = await call_next(request)

    process_time = time.time() - start_time
    logger.info(f"📤 {request.method} {request.url} - {response.status_code} - {process_time:.2f}s")

    return response


# Run the application
if __name__ == "__main__":
    logger.info(f"🚀 Starting Learning Hub AI on {settings.host}:{settings.port}")

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        access_log=True,
        log_level=settings.log_level.lower()
    )
