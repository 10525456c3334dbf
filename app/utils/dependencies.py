"""
FastAPI dependency injection utilities

This module provides dependency injection for the generation pipeline,
ensuring singleton instances and proper initialization.
"""
import functools
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple

from fastapi import Header, status
from fastapi.responses import JSONResponse
from loguru import logger
from openai import AsyncOpenAI
from supabase import Client, create_client

from app.core.config import settings
from app.core.exceptions import GenerationError, OwnershipError, PersistenceError, ValidationError
from app.core.interfaces.artifact_store import ArtifactStore, OwnershipChecker
from app.core.interfaces.text_provider import ProviderHandle
from app.services.generation.orchestrator import GenerationOrchestrator
from app.services.generation.prompts import PromptBuilder
from app.services.generation.provider_chain import ProviderChain
from app.services.generation.types import ArtifactType
from app.services.providers.gemini_provider import GeminiProvider
from app.services.providers.openrouter_provider import OpenRouterProvider
from app.services.storage.memory_store import InMemoryArtifactStore, InMemoryOwnershipChecker
from app.services.storage.supabase_store import SupabaseArtifactStore, SupabaseOwnershipChecker
from app.utils.key_rotation import ApiKeyPool


# Resource table consulted for ownership, per artifact type:
# (table, title column, content column)
OWNERSHIP_TABLES = {
    ArtifactType.STUDY_PLAN: ("courses", "name", None),
    ArtifactType.FLASHCARDS: ("documents", "name", "content"),
    ArtifactType.MIND_MAP: ("study_plans", "title", None),
}


# ============================================================================
# PROVIDERS
# ============================================================================

@lru_cache()
def get_openrouter_client() -> Optional[AsyncOpenAI]:
    """Get singleton OpenRouter client, shared by every OpenRouter model"""
    if not settings.openrouter_api_key:
        logger.warning("OPENROUTER_API_KEY not set, OpenRouter providers disabled")
        return None
    return AsyncOpenAI(api_key=settings.openrouter_api_key, base_url=settings.openrouter_base_url)


@lru_cache()
def get_gemini_key_pool() -> Optional[ApiKeyPool]:
    """Get singleton Gemini key pool"""
    keys = settings.gemini_key_list
    if not keys:
        logger.warning("GEMINI_KEYS not set, Gemini provider disabled")
        return None
    return ApiKeyPool(keys=keys, max_errors_per_key=3, cooldown_minutes=5)


@lru_cache()
def get_provider_handles() -> Tuple[ProviderHandle, ...]:
    """Build the configured provider chain entries"""
    handles = []
    client = get_openrouter_client()
    if client is not None:
        for index, model in enumerate(settings.openrouter_models):
            handles.append(ProviderHandle(
                id=f"openrouter:{model}",
                priority=index * 10,
                timeout_budget=settings.provider_timeout_seconds,
                provider=OpenRouterProvider(client, model),
            ))

    key_pool = get_gemini_key_pool()
    if key_pool is not None:
        handles.append(ProviderHandle(
            id=f"gemini:{settings.gemini_model}",
            priority=settings.gemini_priority,
            timeout_budget=settings.provider_timeout_seconds,
            provider=GeminiProvider(key_pool, settings.gemini_model),
        ))

    if not handles:
        logger.warning("⚠️ No text providers configured, every request will use the fallback")
    return tuple(handles)


@lru_cache()
def get_provider_chain() -> ProviderChain:
    return ProviderChain(get_provider_handles())


# ============================================================================
# PERSISTENCE
# ============================================================================

@lru_cache()
def get_supabase_client() -> Client:
    """Get singleton Supabase client"""
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY are required for the supabase store backend")
    return create_client(settings.supabase_url, settings.supabase_key)


@lru_cache()
def get_artifact_store(artifact_type: ArtifactType) -> ArtifactStore:
    """Get singleton store for one artifact type"""
    if settings.store_backend == "supabase":
        return SupabaseArtifactStore(get_supabase_client(), artifact_type.value)
    return InMemoryArtifactStore(artifact_type.value)


@lru_cache()
def get_ownership_checker(artifact_type: ArtifactType) -> OwnershipChecker:
    """Get singleton ownership checker for one artifact type"""
    if settings.store_backend == "supabase":
        table, title_column, content_column = OWNERSHIP_TABLES[artifact_type]
        return SupabaseOwnershipChecker(get_supabase_client(), table, title_column, content_column)
    # local development: first caller claims an unknown resource
    return InMemoryOwnershipChecker(auto_register=True)


# ============================================================================
# ORCHESTRATORS
# ============================================================================

@lru_cache()
def get_orchestrator(artifact_type: ArtifactType) -> GenerationOrchestrator:
    """Get singleton orchestrator for one artifact type"""
    return GenerationOrchestrator(
        artifact_type,
        chain=get_provider_chain(),
        store=get_artifact_store(artifact_type),
        ownership=get_ownership_checker(artifact_type),
        prompt_builder=PromptBuilder(
            temperature=settings.provider_temperature,
            max_tokens=settings.provider_max_tokens,
        ),
    )


def get_study_plan_orchestrator() -> GenerationOrchestrator:
    return get_orchestrator(ArtifactType.STUDY_PLAN)


def get_flashcard_orchestrator() -> GenerationOrchestrator:
    return get_orchestrator(ArtifactType.FLASHCARDS)


def get_mind_map_orchestrator() -> GenerationOrchestrator:
    return get_orchestrator(ArtifactType.MIND_MAP)


async def get_owner_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Authenticated owner id, forwarded by the web app in X-User-Id"""
    return x_user_id


# ============================================================================
# SERVICE HEALTH CHECKS
# ============================================================================

async def check_services_health() -> Dict[str, Dict[str, Any]]:
    """
    Check health of all services

    Returns:
        Dictionary with health status of all services
    """
    health_status = {}

    try:
        handles = get_provider_handles()
        health_status["providers"] = {
            "status": "healthy" if handles else "degraded",
            "configured": len(handles),
            "fallback_only": not handles,
        }
    except Exception as e:
        health_status["providers"] = {
            "status": "unhealthy",
            "error": str(e)
        }

    try:
        key_pool = get_gemini_key_pool()
        if key_pool is not None:
            keys = await key_pool.snapshot()
            health_status["gemini_keys"] = {
                "status": "healthy" if any(not k["cooling_down"] for k in keys) else "degraded",
                "total_keys": len(keys),
                "available_keys": len([k for k in keys if not k["cooling_down"]]),
            }
    except Exception as e:
        health_status["gemini_keys"] = {
            "status": "unhealthy",
            "error": str(e)
        }

    try:
        for artifact_type in ArtifactType:
            get_artifact_store(artifact_type)
        health_status["artifact_store"] = {
            "status": "healthy",
            "backend": settings.store_backend,
        }
    except Exception as e:
        health_status["artifact_store"] = {
            "status": "unhealthy",
            "backend": settings.store_backend,
            "error": str(e)
        }

    return health_status


# ============================================================================
# ERROR HANDLING DECORATORS
# ============================================================================

def error_envelope(status_code: int, error: str, details: Any = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def handle_service_errors(func):
    """
    Decorator to handle pipeline errors

    Converts domain exceptions to error envelopes
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except ValidationError as e:
            logger.warning(f"Validation error in {func.__name__}: {e}")
            return error_envelope(status.HTTP_400_BAD_REQUEST, "Invalid request", e.violations)
        except OwnershipError as e:
            logger.warning(f"Ownership error in {func.__name__}: {e}")
            return error_envelope(status.HTTP_404_NOT_FOUND, "Resource not found or access denied")
        except PersistenceError as e:
            logger.error(f"Persistence error in {func.__name__}: {e}")
            return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save generated content")
        except GenerationError as e:
            logger.error(f"Generation error in {func.__name__}: {e}")
            return error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, "Generation failed")

    return wrapper


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================

def clear_service_cache():
    """
    Clear all cached service instances

    Useful for testing or configuration reloading
    """
    get_openrouter_client.cache_clear()
    get_gemini_key_pool.cache_clear()
    get_provider_handles.cache_clear()
    get_provider_chain.cache_clear()
    get_supabase_client.cache_clear()
    get_artifact_store.cache_clear()
    get_ownership_checker.cache_clear()
    get_orchestrator.cache_clear()
