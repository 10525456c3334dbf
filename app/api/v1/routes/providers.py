"""
Provider chain status routes
"""
from fastapi import APIRouter, Depends

from app.models.responses import ProviderStatus, ProviderStatusResponse
from app.services.generation.provider_chain import ProviderChain
from app.utils.dependencies import get_provider_chain

router = APIRouter(prefix="/providers", tags=["Providers"])


@router.get("/status", response_model=ProviderStatusResponse)
async def provider_status(chain: ProviderChain = Depends(get_provider_chain)):
    """
    Configured providers in the order they are tried

    With no provider configured every request is served by the offline
    fallback.
    """
    providers = [ProviderStatus(**entry) for entry in chain.describe()]
    return ProviderStatusResponse(
        success=True,
        providers=providers,
        fallback_only=not providers,
    )
