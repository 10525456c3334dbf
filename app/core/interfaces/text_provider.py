"""
Abstract base interface for text-generation providers
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union
from pydantic import BaseModel


class Prompt(BaseModel):
    """Prompt sent to a provider for one generation attempt"""
    system: str
    user: str
    temperature: float = 0.5
    max_tokens: Optional[int] = None


# ---------------------------------------------------------------------------
# Attempt outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success:
    """Provider returned non-empty raw content"""
    raw_content: str
    kind: str = "success"


@dataclass(frozen=True)
class EmptyResponse:
    """Provider answered, but with no usable content"""
    kind: str = "empty_response"

    @property
    def reason(self) -> str:
        return "Provider returned an empty response"


@dataclass(frozen=True)
class ProviderError:
    """Provider call failed (transport, quota, auth, ...)"""
    reason: str
    kind: str = "provider_error"


@dataclass(frozen=True)
class Timeout:
    """Provider did not answer within its timeout budget"""
    timeout_budget: float
    kind: str = "timeout"

    @property
    def reason(self) -> str:
        return f"Provider timed out after {self.timeout_budget:g}s"


GenerationOutcome = Union[Success, EmptyResponse, ProviderError, Timeout]


class TextProvider(ABC):
    """
    Abstract base class for all text-generation providers

    Implementations hide model identity, quota and billing. They never raise
    for provider-side failures: every call ends in one of the
    GenerationOutcome variants.
    """

    @abstractmethod
    async def attempt(self, prompt: Prompt, timeout_budget: float) -> GenerationOutcome:
        """
        Run one generation attempt

        Args:
            prompt: System and user prompt plus sampling parameters
            timeout_budget: Seconds the provider may spend on this attempt

        Returns:
            The classified outcome of the attempt
        """
        pass

    @abstractmethod
    def get_service_name(self) -> str:
        """Return the name of the provider"""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is configured"""
        pass


@dataclass(frozen=True)
class ProviderHandle:
    """One position in a provider chain"""
    id: str
    priority: int
    timeout_budget: float
    provider: TextProvider
