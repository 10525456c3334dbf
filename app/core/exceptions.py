"""
Exceptions raised by the artifact generation pipeline

Only ValidationError, OwnershipError and PersistenceError ever cross the
pipeline boundary. ParseError and ProviderFailure are absorbed by the
provider chain.
"""
from typing import List, Optional


class GenerationError(Exception):
    """Base class for all pipeline errors"""


class ValidationError(GenerationError):
    """Request rejected before any provider or store call"""

    def __init__(self, violations: List[str]):
        self.violations = list(violations)
        super().__init__("; ".join(self.violations) or "Invalid request")


class OwnershipError(GenerationError):
    """Resource is missing or does not belong to the requesting owner"""

    def __init__(self, resource_id: str, owner_id: str):
        self.resource_id = resource_id
        self.owner_id = owner_id
        super().__init__(f"Resource '{resource_id}' not found or not owned by '{owner_id}'")


class PersistenceError(GenerationError):
    """Artifact store write failed"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ProviderFailure(GenerationError):
    """A single provider attempt failed (internal to the provider chain)"""


class ParseError(ProviderFailure):
    """Provider content could not be turned into a schema-valid payload"""
