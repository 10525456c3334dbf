"""
GenerationOrchestrator – end-to-end flow for one artifact type

    Idle -> Validating -> Rejected
                       -> OwnershipCheck -> Denied
                                         -> CacheCheck -> Done (cache hit)
                                                       -> Attempting -> Persisting -> Done
                                                                     -> Synthesizing -> Persisting -> Done
"""
from __future__ import annotations

from typing import Any, List, Mapping, Optional

from loguru import logger

from app.core.exceptions import OwnershipError, PersistenceError, ValidationError
from app.core.interfaces.artifact_store import Artifact, ArtifactStore, OwnershipChecker
from app.services.generation.fallback import FallbackSynthesizer
from app.services.generation.normalizer import RequestNormalizer
from app.services.generation.prompts import PromptBuilder
from app.services.generation.provider_chain import ProviderChain
from app.services.generation.sanitizer import ResponseSanitizer
from app.services.generation.types import (
    CACHE_SOURCE,
    FALLBACK_SOURCE,
    ArtifactType,
    GenerationRequest,
    GenerationResult,
    GenerationState,
    ProviderAttempt,
    Validated,
)


class GenerationOrchestrator:
    """
    Compose normalizer, cache, provider chain, sanitizer and fallback

    One instance serves one artifact type; its store holds that type only.
    """

    def __init__(
        self,
        artifact_type: ArtifactType,
        *,
        chain: ProviderChain,
        store: ArtifactStore,
        ownership: OwnershipChecker,
        normalizer: Optional[RequestNormalizer] = None,
        sanitizer: Optional[ResponseSanitizer] = None,
        synthesizer: Optional[FallbackSynthesizer] = None,
        prompt_builder: Optional[PromptBuilder] = None,
    ):
        self.artifact_type = artifact_type
        self.chain = chain
        self.store = store
        self.ownership = ownership
        self.normalizer = normalizer or RequestNormalizer()
        self.sanitizer = sanitizer or ResponseSanitizer()
        self.synthesizer = synthesizer or FallbackSynthesizer()
        self.prompt_builder = prompt_builder or PromptBuilder()

    async def generate(
        self,
        resource_id: Any,
        owner_id: Any,
        parameters: Optional[Mapping[str, Any]] = None,
        force_regenerate: Any = False,
    ) -> GenerationResult:
        """
        Produce the current artifact for a resource

        Raises:
            ValidationError: Request is malformed (no provider or store contact)
            OwnershipError: Resource missing or not owned (no provider contact)
            PersistenceError: Artifact could not be stored
        """
        states: List[GenerationState] = [GenerationState.IDLE]
        self._transition(states, GenerationState.VALIDATING)
        try:
            request = self.normalizer.normalize(
                self.artifact_type, resource_id, owner_id, parameters, force_regenerate
            )
        except ValidationError as error:
            self._transition(states, GenerationState.REJECTED)
            logger.warning(f"🚫 Rejected {self.artifact_type.value} request: {error}")
            raise

        self._transition(states, GenerationState.OWNERSHIP_CHECK)
        record = await self.ownership.resolve(request.resource_id, request.owner_id)
        if record is None:
            self._transition(states, GenerationState.DENIED)
            raise OwnershipError(request.resource_id, request.owner_id)
        request = self.normalizer.apply_resource(request, record)

        if not request.force_regenerate:
            self._transition(states, GenerationState.CACHE_CHECK)
            cached = await self._lookup(request)
            if cached is not None:
                logger.info(f"♻️ Cache hit for {self.artifact_type.value} {request.resource_id}")
                self._transition(states, GenerationState.DONE)
                return GenerationResult(
                    artifact=cached, source=CACHE_SOURCE, cached=True, states=states
                )

        self._transition(states, GenerationState.ATTEMPTING)
        prompt = self.prompt_builder.build(request)
        outcome = await self.chain.run(prompt, lambda raw: self.sanitizer.sanitize(raw, request))

        attempts: List[ProviderAttempt] = outcome.attempts
        if isinstance(outcome, Validated):
            payload = outcome.payload.payload
            warnings = outcome.payload.warnings
            source = outcome.provider_id
            degraded = False
        else:
            self._transition(states, GenerationState.SYNTHESIZING)
            logger.warning(
                f"⚠️ All providers failed for {self.artifact_type.value} {request.resource_id}, "
                f"using fallback. Last failure: {outcome.last_failure_reason}"
            )
            payload = self.synthesizer.synthesize(request)
            warnings = []
            source = FALLBACK_SOURCE
            degraded = True

        self._transition(states, GenerationState.PERSISTING)
        artifact = await self._persist(request, payload, source, warnings)
        self._transition(states, GenerationState.DONE)
        logger.info(
            f"💾 Stored {self.artifact_type.value} for {request.resource_id} (source: {source})"
        )
        return GenerationResult(
            artifact=artifact,
            source=source,
            degraded=degraded,
            attempts=attempts,
            states=states,
        )

    async def get_cached(self, resource_id: Any, owner_id: Any) -> Optional[Artifact]:
        """Read the stored artifact without generating anything"""
        return await self.store.get(str(resource_id), str(owner_id))

    async def _lookup(self, request: GenerationRequest) -> Optional[Artifact]:
        try:
            return await self.store.get(request.resource_id, request.owner_id)
        except Exception as error:
            # a broken read degrades to a miss; a broken write still surfaces
            logger.warning(f"Cache lookup failed for {request.resource_id}, treating as miss: {error}")
            return None

    async def _persist(self, request: GenerationRequest, payload, source: str, warnings) -> Artifact:
        try:
            return await self.store.upsert(
                request.resource_id, request.owner_id, payload, source, warnings
            )
        except PersistenceError:
            logger.error(f"❌ Failed to persist {self.artifact_type.value} for {request.resource_id}")
            raise
        except Exception as error:
            logger.error(f"❌ Failed to persist {self.artifact_type.value} for {request.resource_id}: {error}")
            raise PersistenceError(f"Failed to save {self.artifact_type.value}", cause=error) from error

    def _transition(self, states: List[GenerationState], state: GenerationState) -> None:
        logger.debug(f"{self.artifact_type.value}: {states[-1].value} -> {state.value}")
        states.append(state)
