from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple
from uuid import uuid4

from studio.app.domain.generation import (
    VEO3_PROVIDER_ID,
    FormState,
    GenerationMeta,
    ReferenceImage,
)
from studio.app.domain.providers import ProviderDescriptor
from studio.app.ports.generation_api import FileParts, GenerationApi, GenerationApiError
from studio.app.services.cost_estimator import format_currency
from studio.app.services.provider_catalog import get_provider

log = logging.getLogger(__name__)

PROMPT_REQUIRED_MESSAGE = "Please enter a prompt before generating."
GENERATING_MESSAGE = "Generating..."
FAILED_MESSAGE = "Failed to generate video. Please try again."
SUCCESS_MESSAGE = "Video generated successfully!"


class GenerationStatus(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def now_ms() -> int:
    return int(time.time() * 1000)


def build_request_payload(
    form: FormState,
    provider: Optional[ProviderDescriptor] = None,
) -> Tuple[Dict[str, str], FileParts]:
    """
    Multipart fields for the generation endpoint.

    veo3* fields go out only for the veo-3 provider; the generic
    resolution/fps selectors only when the provider declares them.
    """
    provider = provider or get_provider(form.provider)
    fields: Dict[str, str] = {
        "prompt": form.prompt,
        "negativePrompt": form.negative_prompt,
        "numberOfVideos": str(form.number_of_videos),
        "aspectRatio": form.aspect_ratio,
        "durationSeconds": str(form.duration_seconds),
        "provider": form.provider,
    }

    if form.provider == VEO3_PROVIDER_ID:
        fields["veo3Model"] = form.veo3.model
        fields["veo3Resolution"] = form.veo3.resolution
        fields["veo3Audio"] = "true" if form.veo3.audio else "false"
    elif provider is not None:
        caps = provider.capabilities
        if form.resolution and form.resolution in caps.resolution_choices:
            fields["resolution"] = form.resolution
        if form.fps and form.fps in caps.fps_choices:
            fields["fps"] = str(form.fps)

    files: FileParts = {}
    image = form.reference_image
    if image is not None:
        files["conditioningImage"] = (image.filename, image.data, image.content_type)
    return fields, files


class GenerationOrchestrator:
    """
    idle -> submitting -> succeeded | failed, restartable from any terminal state.

    Each submission takes a ticket; a response whose ticket is no longer the
    latest is dropped so an older run cannot overwrite a newer one.
    """

    def __init__(
        self,
        api: GenerationApi,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.api = api
        self.clock = clock
        self.status = GenerationStatus.IDLE
        self.message = ""
        self.videos: List[str] = []
        self.meta: Optional[GenerationMeta] = None
        self._ticket = 0

    @property
    def is_busy(self) -> bool:
        return self.status == GenerationStatus.SUBMITTING

    async def submit(self, form: FormState) -> GenerationStatus:
        if not form.prompt.strip():
            self.message = PROMPT_REQUIRED_MESSAGE
            log.info("[Generate] rejected empty prompt provider=%s", form.provider)
            return self.status

        self._ticket += 1
        ticket = self._ticket
        request_id = uuid4().hex[:12]
        started_at = self.clock()

        self.status = GenerationStatus.SUBMITTING
        self.message = GENERATING_MESSAGE
        self.videos = []
        self.meta = GenerationMeta(provider=form.provider, started_at=started_at)

        fields, files = build_request_payload(form)
        try:
            result = await self.api.generate(fields=fields, files=files, request_id=request_id)
        except GenerationApiError as exc:
            log.warning(
                "[Generate] failed request_id=%s code=%s raw=%s",
                request_id,
                exc.code,
                exc.raw,
            )
            self._fail(ticket, form.provider, started_at, exc.message)
            return self.status
        except Exception as exc:
            log.exception("[Generate] unexpected failure request_id=%s", request_id)
            self._fail(ticket, form.provider, started_at, str(exc) or "Unknown error")
            return self.status

        if ticket != self._ticket:
            log.info(
                "[Generate] dropped stale response request_id=%s ticket=%s latest=%s",
                request_id,
                ticket,
                self._ticket,
            )
            return self.status

        self.status = GenerationStatus.SUCCEEDED
        self.videos = list(result.videos)
        self.meta = GenerationMeta(
            provider=result.provider or form.provider,
            cost=result.cost,
            started_at=started_at,
            completed_at=self.clock(),
        )
        if result.cost:
            self.message = f"Video generated successfully • {format_currency(result.cost)}"
        else:
            self.message = SUCCESS_MESSAGE
        return self.status

    def _fail(self, ticket: int, provider: str, started_at: int, error: str) -> None:
        if ticket != self._ticket:
            log.info("[Generate] dropped stale failure ticket=%s latest=%s", ticket, self._ticket)
            return
        self.status = GenerationStatus.FAILED
        self.meta = GenerationMeta(
            provider=provider,
            started_at=started_at,
            completed_at=self.clock(),
            error=error,
        )
        self.message = FAILED_MESSAGE

    def snapshot(self) -> dict:
        meta = self.meta
        return {
            "status": self.status.value,
            "message": self.message,
            "videos": list(self.videos),
            "meta": (
                {
                    **meta.model_dump(),
                    "elapsedSeconds": meta.elapsed_seconds,
                }
                if meta
                else None
            ),
        }


class OrchestratorRegistry:
    """
    Per-user studio state, process local: one orchestrator and the reference
    image attached to the form, kept across page re-renders.
    """

    def __init__(self, api_factory: Callable[[], GenerationApi]) -> None:
        self._api_factory = api_factory
        self._items: Dict[str, GenerationOrchestrator] = {}
        self._images: Dict[str, ReferenceImage] = {}

    def get(self, user_id: str) -> GenerationOrchestrator:
        orchestrator = self._items.get(user_id)
        if orchestrator is None:
            orchestrator = GenerationOrchestrator(self._api_factory())
            self._items[user_id] = orchestrator
        return orchestrator

    def peek(self, user_id: str) -> Optional[GenerationOrchestrator]:
        return self._items.get(user_id)

    def attached_image(self, user_id: str) -> Optional[ReferenceImage]:
        return self._images.get(user_id)

    def attach_image(self, user_id: str, image: Optional[ReferenceImage]) -> None:
        if image is None:
            self._images.pop(user_id, None)
        else:
            self._images[user_id] = image

    def discard(self, user_id: str) -> None:
        self._items.pop(user_id, None)
        self._images.pop(user_id, None)
