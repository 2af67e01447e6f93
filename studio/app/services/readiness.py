from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import List, Optional

from studio.app.domain.generation import FormState
from studio.app.domain.providers import ProviderDescriptor
from studio.app.services.prompt_insights import PromptInsights


@dataclass(frozen=True)
class ReadinessItem:
    label: str
    ready: bool
    helper: str

    def to_dict(self) -> dict:
        return asdict(self)


def build_readiness(
    form: FormState,
    provider: Optional[ProviderDescriptor],
    insights: PromptInsights,
) -> List[ReadinessItem]:
    prompt_ready = insights.score >= 2
    items = [
        ReadinessItem(
            label="Prompt clarity",
            ready=prompt_ready,
            helper=(
                "Strong descriptive prompt"
                if prompt_ready
                else "Add more context (≥ 15 words) for cinematic results"
            ),
        )
    ]

    if provider is None:
        items.append(ReadinessItem("Provider limits", False, "Choose a provider"))
        items.append(ReadinessItem("Reference image", True, "Not available for this provider"))
        items.append(ReadinessItem("Batch size", True, "Single video only"))
        return items

    caps = provider.capabilities
    items.append(
        ReadinessItem(
            label="Provider limits",
            ready=True,
            helper=f"Max {provider.max_duration}s • {', '.join(provider.supported_aspect_ratios)}",
        )
    )

    if caps.supports_conditioning_image:
        image = form.reference_image
        items.append(
            ReadinessItem(
                label="Reference image",
                ready=image is not None,
                helper=f"{image.filename} attached" if image else "Optional but helps with consistency",
            )
        )
    else:
        items.append(ReadinessItem("Reference image", True, "Not available for this provider"))

    if caps.supports_multiple_videos:
        items.append(
            ReadinessItem(
                label="Batch size",
                ready=form.number_of_videos <= caps.video_limit,
                helper=f"Up to {caps.video_limit} variations",
            )
        )
    else:
        items.append(ReadinessItem("Batch size", True, "Single video only"))
    return items
