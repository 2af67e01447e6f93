from __future__ import annotations

from typing import Dict, List, Optional

from studio.app.config import DEFAULT_PROVIDER_ID
from studio.app.domain.providers import (
    ProviderCapabilities,
    ProviderDescriptor,
    ProviderPricing,
)


PROVIDER_CATALOG: Dict[str, ProviderDescriptor] = {
    "veo-3": ProviderDescriptor(
        id="veo-3",
        name="Google Veo 3",
        description="Cinematic text-to-video with native audio.",
        features=("Native audio", "Cinematic motion", "Image to video"),
        pricing=ProviderPricing(cost_per_second=0.05),
        max_duration=8,
        supported_aspect_ratios=("16:9", "9:16"),
        capabilities=ProviderCapabilities(
            supports_multiple_videos=False,
            max_videos=1,
            supports_conditioning_image=True,
            supports_negative_prompt=False,
            supported_durations=(8,),
            supports_resolution=True,
            supported_resolutions=("720p", "1080p"),
        ),
    ),
    "veo-2": ProviderDescriptor(
        id="veo-2",
        name="Google Veo 2",
        description="Batch-friendly generation on Vertex AI.",
        features=("Up to 4 variations", "Negative prompts", "Image to video"),
        pricing=ProviderPricing(cost_per_second=0.35),
        max_duration=8,
        supported_aspect_ratios=("16:9", "9:16"),
        capabilities=ProviderCapabilities(
            supports_multiple_videos=True,
            max_videos=4,
            supports_conditioning_image=True,
            supports_negative_prompt=True,
            supported_durations=(5, 6, 7, 8),
        ),
    ),
    "luma-ray-2": ProviderDescriptor(
        id="luma-ray-2",
        name="Luma Ray 2",
        description="Fast, fluid motion with wide aspect ratio coverage.",
        features=("Fast turnaround", "Many aspect ratios"),
        pricing=ProviderPricing(cost_per_second=0.04, free_tier="30 generations / month"),
        max_duration=9,
        supported_aspect_ratios=("16:9", "9:16", "1:1", "4:3", "3:4", "21:9"),
        capabilities=ProviderCapabilities(
            supports_conditioning_image=True,
            supported_durations=(5, 9),
            supports_resolution=True,
            supported_resolutions=("540p", "720p", "1080p"),
        ),
    ),
    "hailuo-02": ProviderDescriptor(
        id="hailuo-02",
        name="MiniMax Hailuo 02",
        description="Budget generation with free-form duration.",
        features=("Low cost", "Free-form duration"),
        pricing=ProviderPricing(cost_per_second=0.02, free_tier="Daily free credits"),
        max_duration=10,
        supported_aspect_ratios=("16:9",),
        capabilities=ProviderCapabilities(
            supports_negative_prompt=True,
            supports_fps=True,
            supported_fps=(24, 30),
        ),
    ),
}


def get_all_providers() -> List[ProviderDescriptor]:
    return list(PROVIDER_CATALOG.values())


def get_provider(provider_id: str | None) -> Optional[ProviderDescriptor]:
    return PROVIDER_CATALOG.get((provider_id or "").strip())


def default_provider() -> ProviderDescriptor:
    return PROVIDER_CATALOG.get(DEFAULT_PROVIDER_ID) or get_all_providers()[0]


def resolve_provider(provider_id: str | None) -> ProviderDescriptor:
    """Unknown or empty ids fall back to the default provider."""
    return get_provider(provider_id) or default_provider()
