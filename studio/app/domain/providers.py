from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class ProviderPricing:
    cost_per_second: float = 0.0
    free_tier: Optional[str] = None


@dataclass(frozen=True)
class ProviderCapabilities:
    """
    Closed set of optional features a provider may support.
    Form controls are rendered only when the matching flag is set.
    """

    supports_multiple_videos: bool = False
    max_videos: int = 1
    supports_conditioning_image: bool = False
    supports_negative_prompt: bool = False
    supported_durations: Tuple[int, ...] = ()
    supports_resolution: bool = False
    supported_resolutions: Tuple[str, ...] = ()
    supports_fps: bool = False
    supported_fps: Tuple[int, ...] = ()

    @property
    def video_limit(self) -> int:
        if not self.supports_multiple_videos:
            return 1
        return max(1, self.max_videos or 1)

    @property
    def resolution_choices(self) -> Tuple[str, ...]:
        return self.supported_resolutions if self.supports_resolution else ()

    @property
    def fps_choices(self) -> Tuple[int, ...]:
        return self.supported_fps if self.supports_fps else ()


@dataclass(frozen=True)
class ProviderDescriptor:
    id: str
    name: str
    description: str
    max_duration: int
    supported_aspect_ratios: Tuple[str, ...]
    pricing: ProviderPricing = field(default_factory=ProviderPricing)
    capabilities: ProviderCapabilities = field(default_factory=ProviderCapabilities)
    features: Tuple[str, ...] = ()

    def to_dict(self) -> dict:
        caps = self.capabilities
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "features": list(self.features),
            "pricing": {
                "costPerSecond": self.pricing.cost_per_second,
                "freeTier": self.pricing.free_tier,
            },
            "maxDuration": self.max_duration,
            "supportedAspectRatios": list(self.supported_aspect_ratios),
            "capabilities": {
                "supportsMultipleVideos": caps.supports_multiple_videos,
                "maxVideos": caps.max_videos,
                "supportsConditioningImage": caps.supports_conditioning_image,
                "supportsNegativePrompt": caps.supports_negative_prompt,
                "supportedDurations": list(caps.supported_durations),
                "supportsResolution": caps.supports_resolution,
                "supportedResolutions": list(caps.supported_resolutions),
                "supportsFPS": caps.supports_fps,
                "supportedFPS": list(caps.supported_fps),
            },
        }
