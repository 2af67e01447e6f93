from __future__ import annotations

from typing import Any, Dict

from studio.app.domain.generation import FormState
from studio.app.domain.providers import ProviderDescriptor
from studio.app.services.cost_estimator import (
    estimate_cost,
    estimate_total_cost,
    format_currency,
    price_tier,
)
from studio.app.services.prompt_insights import analyze_prompt
from studio.app.services.readiness import build_readiness


def derive_form_view(form: FormState, provider: ProviderDescriptor) -> Dict[str, Any]:
    """Derived state shown next to the form; ``form`` is expected reconciled."""
    insights = analyze_prompt(form.prompt)
    per_video = estimate_cost(provider, form.duration_seconds)
    total = estimate_total_cost(provider, form.duration_seconds, form.number_of_videos)
    return {
        "cost": {
            "perVideo": per_video,
            "total": total,
            "formattedTotal": format_currency(total),
            "priceTier": price_tier(provider),
        },
        "promptInsights": insights.to_dict(),
        "readiness": [item.to_dict() for item in build_readiness(form, provider, insights)],
    }


def form_to_dict(form: FormState) -> Dict[str, Any]:
    image = form.reference_image
    return {
        "provider": form.provider,
        "prompt": form.prompt,
        "negativePrompt": form.negative_prompt,
        "numberOfVideos": form.number_of_videos,
        "aspectRatio": form.aspect_ratio,
        "durationSeconds": form.duration_seconds,
        "referenceImage": image.filename if image else None,
        "veo3": form.veo3.model_dump(),
        "resolution": form.resolution,
        "fps": form.fps,
    }
