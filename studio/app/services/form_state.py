from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from studio.app.domain.generation import (
    DEFAULT_ASPECT_RATIO,
    FormState,
    ReferenceImage,
    Veo3Options,
)
from studio.app.domain.providers import ProviderDescriptor

VEO3_MODELS = ("veo3-fast", "veo3-quality")
VEO3_RESOLUTIONS = ("720p", "1080p")
MIN_DURATION_SECONDS = 1


def _int_or(value: Any, default: Optional[int]) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return default


def _choice(value: Any, choices: tuple, default: str) -> str:
    return value if value in choices else default


def _flag(value: Any, default: bool) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in ("1", "true", "on", "yes")


def _pick(values: Mapping[str, Any], *names: str) -> Any:
    for name in names:
        value = values.get(name)
        if value is not None and value != "":
            return value
    return None


def form_from_values(
    values: Mapping[str, Any],
    *,
    provider_id: str,
    reference_image: Optional[ReferenceImage] = None,
) -> FormState:
    """
    Build a FormState from raw request values (query string, form body or
    JSON). Field names are accepted in both the HTML form's snake_case and
    the camelCase that form_to_dict() returns, so a reconciled form can be
    posted back as is. Unparseable numbers fall back to defaults;
    reconcile() handles bounds.
    """
    defaults = Veo3Options()
    nested = values.get("veo3")
    veo3 = nested if isinstance(nested, Mapping) else {}
    veo3_audio = _pick(values, "veo3_audio", "veo3Audio")
    if veo3_audio is None:
        veo3_audio = veo3.get("audio")
    resolution = _pick(values, "resolution")
    return FormState(
        provider=provider_id,
        prompt=str(values.get("prompt") or ""),
        negative_prompt=str(_pick(values, "negative_prompt", "negativePrompt") or ""),
        number_of_videos=_int_or(_pick(values, "number_of_videos", "numberOfVideos"), 1),
        aspect_ratio=str(_pick(values, "aspect_ratio", "aspectRatio") or DEFAULT_ASPECT_RATIO),
        duration_seconds=_int_or(_pick(values, "duration_seconds", "durationSeconds"), 5),
        reference_image=reference_image,
        veo3=Veo3Options(
            model=_choice(
                _pick(values, "veo3_model", "veo3Model") or veo3.get("model"),
                VEO3_MODELS,
                defaults.model,
            ),
            resolution=_choice(
                _pick(values, "veo3_resolution", "veo3Resolution") or veo3.get("resolution"),
                VEO3_RESOLUTIONS,
                defaults.resolution,
            ),
            audio=_flag(veo3_audio, defaults.audio),
        ),
        resolution=str(resolution) if resolution else None,
        fps=_int_or(_pick(values, "fps"), None),
    )


def reconcile(form: FormState, provider: ProviderDescriptor) -> FormState:
    """
    Normalize every provider-dependent field of ``form`` for ``provider``.

    Never raises: any input maps to a state within the provider's bounds.
    Fields the provider does not constrain are left untouched, and the
    input is not mutated.
    """
    caps = provider.capabilities
    updates: Dict[str, Any] = {"provider": provider.id}

    updates["number_of_videos"] = min(max(1, form.number_of_videos), caps.video_limit)

    if not caps.supports_conditioning_image:
        updates["reference_image"] = None

    if not caps.supports_negative_prompt:
        updates["negative_prompt"] = ""

    ratios = provider.supported_aspect_ratios
    if form.aspect_ratio not in ratios:
        updates["aspect_ratio"] = ratios[0] if ratios else DEFAULT_ASPECT_RATIO

    durations = caps.supported_durations
    if durations and form.duration_seconds not in durations:
        updates["duration_seconds"] = durations[0]
    else:
        capped = min(form.duration_seconds, provider.max_duration)
        updates["duration_seconds"] = max(MIN_DURATION_SECONDS, capped)

    resolutions = caps.resolution_choices
    if not resolutions:
        updates["resolution"] = None
    elif form.resolution not in resolutions:
        updates["resolution"] = resolutions[0]

    fps_choices = caps.fps_choices
    if not fps_choices:
        updates["fps"] = None
    elif form.fps not in fps_choices:
        updates["fps"] = fps_choices[0]

    return form.model_copy(update=updates)

