from __future__ import annotations

from typing import Literal, Optional

from studio.app.domain.providers import ProviderDescriptor

PriceTier = Literal["low", "medium", "high"]

LOW_PRICE_PER_SECOND = 0.03
MEDIUM_PRICE_PER_SECOND = 0.05


def _cost_per_second(provider: Optional[ProviderDescriptor]) -> float:
    if provider is None or provider.pricing is None:
        return 0.0
    return float(provider.pricing.cost_per_second or 0.0)


def estimate_cost(provider: Optional[ProviderDescriptor], duration_seconds: int) -> float:
    return _cost_per_second(provider) * duration_seconds


def estimate_total_cost(
    provider: Optional[ProviderDescriptor],
    duration_seconds: int,
    number_of_videos: int,
) -> float:
    return estimate_cost(provider, duration_seconds) * max(1, number_of_videos)


def format_currency(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def price_tier(provider: ProviderDescriptor) -> PriceTier:
    rate = _cost_per_second(provider)
    if rate <= LOW_PRICE_PER_SECOND:
        return "low"
    if rate <= MEDIUM_PRICE_PER_SECOND:
        return "medium"
    return "high"
