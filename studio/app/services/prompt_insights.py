from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PromptTier:
    score: int
    min_words: int
    quality: str
    helper: str
    badge: str


# Ordered by min_words; the last tier whose threshold is reached wins.
PROMPT_TIERS: Tuple[PromptTier, ...] = (
    PromptTier(
        score=0,
        min_words=0,
        quality="Add a descriptive prompt",
        helper="Describe the subject, setting, and motion you expect.",
        badge="danger",
    ),
    PromptTier(
        score=1,
        min_words=1,
        quality="Needs more detail",
        helper="Aim for at least 12 words so providers have enough context.",
        badge="warning",
    ),
    PromptTier(
        score=2,
        min_words=12,
        quality="Great start",
        helper="Add camera cues or mood to push it even further.",
        badge="info",
    ),
    PromptTier(
        score=3,
        min_words=30,
        quality="Production ready",
        helper="Plenty of detail. You can generate with confidence.",
        badge="success",
    ),
)


@dataclass(frozen=True)
class PromptInsights:
    words: int
    tier: PromptTier

    @property
    def score(self) -> int:
        return self.tier.score

    @property
    def quality(self) -> str:
        return self.tier.quality

    @property
    def helper(self) -> str:
        return self.tier.helper

    def to_dict(self) -> dict:
        return {
            "words": self.words,
            "score": self.score,
            "quality": self.quality,
            "helper": self.helper,
            "badge": self.tier.badge,
        }


def count_words(prompt: str | None) -> int:
    return len((prompt or "").split())


def tier_for_word_count(words: int) -> PromptTier:
    selected = PROMPT_TIERS[0]
    for tier in PROMPT_TIERS:
        if words >= tier.min_words:
            selected = tier
    return selected


def analyze_prompt(prompt: str | None) -> PromptInsights:
    words = count_words(prompt)
    return PromptInsights(words=words, tier=tier_for_word_count(words))
