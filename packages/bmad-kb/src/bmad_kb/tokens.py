"""Approximate token counting for prompt budgeting.

The estimate is a fast, model-agnostic character heuristic, not a
tokenizer.  Callers compare estimates across versions, so the constants
below are fixed.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field

CHARS_PER_TOKEN = 3.5
SPECIAL_CHAR_WEIGHT = 0.3
WHITESPACE_RUN_WEIGHT = 0.2

_SPECIAL_CHARS = re.compile(r"[{}()\[\];,.<>!@#$%^&*+=|\\/`~]")
_WHITESPACE_RUN = re.compile(r"\s+")


def estimate_tokens(text: str) -> int:
    """Estimate the number of tokens in *text*.

    ``len / 3.5``, plus 0.3 per punctuation/special character, plus 0.2
    per whitespace run, rounded up.
    """
    if not text:
        return 0

    base_tokens = len(text) / CHARS_PER_TOKEN
    special_chars = len(_SPECIAL_CHARS.findall(text))
    whitespace_runs = len(_WHITESPACE_RUN.findall(text))

    return math.ceil(
        base_tokens
        + special_chars * SPECIAL_CHAR_WEIGHT
        + whitespace_runs * WHITESPACE_RUN_WEIGHT
    )


def fits_in_token_limit(text: str, limit: int) -> bool:
    return estimate_tokens(text) <= limit


@dataclass(frozen=True, slots=True)
class TokenUsageItem:
    name: str
    tokens: int
    percentage: float


@dataclass(frozen=True, slots=True)
class TokenUsageSummary:
    total_tokens: int
    items: list[TokenUsageItem] = field(default_factory=list)


def token_usage_summary(items: dict[str, str]) -> TokenUsageSummary:
    """Estimate tokens per named text and each one's share of the total.

    Items are sorted by token count, largest first.
    """
    counts = {name: estimate_tokens(content) for name, content in items.items()}
    total = sum(counts.values())

    usage = [
        TokenUsageItem(
            name=name,
            tokens=tokens,
            percentage=(tokens / total) * 100 if total else 0.0,
        )
        for name, tokens in counts.items()
    ]
    usage.sort(key=lambda item: item.tokens, reverse=True)

    return TokenUsageSummary(total_tokens=total, items=usage)
