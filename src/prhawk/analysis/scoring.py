"""Score normalization and before/after complexity deltas.

The oracle scores code on an inverted scale where 100 means trivially simple.
Reports show `100 - score` so that a larger number means more complex code.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

WARNING_EMOJI = "⚠️"
OK_EMOJI = "✅"
IMPROVED_EMOJI = "📉👍"
WORSENED_EMOJI = "📈👎"
NOT_AVAILABLE = "N/A"

# Displayed complexity above this gets a warning (exclusive)
WARNING_THRESHOLD = 60.0
SCORE_CEILING = 100.0


class NormalizedScore(BaseModel):
    rounded: float
    emoji: str

    @property
    def display(self) -> str:
        return f"{self.rounded:.2f} {self.emoji}"


class ComplexityDelta(BaseModel):
    """Presentation of one file's complexity change."""

    previous_display: str
    current_display: str
    change: float
    change_text: str


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a person would: 0.005 goes up, not to the even neighbour."""
    quantum = Decimal(1).scaleb(-places)
    rounded = float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    # Avoid "-0.00"
    return rounded if rounded != 0 else 0.0


def normalize(raw_score: float) -> NormalizedScore:
    """Round a score to two places and pick its risk emoji."""
    emoji = WARNING_EMOJI if raw_score > WARNING_THRESHOLD else OK_EMOJI
    return NormalizedScore(rounded=round_half_up(raw_score), emoji=emoji)


def invert(raw_score: float) -> float:
    return SCORE_CEILING - raw_score


def format_change(change: float) -> str:
    """Format a signed change as e.g. '+12.50% 📈👎'.

    The sign and emoji follow the unrounded change, so a change smaller than
    the display precision still reads as '+0.00% 📈👎'.
    """
    sign = "+" if change > 0 else "-" if change < 0 else ""
    text = f"{sign}{round_half_up(abs(change)):.2f}%"
    if change < 0:
        return f"{text} {IMPROVED_EMOJI}"
    if change > 0:
        return f"{text} {WORSENED_EMOJI}"
    return text


def delta(current_raw: float, previous_raw: float | None) -> ComplexityDelta:
    """Compare a file's oracle scores at head and base.

    A missing previous score shows as "N/A" but counts as a zero baseline in
    the change, so a new file's change equals its full complexity.
    """
    current = invert(current_raw)
    previous = invert(previous_raw) if previous_raw is not None else None

    current_display = normalize(current).display
    previous_display = normalize(previous).display if previous is not None else NOT_AVAILABLE

    change = current - (previous if previous is not None else 0.0)
    return ComplexityDelta(
        previous_display=previous_display,
        current_display=current_display,
        change=change,
        change_text=format_change(change),
    )
