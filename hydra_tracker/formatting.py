"""Text and display helpers shared by notifications and the main window."""

from __future__ import annotations

from typing import List, Tuple


HEALTH_FINE = "fine"
HEALTH_CAUTION = "caution"
HEALTH_DANGER = "danger"

HEALTH_COLORS = {
    HEALTH_FINE: "#4ade80",
    HEALTH_CAUTION: "#fbbf24",
    HEALTH_DANGER: "#dc2626",
}


def format_interval(milliseconds: int) -> str:
    """Format a large interval (e.g. 45 minutes) into a readable string."""
    minutes_total = max(0, milliseconds // 60000)
    hours, minutes = divmod(minutes_total, 60)

    parts: List[str] = []
    if hours:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes:
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")

    if not parts:
        return "less than a minute"
    return " ".join(parts)


def format_litres(millilitres: float) -> str:
    return f"{millilitres / 1000:.1f}L"


def health_status(percentage: float) -> str:
    if percentage >= 75:
        return HEALTH_FINE
    if percentage >= 40:
        return HEALTH_CAUTION
    return HEALTH_DANGER


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    """Move ``delta`` months forward (or back) with year wrap-around."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
