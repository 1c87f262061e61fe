"""Display helpers for project and leaderboard output."""

from typing import Optional


def format_number(value: Optional[float]) -> str:
    """1234 -> "1.2K", 3400000 -> "3.4M"."""
    if value is None:
        return "0"
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(int(value))


def rank_badge(rank: int) -> str:
    """Badge tier for a leaderboard position."""
    if rank == 1:
        return "gold"
    if rank == 2:
        return "silver"
    if rank == 3:
        return "bronze"
    if 0 < rank <= 10:
        return "top10"
    if 0 < rank <= 50:
        return "top50"
    return "default"


def display_score(score: Optional[float]) -> str:
    # Scores above 100 are shown as 100
    return f"{min(score or 0.0, 100.0):.1f}"
