"""
Console formatters for collection reports.

This module turns rarity and holder results into the short tables the
CLI prints. Writing result files is left to other tools.
"""

from dataclasses import dataclass
from typing import List

from .models import Holder, RarityResult


def format_address(address: str) -> str:
    """
    Shorten an address for display.

    Examples:
        format_address("0x1234567890abcdef1234567890abcdef12345678") -> "0x1234...5678"
    """
    if not address or len(address) < 10:
        return address
    return f"{address[:6]}...{address[-4:]}"


def format_number(num: float) -> str:
    """
    Abbreviate large numbers.

    Examples:
        format_number(1500) -> "1.5K"
        format_number(2500000) -> "2.5M"
        format_number(42) -> "42"
    """
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return str(num)


@dataclass
class HolderSummary:
    """Aggregate figures for a holder distribution."""

    unique_holders: int
    total_tokens: int
    average_tokens: float


def summarize_holders(holders: List[Holder]) -> HolderSummary:
    """Compute unique holders, scanned tokens and average holding."""
    total = sum(h.token_count for h in holders)
    average = total / len(holders) if holders else 0.0
    return HolderSummary(unique_holders=len(holders), total_tokens=total, average_tokens=average)


def format_rarity_table(results: List[RarityResult], top: int = 5) -> List[str]:
    """
    Format the top entries of ranked rarity results.

    Args:
        results: Results already sorted by descending score
        top: Number of entries to show

    Returns:
        One line per entry, e.g. "1. Token #3 - Score: 3.00"
    """
    lines = []
    for rank, result in enumerate(results[:top], start=1):
        name = result.name or f"Token #{result.token_id}"
        lines.append(f"{rank}. {name} - Score: {result.rarity_score:.2f}")
    return lines


def format_holder_table(holders: List[Holder], top: int = 10) -> List[str]:
    """
    Format the top holders with their share of scanned tokens.

    Returns:
        One line per holder, e.g. "1. 0x1234...5678 - 3 tokens (60.00%)"
    """
    total = sum(h.token_count for h in holders)
    lines = []
    for rank, holder in enumerate(holders[:top], start=1):
        share = holder.token_count / total * 100 if total else 0.0
        lines.append(
            f"{rank}. {format_address(holder.address)} - "
            f"{holder.token_count} tokens ({share:.2f}%)"
        )
    return lines
