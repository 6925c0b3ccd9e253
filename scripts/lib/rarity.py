"""
Trait-frequency rarity scoring.

The score of an asset is the sum, over its traits, of the inverse
frequency of that (trait_type, value) pair in the scored sample:

    score = sum(sample_size / count(trait) for trait in asset traits)

This is the common "rarity score" heuristic used by NFT tools, not a
probability. The denominator is the size of the sample actually scored,
not the collection's total supply, so scores are only comparable
between assets scored together in one call.
"""

from collections import Counter
from typing import List

from .models import Asset, RarityResult


def count_traits(assets: List[Asset]) -> Counter:
    """
    Count occurrences of each (trait_type, value) pair across the sample.

    Args:
        assets: The scored asset sample

    Returns:
        Counter keyed by Trait.key
    """
    counts: Counter = Counter()
    for asset in assets:
        for trait in asset.rarity_traits:
            counts[trait.key] += 1
    return counts


def compute_rarity(assets: List[Asset]) -> List[RarityResult]:
    """
    Score every asset of the sample.

    Args:
        assets: Full asset sample, after any enrichment

    Returns:
        One RarityResult per asset, in input order. Assets without traits
        score exactly 0.
    """
    sample_size = len(assets)
    counts = count_traits(assets)

    results: List[RarityResult] = []
    for asset in assets:
        traits = asset.rarity_traits
        score = 0.0
        for trait in traits:
            score += sample_size / counts[trait.key]

        results.append(
            RarityResult(
                token_id=asset.token_id,
                name=asset.display_name,
                rarity_score=score,
                traits=list(traits),
            )
        )

    return results


def rank_by_rarity(results: List[RarityResult]) -> List[RarityResult]:
    """Sort results by descending score; equal scores keep input order."""
    return sorted(results, key=lambda r: r.rarity_score, reverse=True)
