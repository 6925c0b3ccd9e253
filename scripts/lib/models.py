"""
Data models for NFT collection scanning.

This module defines the Asset model shared by the marketplace client,
the metadata enricher and the rarity engine, plus the derived result
types for rarity and holder analysis.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union


TraitValue = Union[str, int, float]
TokenId = Union[str, int]


@dataclass(frozen=True)
class Trait:
    """A (trait_type, value) descriptor; also the rarity bucket key."""

    trait_type: str
    value: TraitValue

    @property
    def key(self) -> Tuple[str, TraitValue]:
        return (self.trait_type, self.value)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trait":
        """Build a Trait from a marketplace trait or metadata attribute dict."""
        trait_type = data.get("trait_type") or data.get("type") or ""
        return cls(trait_type=str(trait_type), value=data["value"])


def _is_trait_value(value: Any) -> bool:
    # bool is excluded so true and 1 never share a bucket
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def parse_traits(raw: Any) -> List[Trait]:
    """
    Parse a raw trait/attribute list.

    Entries that are not dicts, or whose value is missing or not a string
    or number (lists, objects, booleans), are skipped.

    Args:
        raw: List of dicts as found in listings or metadata JSON

    Returns:
        List of Trait objects in their original order
    """
    if not isinstance(raw, list):
        return []

    traits: List[Trait] = []
    for item in raw:
        if isinstance(item, dict) and _is_trait_value(item.get("value")):
            traits.append(Trait.from_dict(item))
    return traits


@dataclass
class Metadata:
    """Off-chain token metadata resolved from the token URI."""

    name: Optional[str]
    description: Optional[str]
    image: Optional[str]  # Resolved HTTP URL, None if unresolvable
    external_url: Optional[str]
    attributes: List[Trait] = field(default_factory=list)


@dataclass
class Asset:
    """
    A single token of the scanned collection.

    Created from a marketplace listing; the enricher returns a copy with
    metadata, owner and token_uri filled in.
    """

    token_id: TokenId
    name: Optional[str] = None
    traits: List[Trait] = field(default_factory=list)
    metadata: Optional[Metadata] = None
    owner: Optional[str] = None
    token_uri: Optional[str] = None

    @classmethod
    def from_listing(cls, listing: Dict[str, Any]) -> "Asset":
        """Build an Asset from a marketplace listing dict."""
        owner = listing.get("owner")
        if isinstance(owner, dict):
            owner = owner.get("address")

        return cls(
            token_id=listing.get("token_id", listing.get("identifier", "")),
            name=listing.get("name"),
            traits=parse_traits(listing.get("traits")),
            owner=owner,
        )

    @property
    def rarity_traits(self) -> List[Trait]:
        """Listing traits, or resolved metadata attributes when the listing has none."""
        if self.traits:
            return self.traits
        if self.metadata is not None:
            return self.metadata.attributes
        return []

    @property
    def display_name(self) -> str:
        if self.metadata is not None and self.metadata.name:
            return self.metadata.name
        return self.name or f"Token #{self.token_id}"


@dataclass
class RarityResult:
    """Rarity score of one asset within the scored sample."""

    token_id: TokenId
    name: Optional[str]
    rarity_score: float
    traits: List[Trait]


@dataclass
class Holder:
    """An address and the number of scanned tokens it owns."""

    address: str
    token_count: int


@dataclass
class HolderScan:
    """
    Outcome of a sequential ownership scan.

    ``halted_at`` is the token id whose lookup failed, or None when the
    scan reached its bound. The holder list is a lower bound either way.
    """

    holders: List[Holder]
    lookups: int
    halted_at: Optional[int] = None


@dataclass
class ChainContext:
    """Contract and chain the assets belong to."""

    contract_address: str
    chain: str = "ethereum"


@dataclass
class CollectionInfo:
    """On-chain collection descriptor."""

    name: Optional[str]
    symbol: Optional[str]
    total_supply: Optional[int]  # None if the contract does not expose it
    contract_address: str
    chain: str
