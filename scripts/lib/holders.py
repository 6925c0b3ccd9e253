"""
Holder distribution by sequential ownership scan.

Token ids are probed from 1 upward. The first failed lookup is treated as
the end of the collection, so a collection with gaps in its id space is
undercounted; the result is a lower bound.
"""

import sys
from typing import Dict, List

from .chain_client import ChainClient, validate_contract_address
from .errors import ScanError
from .models import Holder, HolderScan


MAX_TOKENS_CEILING = 10000


def log(message: str) -> None:
    """Log a message with the holders prefix."""
    print(f"[holders] {message}", file=sys.stderr)


def scan_holders(
    chain_client: ChainClient,
    contract: str,
    limit: int,
    chain: str = "ethereum",
    ceiling: int = MAX_TOKENS_CEILING,
) -> HolderScan:
    """
    Scan token ownership and aggregate holdings per address.

    Args:
        chain_client: Chain-read collaborator
        contract: Collection contract address
        limit: Number of token ids to probe
        chain: Chain the contract lives on
        ceiling: Hard upper bound on probed ids

    Returns:
        HolderScan with holders sorted by descending token count (ties in
        first-seen order), the number of successful lookups, and the id at
        which the scan halted, if any

    Raises:
        ScanError: VALIDATION for a malformed contract address
    """
    validate_contract_address(contract)

    counts: Dict[str, int] = {}
    lookups = 0
    halted_at = None
    upper = min(limit, ceiling)

    log(f"Fetching holder data for token ids 1..{max(upper, 0)}...")

    for token_id in range(1, upper + 1):
        try:
            owner = chain_client.get_owner(contract, token_id, chain)
        except ScanError as e:
            log(f"Lookup failed for token {token_id} ({e.kind.value}); stopping scan")
            halted_at = token_id
            break

        counts[owner] = counts.get(owner, 0) + 1
        lookups += 1

    holders = [Holder(address=address, token_count=count) for address, count in counts.items()]
    holders.sort(key=lambda h: h.token_count, reverse=True)

    return HolderScan(holders=holders, lookups=lookups, halted_at=halted_at)


def aggregate_holders(
    chain_client: ChainClient,
    contract: str,
    limit: int,
    chain: str = "ethereum",
    ceiling: int = MAX_TOKENS_CEILING,
) -> List[Holder]:
    """Return the holder list of a scan, sorted by descending token count."""
    return scan_holders(chain_client, contract, limit, chain, ceiling).holders
