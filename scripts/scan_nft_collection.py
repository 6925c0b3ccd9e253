#!/usr/bin/env python3
"""
Scan and analyze an NFT collection.

This script ranks a collection's listed tokens by trait rarity, optionally
enriching them with IPFS metadata first, and reports the holder
distribution from on-chain ownership.
"""

import argparse
import sys
from typing import List, Optional

import requests

from scripts.lib.chain_client import ChainClient, is_valid_address
from scripts.lib.config import ScanConfig, load_config
from scripts.lib.errors import ScanError, log_error
from scripts.lib.formatters import (
    format_holder_table,
    format_number,
    format_rarity_table,
    summarize_holders,
)
from scripts.lib.gateways import GatewayResolver
from scripts.lib.holders import scan_holders
from scripts.lib.marketplace_client import MarketplaceClient
from scripts.lib.metadata import MetadataEnricher, enrich_batch
from scripts.lib.models import ChainContext
from scripts.lib.rarity import compute_rarity, rank_by_rarity


SUPPORTED_CHAINS = ["ethereum", "polygon"]


def log(message: str) -> None:
    """Log a progress message to stderr."""
    print(message, file=sys.stderr)


def validate_chain(chain: str) -> str:
    """
    Validate and normalize a chain name.

    Raises:
        ValueError: If the chain is not supported
    """
    chain_lower = chain.lower()
    if chain_lower not in SUPPORTED_CHAINS:
        raise ValueError(f"Unsupported chain: {chain}. Supported: {', '.join(SUPPORTED_CHAINS)}")
    return chain_lower


def run_scan(config: ScanConfig, address: str, chain: str, limit: int, metadata: bool) -> int:
    """Rank listed assets by rarity and print the rarest."""
    session = requests.Session()
    marketplace = MarketplaceClient(config.opensea_api_key, session=session)

    log(f"Scanning NFT collection: {address}")
    log(f"Chain: {chain}")

    try:
        stats = marketplace.get_collection_stats(address)
        if stats:
            log(f"Floor price: {stats.get('floor_price')}  Owners: {stats.get('num_owners')}")
    except ScanError as e:
        log_error(e, "collection stats")

    try:
        assets = marketplace.get_collection_assets(address, limit=limit)
    except ScanError as e:
        log_error(e, "collection assets")
        return 1
    log(f"Found {len(assets)} assets")

    if metadata and assets:
        log("Fetching metadata from IPFS...")
        enricher = MetadataEnricher(
            ChainClient(config.rpc_urls, session=session),
            GatewayResolver(session=session),
            session=session,
        )
        assets = enrich_batch(
            assets,
            enricher,
            ChainContext(contract_address=address, chain=chain),
            pause=config.batch_pause,
        )

    if not assets:
        return 0

    ranked = rank_by_rarity(compute_rarity(assets))
    print("Top 5 Rarest Assets:")
    for line in format_rarity_table(ranked, top=5):
        print(line)

    return 0


def run_holders(config: ScanConfig, address: str, chain: str, limit: int) -> int:
    """Print the holder distribution of a collection."""
    client = ChainClient(config.rpc_urls)

    log(f"Getting holders for: {address} on {chain}")

    try:
        info = client.get_collection_info(address, chain)
        total_supply = info.total_supply if info.total_supply is not None else "Unknown"
        log(f"Collection: {info.name} ({info.symbol})")
        log(f"Total Supply: {total_supply}")
    except ScanError as e:
        log_error(e, "collection info")

    try:
        result = scan_holders(client, address, limit, chain)
    except ScanError as e:
        log_error(e, "holders")
        return 1

    if result.halted_at is not None:
        log(f"Scan stopped at token {result.halted_at}; counts are a lower bound")

    if not result.holders:
        return 0

    summary = summarize_holders(result.holders)
    print("\nTop 10 Holders:")
    for line in format_holder_table(result.holders, top=10):
        print(line)
    print(f"\nTotal unique holders: {format_number(summary.unique_holders)}")
    print(f"Average tokens per holder: {summary.average_tokens:.2f}")

    return 0


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error)
    """
    parser = argparse.ArgumentParser(
        prog="nft-scan",
        description="Scan and analyze NFT collections.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rank the listed tokens of a collection, resolving IPFS metadata
  %(prog)s scan 0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D --metadata

  # Holder distribution over the first 500 token ids on Polygon
  %(prog)s holders 0x... --chain polygon --limit 500
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Rank collection assets by rarity")
    scan_parser.add_argument("address", help="Collection contract address")
    scan_parser.add_argument("--chain", help="Chain to scan (ethereum, polygon)")
    scan_parser.add_argument("--limit", type=int, help="Number of assets to fetch (default: 50)")
    scan_parser.add_argument(
        "--metadata", action="store_true", help="Fetch token metadata from IPFS"
    )

    holders_parser = subparsers.add_parser("holders", help="Get holder distribution")
    holders_parser.add_argument("address", help="Collection contract address")
    holders_parser.add_argument("--chain", help="Chain to scan (ethereum, polygon)")
    holders_parser.add_argument("--limit", type=int, help="Max token ids to check (default: 1000)")

    parsed_args = parser.parse_args(args)

    try:
        config = load_config()
    except ScanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not is_valid_address(parsed_args.address):
        print("Error: Invalid contract address format", file=sys.stderr)
        return 1

    try:
        chain = validate_chain(parsed_args.chain or config.default_chain)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if parsed_args.command == "scan":
        limit = parsed_args.limit if parsed_args.limit is not None else config.default_limit
        return run_scan(config, parsed_args.address, chain, limit, parsed_args.metadata)

    limit = parsed_args.limit if parsed_args.limit is not None else config.max_tokens_for_holders
    return run_holders(config, parsed_args.address, chain, limit)


if __name__ == "__main__":
    sys.exit(main())
