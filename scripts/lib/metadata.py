"""
Metadata enrichment for collection assets.

This module resolves each asset's token URI to its off-chain JSON
metadata and fans the enrichment out over an asset list in fixed-size
batches. One asset failing never fails the batch.
"""

import sys
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional

import requests

from .chain_client import ChainClient
from .errors import ErrorKind, ScanError
from .gateways import GatewayResolver
from .models import Asset, ChainContext, Metadata, parse_traits


DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_PAUSE = 1.0  # seconds between batches
DEFAULT_FETCH_TIMEOUT = 10.0  # seconds


def log(message: str) -> None:
    """Log a message with the metadata prefix."""
    print(f"[metadata] {message}", file=sys.stderr)


class MetadataEnricher:
    """
    Enriches a single asset with its resolved off-chain metadata.

    Every failure after the chain read leaves the asset unchanged.
    """

    def __init__(
        self,
        chain_client: ChainClient,
        resolver: Optional[GatewayResolver] = None,
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the enricher.

        Args:
            chain_client: Chain-read collaborator for owner and token URI
            resolver: Gateway resolver for ipfs:// URIs
            timeout: Timeout in seconds for the metadata GET
            session: Optional shared requests session
        """
        self.chain_client = chain_client
        self.resolver = resolver or GatewayResolver()
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_metadata(self, token_uri: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the JSON document behind a token URI.

        Returns:
            The decoded JSON object, or None on any failure
        """
        url = self.resolver.resolve_uri(token_uri)
        if not url:
            return None

        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                headers={"User-Agent": "NFTScanner/1.0"},
            )
            response.raise_for_status()
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            log(f"Error fetching metadata from {token_uri}: {e}")
            return None

        if not isinstance(body, dict):
            log(f"Metadata at {token_uri} is not a JSON object")
            return None
        return body

    def resolve_image_url(self, image_uri: Optional[str]) -> Optional[str]:
        """Resolve an image URI to an HTTP URL, best effort."""
        return self.resolver.resolve_uri(image_uri)

    def build_metadata(self, body: Dict[str, Any]) -> Metadata:
        """Build a Metadata record from a fetched metadata document."""
        raw_attributes = body.get("attributes")
        if raw_attributes is None:
            raw_attributes = body.get("traits")

        return Metadata(
            name=body.get("name"),
            description=body.get("description"),
            image=self.resolve_image_url(body.get("image")),
            external_url=body.get("external_url"),
            attributes=parse_traits(raw_attributes),
        )

    def enrich_asset(self, asset: Asset, context: ChainContext) -> Asset:
        """
        Enrich one asset with metadata, owner and token URI.

        Args:
            asset: The asset to enrich
            context: Contract and chain of the asset

        Returns:
            A new Asset with metadata applied, or the input asset unchanged
            if the token has no URI or the metadata is unreachable

        Raises:
            ScanError: If the chain read fails for any reason other than
                a missing token
        """
        if asset.token_id is None or asset.token_id == "":
            return asset

        try:
            token_uri, owner = self.chain_client.get_token_info(
                context.contract_address, asset.token_id, context.chain
            )
        except ScanError as e:
            if e.kind is not ErrorKind.NOT_FOUND:
                raise
            return asset

        if not token_uri:
            return asset

        body = self.fetch_metadata(token_uri)
        if body is None:
            return asset

        return replace(
            asset,
            metadata=self.build_metadata(body),
            owner=owner,
            token_uri=token_uri,
        )


@dataclass
class EnrichmentOutcome:
    """Result of one enrichment task: the enriched asset or the captured failure."""

    original: Asset
    asset: Optional[Asset] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.asset is not None

    @property
    def result(self) -> Asset:
        """The enriched asset, or the original one if enrichment failed."""
        return self.asset if self.ok else self.original


def _run_batch(
    batch: List[Asset],
    enricher: MetadataEnricher,
    context: ChainContext,
) -> List[EnrichmentOutcome]:
    outcomes: List[EnrichmentOutcome] = []

    with ThreadPoolExecutor(max_workers=len(batch)) as executor:
        futures = [executor.submit(enricher.enrich_asset, asset, context) for asset in batch]

        for asset, future in zip(batch, futures):
            try:
                outcomes.append(EnrichmentOutcome(original=asset, asset=future.result()))
            except Exception as e:
                outcomes.append(EnrichmentOutcome(original=asset, error=e))

    return outcomes


def enrich_batch(
    assets: List[Asset],
    enricher: MetadataEnricher,
    context: ChainContext,
    batch_size: int = DEFAULT_BATCH_SIZE,
    pause: float = DEFAULT_BATCH_PAUSE,
) -> List[Asset]:
    """
    Enrich assets in fixed-size concurrent batches.

    Batches run one after another with ``pause`` seconds between them;
    assets within a batch are enriched concurrently.

    Args:
        assets: Assets to enrich, in output order
        enricher: Per-asset enricher
        context: Contract and chain of the assets
        batch_size: Number of concurrent enrichments per batch
        pause: Seconds to wait between batches

    Returns:
        Assets in input order, enriched where possible. A failed enrichment
        contributes the original asset at its position.

    Raises:
        ScanError: VALIDATION if batch_size is below 1
    """
    if batch_size < 1:
        raise ScanError(ErrorKind.VALIDATION, f"batch_size must be at least 1, got {batch_size}")

    enriched: List[Asset] = []
    total_batches = (len(assets) + batch_size - 1) // batch_size

    for start in range(0, len(assets), batch_size):
        batch = assets[start : start + batch_size]
        batch_number = start // batch_size + 1
        log(f"Processing metadata batch {batch_number}/{total_batches}")

        for outcome in _run_batch(batch, enricher, context):
            if not outcome.ok:
                log(f"Failed to enrich asset {outcome.original.token_id}: {outcome.error}")
            enriched.append(outcome.result)

        if batch_number < total_batches:
            time.sleep(pause)

    return enriched
