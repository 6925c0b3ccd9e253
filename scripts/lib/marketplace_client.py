"""
OpenSea marketplace client for collection listings and stats.

Listings are the raw asset sample fed to the rarity engine.
"""

from typing import Any, Dict, List, Optional

import requests

from .errors import classify_error
from .models import Asset
from .retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, with_retry


OPENSEA_BASE_URL = "https://api.opensea.io/api/v1"

DEFAULT_ASSET_LIMIT = 50
DEFAULT_MARKETPLACE_TIMEOUT = 15.0  # seconds


class MarketplaceClient:
    """OpenSea REST client with classified retry handling."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = OPENSEA_BASE_URL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        timeout: float = DEFAULT_MARKETPLACE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json", "User-Agent": "NFTScanner/1.0"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        return headers

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = self.session.get(
            f"{self.base_url}/{path}",
            params=params,
            headers=self._headers(),
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    def _request(
        self,
        path: str,
        operation: str,
        contract: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make a GET request with retry.

        Raises:
            ScanError: Classified failure with the contract attached
        """
        call = with_retry(
            self._get,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            operation_name=operation,
        )
        try:
            return call(path, params)
        except Exception as e:
            error = classify_error(e, operation=operation, contract_address=contract)
            if error is e:
                raise
            raise error from e

    def get_collection_stats(self, contract: str) -> Dict[str, Any]:
        """
        Get marketplace statistics for a collection.

        Args:
            contract: Collection contract address

        Returns:
            The stats dict (floor price, volume, owners, ...)
        """
        data = self._request(f"collection/{contract}/stats", "getCollectionStats", contract)
        return data.get("stats", data)

    def get_collection_assets(
        self, contract: str, limit: int = DEFAULT_ASSET_LIMIT
    ) -> List[Asset]:
        """
        Get the listed assets of a collection.

        Args:
            contract: Collection contract address
            limit: Maximum number of assets to fetch

        Returns:
            List of Asset objects in listing order
        """
        params = {
            "asset_contract_address": contract,
            "limit": limit,
            "order_direction": "desc",
        }
        data = self._request("assets", "getCollectionAssets", contract, params)
        return [Asset.from_listing(item) for item in data.get("assets") or []]
