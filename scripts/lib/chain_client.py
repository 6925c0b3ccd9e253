"""
JSON-RPC client for reading ERC-721 contracts.

This module provides the chain-read collaborator used by the metadata
enricher and the holder aggregator. Calls are plain ``eth_call``
requests over HTTP; every request goes through the retry layer.
"""

import re
from typing import Any, List, Optional, Tuple, Union

import requests

from .errors import ErrorKind, ScanError, classify_error
from .models import CollectionInfo
from .retry import DEFAULT_BASE_DELAY, DEFAULT_MAX_ATTEMPTS, with_retry


# Default public RPC endpoints per chain
RPC_URLS = {
    "ethereum": "https://ethereum-rpc.publicnode.com",
    "polygon": "https://polygon-rpc.com",
}

# ERC-721 function selectors (first 4 bytes of keccak256 of the signature)
SELECTORS = {
    "name": "0x06fdde03",  # name()
    "symbol": "0x95d89b41",  # symbol()
    "totalSupply": "0x18160ddd",  # totalSupply()
    "tokenURI": "0xc87b56dd",  # tokenURI(uint256)
    "ownerOf": "0x6352211e",  # ownerOf(uint256)
}

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")

DEFAULT_RPC_TIMEOUT = 15.0  # seconds

# Provider throttling reported inside a 200 JSON-RPC response
RPC_RATE_LIMIT_CODES = (-32005, 429)
RPC_RATE_LIMIT_MARKERS = ("rate limit", "limit exceeded", "too many requests")


def is_valid_address(address: Optional[str]) -> bool:
    """Check for a 0x-prefixed 40-hex-character address."""
    return bool(address) and ADDRESS_PATTERN.match(address) is not None


def validate_contract_address(address: Optional[str]) -> str:
    """
    Validate a contract address.

    Raises:
        ScanError: VALIDATION for malformed addresses
    """
    if not is_valid_address(address):
        raise ScanError(
            ErrorKind.VALIDATION,
            f"Invalid contract address format: {address!r}",
            contract_address=address,
        )
    return address


def encode_uint256(value: Union[str, int]) -> str:
    """ABI-encode an unsigned integer argument as 64 hex characters."""
    number = int(value)
    if number < 0:
        raise ScanError(ErrorKind.VALIDATION, f"Token id must be non-negative: {value}")
    return format(number, "064x")


def _words(data: str) -> List[str]:
    payload = data[2:] if data.startswith("0x") else data
    return [payload[i : i + 64] for i in range(0, len(payload), 64)]


def decode_address(data: str) -> str:
    """Decode an ABI-encoded address return value."""
    words = _words(data)
    if not words or len(words[0]) != 64:
        raise ScanError(ErrorKind.NOT_FOUND, "Empty return data for address call")
    return "0x" + words[0][24:]


def decode_uint256(data: str) -> int:
    """Decode an ABI-encoded uint256 return value."""
    words = _words(data)
    if not words or not words[0]:
        raise ScanError(ErrorKind.NOT_FOUND, "Empty return data for uint256 call")
    return int(words[0], 16)


def decode_string(data: str) -> str:
    """
    Decode an ABI-encoded dynamic string return value.

    Layout: offset word, length word at that offset, then UTF-8 bytes
    padded to a multiple of 32 bytes.
    """
    payload = data[2:] if data.startswith("0x") else data
    if len(payload) < 128:
        raise ScanError(ErrorKind.NOT_FOUND, "Empty return data for string call")

    offset = int(payload[0:64], 16) * 2
    length = int(payload[offset : offset + 64], 16) * 2
    start = offset + 64
    raw = bytes.fromhex(payload[start : start + length])
    return raw.decode("utf-8", errors="replace")


def rpc_error(error: Any) -> ScanError:
    """
    Classify a JSON-RPC error object.

    Provider throttling (code -32005 or a rate-limit message) is
    RATE_LIMITED; everything else, reverts included, is NOT_FOUND.
    """
    if isinstance(error, dict):
        code = error.get("code")
        message = str(error.get("message", error))
    else:
        code = None
        message = str(error)

    lowered = message.lower()
    if code in RPC_RATE_LIMIT_CODES or any(m in lowered for m in RPC_RATE_LIMIT_MARKERS):
        return ScanError(ErrorKind.RATE_LIMITED, f"RPC rate limited: {message}")
    return ScanError(ErrorKind.NOT_FOUND, f"RPC error: {message}")


class ChainClient:
    """
    Read-only ERC-721 contract client over JSON-RPC.

    All RPC traffic goes through one session per client, which handles:
    - Chain-specific RPC endpoint URLs
    - Retry of transient, rate-limited and server failures
    - Mapping of reverted calls to NOT_FOUND
    """

    def __init__(
        self,
        rpc_urls: Optional[dict] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the chain client.

        Args:
            rpc_urls: Mapping of chain name to RPC URL (defaults to RPC_URLS)
            max_attempts: Total attempts per RPC call
            base_delay: Initial backoff delay in seconds
            timeout: Per-request timeout in seconds
            session: Optional shared requests session
        """
        self.rpc_urls = dict(RPC_URLS)
        if rpc_urls:
            self.rpc_urls.update({k: v for k, v in rpc_urls.items() if v})
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.timeout = timeout
        self.session = session or requests.Session()
        self._request_id = 0

    def _get_rpc_url(self, chain: str) -> str:
        """Get the RPC URL for a chain."""
        if chain not in self.rpc_urls:
            raise ScanError(ErrorKind.VALIDATION, f"Unsupported chain: {chain}")
        return self.rpc_urls[chain]

    def _post(self, url: str, payload: dict) -> Any:
        response = self.session.post(url, json=payload, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        if "error" in data:
            raise rpc_error(data["error"])

        return data.get("result")

    def _eth_call(
        self,
        chain: str,
        contract: str,
        data: str,
        operation: str,
        token_id: Optional[Union[str, int]] = None,
    ) -> str:
        """
        Execute an eth_call against a contract with retry.

        Args:
            chain: Target chain (ethereum, polygon)
            contract: Contract address
            data: Encoded call data
            operation: Name used in retry warnings and error context
            token_id: Token the call targets, for error context

        Returns:
            Hex-encoded return data

        Raises:
            ScanError: Classified failure once retries are exhausted
        """
        url = self._get_rpc_url(chain)
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": "eth_call",
            "params": [{"to": contract, "data": data}, "latest"],
            "id": self._request_id,
        }

        call = with_retry(
            self._post,
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            operation_name=operation,
        )
        try:
            result = call(url, payload)
        except Exception as e:
            error = classify_error(
                e, operation=operation, contract_address=contract, token_id=token_id
            )
            if error is e:
                raise
            raise error from e

        if not result or result == "0x":
            raise ScanError(
                ErrorKind.NOT_FOUND,
                "Empty return data",
                contract_address=contract,
                token_id=token_id,
                operation=operation,
            )
        return result

    def get_owner(self, contract: str, token_id: Union[str, int], chain: str = "ethereum") -> str:
        """
        Get the current owner of a token.

        Returns:
            Owner address (0x-prefixed, lowercase hex)

        Raises:
            ScanError: NOT_FOUND if the token does not exist
        """
        data = SELECTORS["ownerOf"] + encode_uint256(token_id)
        result = self._eth_call(chain, contract, data, "ownerOf", token_id)
        return decode_address(result)

    def get_token_uri(
        self, contract: str, token_id: Union[str, int], chain: str = "ethereum"
    ) -> str:
        """Get the canonical metadata URI of a token."""
        data = SELECTORS["tokenURI"] + encode_uint256(token_id)
        result = self._eth_call(chain, contract, data, "tokenURI", token_id)
        return decode_string(result)

    def get_token_info(
        self, contract: str, token_id: Union[str, int], chain: str = "ethereum"
    ) -> Tuple[str, str]:
        """
        Get token URI and owner in one step.

        Returns:
            Tuple of (token_uri, owner)
        """
        token_uri = self.get_token_uri(contract, token_id, chain)
        owner = self.get_owner(contract, token_id, chain)
        return token_uri, owner

    def get_collection_info(self, contract: str, chain: str = "ethereum") -> CollectionInfo:
        """
        Get name, symbol and total supply of a collection.

        totalSupply is optional in ERC-721; it is None when the call fails
        with NOT_FOUND.
        """
        name = decode_string(self._eth_call(chain, contract, SELECTORS["name"], "name"))
        symbol = decode_string(self._eth_call(chain, contract, SELECTORS["symbol"], "symbol"))

        try:
            total_supply: Optional[int] = decode_uint256(
                self._eth_call(chain, contract, SELECTORS["totalSupply"], "totalSupply")
            )
        except ScanError as e:
            if e.kind is not ErrorKind.NOT_FOUND:
                raise
            total_supply = None

        return CollectionInfo(
            name=name,
            symbol=symbol,
            total_supply=total_supply,
            contract_address=contract,
            chain=chain,
        )
