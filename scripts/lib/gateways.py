"""
IPFS gateway resolution with round-robin failover.

A content hash is resolved to the first mirror whose HEAD check succeeds,
starting from the mirror that last worked.
"""

import sys
from typing import Any, List, Optional

import requests


IPFS_GATEWAYS = [
    "https://ipfs.io/ipfs/",
    "https://gateway.pinata.cloud/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
    "https://dweb.link/ipfs/",
]

IPFS_SCHEME = "ipfs://"

DEFAULT_PROBE_TIMEOUT = 5.0  # seconds


def is_content_addressed(uri: Any) -> bool:
    """Check whether a URI is an ipfs:// reference."""
    return isinstance(uri, str) and uri.startswith(IPFS_SCHEME)


def content_hash(uri: str) -> str:
    """
    Extract the content path from an ipfs:// URI.

    Examples:
        content_hash("ipfs://QmHash/1.json") -> "QmHash/1.json"
        content_hash("ipfs://ipfs/QmHash") -> "QmHash"
    """
    path = uri[len(IPFS_SCHEME) :]
    if path.startswith("ipfs/"):
        path = path[len("ipfs/") :]
    return path


class GatewayResolver:
    """
    Resolves content hashes to a reachable HTTP gateway URL.

    The resolver owns its ``last_good_index``. Concurrent callers may race
    on it; a lost update only costs an extra probe on the next call.
    """

    def __init__(
        self,
        gateways: Optional[List[str]] = None,
        timeout: float = DEFAULT_PROBE_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.gateways = list(gateways) if gateways is not None else list(IPFS_GATEWAYS)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.last_good_index = 0

    def _exists(self, url: str) -> bool:
        try:
            response = self.session.head(url, timeout=self.timeout, allow_redirects=True)
        except requests.RequestException:
            return False
        return response.ok

    def resolve(self, ipfs_hash: str) -> Optional[str]:
        """
        Find a gateway serving the given content hash.

        Args:
            ipfs_hash: Content hash, optionally followed by a path

        Returns:
            Gateway URL for the content, or None if no gateway answered
        """
        count = len(self.gateways)
        start = self.last_good_index

        for offset in range(count):
            index = (start + offset) % count
            url = self.gateways[index] + ipfs_hash
            if self._exists(url):
                self.last_good_index = index
                return url

        print(f"[gateway] No gateway could resolve {ipfs_hash}", file=sys.stderr)
        return None

    def resolve_uri(self, uri: Any) -> Optional[str]:
        """
        Turn a token or image URI into a fetchable HTTP URL.

        Returns:
            Gateway URL for ipfs:// URIs, the URI itself for http(s) URIs,
            None for anything else, including non-string values
        """
        if not uri or not isinstance(uri, str):
            return None
        if is_content_addressed(uri):
            return self.resolve(content_hash(uri))
        if uri.startswith("http://") or uri.startswith("https://"):
            return uri
        return None
