"""
Pytest configuration and shared fixtures for nft-collection-scanner tests.
"""

import json
import time

import pytest
import responses

from scripts.lib.chain_client import RPC_URLS, SELECTORS


ETHEREUM_RPC_URL = RPC_URLS["ethereum"]


def abi_address(address: str) -> str:
    """ABI-encode an address return value."""
    return "0x" + "0" * 24 + address[2:].lower()


def abi_string(value: str) -> str:
    """ABI-encode a dynamic string return value."""
    raw = value.encode("utf-8")
    padded = raw.hex().ljust(((len(raw) + 31) // 32) * 64, "0")
    return "0x" + format(32, "064x") + format(len(raw), "064x") + padded


def abi_uint(value: int) -> str:
    """ABI-encode a uint256 return value."""
    return "0x" + format(value, "064x")


class FakeChain:
    """
    Serves eth_call requests for a fake ERC-721 contract.

    Tokens map id -> (owner, token_uri). Unknown ids revert, like a real
    contract does for nonexistent tokens. ``failures`` maps a token id to
    an HTTP status returned for every call touching that token.
    """

    def __init__(self, name="Test Collection", symbol="TEST", total_supply=None):
        self.name = name
        self.symbol = symbol
        self.total_supply = total_supply
        self.tokens = {}
        self.failures = {}
        self.calls = []

    def add_token(self, token_id, owner, token_uri=""):
        self.tokens[token_id] = (owner, token_uri)

    def _reply(self, request_id, result=None, error=None):
        body = {"jsonrpc": "2.0", "id": request_id}
        if error is not None:
            body["error"] = {"code": 3, "message": error}
        else:
            body["result"] = result
        return (200, {}, json.dumps(body))

    def __call__(self, request):
        payload = json.loads(request.body)
        data = payload["params"][0]["data"]
        selector, argument = data[:10], data[10:]
        request_id = payload["id"]
        token_id = int(argument, 16) if argument else None
        self.calls.append((selector, token_id))

        if token_id in self.failures:
            return (self.failures[token_id], {}, "")

        if selector == SELECTORS["name"]:
            return self._reply(request_id, abi_string(self.name))
        if selector == SELECTORS["symbol"]:
            return self._reply(request_id, abi_string(self.symbol))
        if selector == SELECTORS["totalSupply"]:
            if self.total_supply is None:
                return self._reply(request_id, error="execution reverted")
            return self._reply(request_id, abi_uint(self.total_supply))

        if token_id not in self.tokens:
            return self._reply(request_id, error="execution reverted: invalid token ID")

        owner, token_uri = self.tokens[token_id]
        if selector == SELECTORS["ownerOf"]:
            return self._reply(request_id, abi_address(owner))
        if selector == SELECTORS["tokenURI"]:
            return self._reply(request_id, abi_string(token_uri))
        return self._reply(request_id, error="execution reverted")


@pytest.fixture
def http_mock():
    """Provide a responses mock active for the duration of a test."""
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def fake_chain(http_mock):
    """A FakeChain registered on the default Ethereum RPC URL."""
    chain = FakeChain()
    http_mock.add_callback(
        responses.POST,
        ETHEREUM_RPC_URL,
        callback=chain,
        content_type="application/json",
    )
    return chain


@pytest.fixture
def sample_contract_address():
    """Sample ERC-721 contract address for testing."""
    return "0xBC4CA0EdA7647A8aB7C2061c2E118A18a936f13D"  # BAYC


@pytest.fixture
def holder_addresses():
    """Three distinct holder addresses (lowercase, as decoded from RPC)."""
    return [
        "0x1111111111111111111111111111111111111111",
        "0x2222222222222222222222222222222222222222",
        "0x3333333333333333333333333333333333333333",
    ]


@pytest.fixture
def no_sleep(monkeypatch):
    """Record requested sleeps instead of sleeping."""
    slept = []
    monkeypatch.setattr(time, "sleep", slept.append)
    return slept
