"""
Unit tests for the JSON-RPC chain client.

Tests follow the Given/When/Then pattern for clarity.
"""

import pytest

from scripts.lib.chain_client import (
    RPC_URLS,
    ChainClient,
    decode_address,
    decode_string,
    decode_uint256,
    encode_uint256,
    is_valid_address,
    rpc_error,
    validate_contract_address,
)
from scripts.lib.errors import ErrorKind, ScanError


# "ipfs://QmHash/1" ABI-encoded as a dynamic string
ENCODED_URI = (
    "0x"
    "0000000000000000000000000000000000000000000000000000000000000020"
    "000000000000000000000000000000000000000000000000000000000000000f"
    "697066733a2f2f516d486173682f310000000000000000000000000000000000"
)


class TestAddressValidation:
    """Tests for contract address validation."""

    def test_accepts_checksummed_and_lowercase_addresses(self, sample_contract_address):
        assert is_valid_address(sample_contract_address)
        assert is_valid_address(sample_contract_address.lower())

    @pytest.mark.parametrize(
        "address",
        [None, "", "0x123", "BC4CA0EdA7647A8aB7C2061c2E118A18a936f13D", "0x" + "g" * 40],
    )
    def test_rejects_malformed_addresses(self, address):
        """
        Given a malformed address
        When validating it
        Then a VALIDATION ScanError should be raised
        """
        # When / Then
        with pytest.raises(ScanError) as exc_info:
            validate_contract_address(address)

        assert exc_info.value.kind is ErrorKind.VALIDATION


class TestAbiCoding:
    """Tests for the ABI helpers."""

    def test_encode_uint256_pads_to_32_bytes(self):
        assert encode_uint256(5) == "0" * 63 + "5"
        assert encode_uint256("255") == "0" * 62 + "ff"

    def test_decode_string(self):
        assert decode_string(ENCODED_URI) == "ipfs://QmHash/1"

    def test_decode_address_takes_low_20_bytes(self):
        # Given
        data = "0x" + "0" * 24 + "ab" * 20

        # When / Then
        assert decode_address(data) == "0x" + "ab" * 20

    def test_decode_uint256(self):
        assert decode_uint256("0x" + format(10000, "064x")) == 10000

    def test_decode_empty_string_result_is_not_found(self):
        with pytest.raises(ScanError) as exc_info:
            decode_string("0x")

        assert exc_info.value.kind is ErrorKind.NOT_FOUND


class TestRpcError:
    """Tests for rpc_error classification."""

    @pytest.mark.parametrize(
        "error",
        [
            {"code": -32005, "message": "limit exceeded"},
            {"code": -32000, "message": "Too Many Requests, please slow down"},
            "rate limit reached",
        ],
    )
    def test_provider_throttling_is_rate_limited(self, error):
        assert rpc_error(error).kind is ErrorKind.RATE_LIMITED

    def test_revert_is_not_found(self):
        # When
        error = rpc_error({"code": 3, "message": "execution reverted: invalid token ID"})

        # Then
        assert error.kind is ErrorKind.NOT_FOUND
        assert "invalid token ID" in error.message


class TestTokenReads:
    """Tests for owner and token URI lookups."""

    def test_get_owner_returns_decoded_address(
        self, fake_chain, sample_contract_address, holder_addresses
    ):
        """
        Given a contract where token 1 is owned by a known address
        When calling get_owner
        Then the owner address should be returned
        """
        # Given
        fake_chain.add_token(1, holder_addresses[0])
        client = ChainClient()

        # When
        owner = client.get_owner(sample_contract_address, 1)

        # Then
        assert owner == holder_addresses[0]

    def test_get_token_info_returns_uri_and_owner(
        self, fake_chain, sample_contract_address, holder_addresses
    ):
        # Given
        fake_chain.add_token(3, holder_addresses[1], "ipfs://QmHash/3")
        client = ChainClient()

        # When
        token_uri, owner = client.get_token_info(sample_contract_address, 3)

        # Then
        assert token_uri == "ipfs://QmHash/3"
        assert owner == holder_addresses[1]

    def test_reverted_call_is_not_found_with_context(self, fake_chain, sample_contract_address):
        """
        Given a token id the contract does not know
        When calling get_owner
        Then a NOT_FOUND error naming contract and token should be raised without retry
        """
        # Given
        client = ChainClient()

        # When / Then
        with pytest.raises(ScanError) as exc_info:
            client.get_owner(sample_contract_address, 99)

        error = exc_info.value
        assert error.kind is ErrorKind.NOT_FOUND
        assert error.contract_address == sample_contract_address
        assert error.token_id == 99
        assert error.operation == "ownerOf"
        assert len(fake_chain.calls) == 1
        assert error.__cause__ is not error

    def test_server_errors_are_retried(
        self, fake_chain, sample_contract_address, holder_addresses, no_sleep
    ):
        """
        Given an RPC endpoint that returns 503 for a token
        When calling get_owner
        Then the call should be attempted max_attempts times and fail classified
        """
        # Given
        fake_chain.add_token(1, holder_addresses[0])
        fake_chain.failures[1] = 503
        client = ChainClient(max_attempts=3, base_delay=0.5)

        # When / Then
        with pytest.raises(ScanError) as exc_info:
            client.get_owner(sample_contract_address, 1)

        assert exc_info.value.kind is ErrorKind.SERVER_ERROR
        assert len(fake_chain.calls) == 3
        assert no_sleep == [0.5, 1.0]

    def test_provider_rate_limit_in_rpc_body_is_retried(
        self, http_mock, sample_contract_address, holder_addresses, no_sleep
    ):
        """
        Given an RPC endpoint that answers 200 with a -32005 limit error once
        When calling get_owner
        Then the call should be retried and return the owner
        """
        # Given
        http_mock.add(
            http_mock.POST,
            RPC_URLS["ethereum"],
            json={
                "jsonrpc": "2.0",
                "id": 1,
                "error": {"code": -32005, "message": "daily request count exceeded"},
            },
        )
        http_mock.add(
            http_mock.POST,
            RPC_URLS["ethereum"],
            json={"jsonrpc": "2.0", "id": 2, "result": "0x" + "0" * 24 + holder_addresses[0][2:]},
        )
        client = ChainClient(max_attempts=3, base_delay=0.5)

        # When
        owner = client.get_owner(sample_contract_address, 1)

        # Then
        assert owner == holder_addresses[0]
        assert no_sleep == [0.5]

    def test_unsupported_chain_is_validation_error(self, sample_contract_address):
        # Given
        client = ChainClient()

        # When / Then
        with pytest.raises(ScanError) as exc_info:
            client.get_owner(sample_contract_address, 1, chain="solana")

        assert exc_info.value.kind is ErrorKind.VALIDATION

    def test_custom_rpc_url_overrides_default(self):
        # Given
        client = ChainClient({"polygon": "https://polygon.example/rpc", "ethereum": None})

        # When / Then
        assert client._get_rpc_url("polygon") == "https://polygon.example/rpc"
        assert client._get_rpc_url("ethereum") == "https://ethereum-rpc.publicnode.com"


class TestCollectionInfo:
    """Tests for get_collection_info."""

    def test_returns_name_symbol_and_supply(self, fake_chain, sample_contract_address):
        # Given
        fake_chain.name = "Bored Ape Yacht Club"
        fake_chain.symbol = "BAYC"
        fake_chain.total_supply = 10000
        client = ChainClient()

        # When
        info = client.get_collection_info(sample_contract_address)

        # Then
        assert info.name == "Bored Ape Yacht Club"
        assert info.symbol == "BAYC"
        assert info.total_supply == 10000
        assert info.chain == "ethereum"

    def test_missing_total_supply_is_none(self, fake_chain, sample_contract_address):
        """
        Given a contract that does not implement totalSupply
        When fetching collection info
        Then total_supply should be None rather than an error
        """
        # Given
        client = ChainClient()

        # When
        info = client.get_collection_info(sample_contract_address)

        # Then
        assert info.name == "Test Collection"
        assert info.total_supply is None
