"""
Error taxonomy for the NFT collection scanner.

Every failure that leaves a remote call is turned into a single tagged
ScanError whose ``kind`` decides whether the retry layer may re-invoke
the call.
"""

import sys
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

import requests


class ErrorKind(Enum):
    """Classification of a scanner failure."""

    VALIDATION = "validation"
    TRANSIENT_NETWORK = "transient_network"
    RATE_LIMITED = "rate_limited"
    AUTH_FAILURE = "auth_failure"
    NOT_FOUND = "not_found"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


RETRYABLE_KINDS = frozenset(
    {ErrorKind.TRANSIENT_NETWORK, ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR}
)


class ScanError(Exception):
    """
    Tagged exception raised for every scanner failure.

    Callers switch on ``kind`` instead of catching subclasses. Context
    fields are optional and filled in by whichever layer knows them.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        retry_after: Optional[float] = None,
        contract_address: Optional[str] = None,
        token_id: Optional[Union[str, int]] = None,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.retry_after = retry_after
        self.contract_address = contract_address
        self.token_id = token_id
        self.operation = operation
        self.cause = cause

    @property
    def retryable(self) -> bool:
        """Whether the retry layer may re-invoke the failed call."""
        return self.kind in RETRYABLE_KINDS

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation:
            parts.append(f"operation={self.operation}")
        if self.contract_address:
            parts.append(f"contract={self.contract_address}")
        if self.token_id is not None:
            parts.append(f"token_id={self.token_id}")
        return " ".join(parts)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header given in seconds.

    HTTP-date values and garbage are ignored so the caller falls back to
    exponential backoff.
    """
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def _classify_status(response: requests.Response) -> ScanError:
    status = response.status_code

    if status in (401, 403):
        return ScanError(
            ErrorKind.AUTH_FAILURE,
            f"Authentication failed ({status}). Check your API key and permissions.",
            status_code=status,
        )
    if status == 404:
        return ScanError(
            ErrorKind.NOT_FOUND,
            "Collection not found. Check contract address.",
            status_code=status,
        )
    if status == 429:
        return ScanError(
            ErrorKind.RATE_LIMITED,
            "Rate limit exceeded.",
            status_code=status,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )
    if status >= 500:
        return ScanError(
            ErrorKind.SERVER_ERROR,
            f"Server error ({status}).",
            status_code=status,
        )
    return ScanError(
        ErrorKind.UNKNOWN,
        f"API error ({status}): {response.reason}",
        status_code=status,
    )


def classify_error(
    exc: BaseException,
    operation: Optional[str] = None,
    contract_address: Optional[str] = None,
    token_id: Optional[Union[str, int]] = None,
) -> ScanError:
    """
    Classify any exception into a ScanError.

    Args:
        exc: The exception raised by a remote call
        operation: Name of the operation that failed
        contract_address: Contract the call targeted, if any
        token_id: Token the call targeted, if any

    Returns:
        A ScanError carrying the classification and context. An existing
        ScanError is returned as-is with missing context filled in.
    """
    if isinstance(exc, ScanError):
        error = exc
    elif isinstance(exc, requests.HTTPError) and exc.response is not None:
        error = _classify_status(exc.response)
        error.cause = exc
    elif isinstance(exc, requests.Timeout):
        error = ScanError(
            ErrorKind.TRANSIENT_NETWORK,
            "Request timeout. Check your connection.",
            cause=exc,
        )
    elif isinstance(exc, requests.ConnectionError):
        error = ScanError(
            ErrorKind.TRANSIENT_NETWORK,
            "Network error. Check your internet connection.",
            cause=exc,
        )
    else:
        error = ScanError(ErrorKind.UNKNOWN, f"Unexpected error: {exc}", cause=exc)

    if error.operation is None:
        error.operation = operation
    if error.contract_address is None:
        error.contract_address = contract_address
    if error.token_id is None:
        error.token_id = token_id
    return error


def log_error(error: BaseException, context: str = "") -> None:
    """Print a structured error report to stderr."""
    timestamp = datetime.now(timezone.utc).isoformat()
    print(f"[{timestamp}] ERROR {context}:", file=sys.stderr)

    if isinstance(error, ScanError):
        print(f"  Type: {error.kind.value}", file=sys.stderr)
        print(f"  Message: {error.message}", file=sys.stderr)
        if error.operation:
            print(f"  Operation: {error.operation}", file=sys.stderr)
        if error.kind is ErrorKind.RATE_LIMITED and error.retry_after:
            print(f"  Retry after: {error.retry_after} seconds", file=sys.stderr)
        if error.contract_address:
            print(f"  Contract: {error.contract_address}", file=sys.stderr)
        if error.token_id is not None:
            print(f"  Token: {error.token_id}", file=sys.stderr)
        if error.cause is not None:
            print(f"  Original error: {error.cause}", file=sys.stderr)
    else:
        print(f"  Message: {error}", file=sys.stderr)
