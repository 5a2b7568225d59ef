from __future__ import annotations

from enum import Enum

import httpx


NETWORK_DIAGNOSTIC_MESSAGE = (
    "A network error occurred before the model provider responded. "
    "A firewall or network policy, a proxy or VPN, or a browser extension such as an "
    "ad-blocker (when calling from a browser) can block the request. "
    "Check that the provider host is reachable from this machine and rerun with "
    "MODEL_TESTER_LOG_LEVEL=DEBUG to see the underlying transport error."
)


class ErrorKind(str, Enum):
    network = "network"
    auth = "auth"
    not_found = "not_found"
    provider_rejected = "provider_rejected"
    invalid_request = "invalid_request"
    empty_response = "empty_response"


class ClientError(RuntimeError):
    """Base error for model provider client failures."""

    kind: ErrorKind = ErrorKind.provider_rejected

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(ClientError):
    """Raised when the credential is missing or the provider refuses it."""

    kind = ErrorKind.auth


class NetworkError(ClientError):
    """Raised when the request fails before any HTTP response arrives."""

    kind = ErrorKind.network


class ProviderRejectedError(ClientError):
    """Raised when the provider returns a non-success status or a malformed body."""

    kind = ErrorKind.provider_rejected


class NoMatchingModelsError(ClientError):
    """Raised when no listed model supports the requested capability."""

    kind = ErrorKind.not_found

    def __init__(self, capability: str) -> None:
        self.capability = capability
        super().__init__(f"No models that support '{capability}' were found for this API key.")


class InvalidRequestError(ClientError):
    kind = ErrorKind.invalid_request


def normalize_error(raw_error: BaseException) -> str:
    """Turn any client-side failure into the message shown to the user.

    Transport failures (refused or reset connections, proxy errors, timeouts)
    get a fixed diagnostic instead of the raw exception text. Everything else
    passes through unchanged.
    """

    if isinstance(raw_error, (httpx.TransportError, NetworkError)):
        return NETWORK_DIAGNOSTIC_MESSAGE
    if isinstance(raw_error, ClientError):
        return raw_error.message
    return str(raw_error)
