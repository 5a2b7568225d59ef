from __future__ import annotations

import httpx
import pytest

from model_tester.errors import (
    NETWORK_DIAGNOSTIC_MESSAGE,
    AuthError,
    NetworkError,
    NoMatchingModelsError,
    ProviderRejectedError,
    normalize_error,
)


_REQUEST = httpx.Request("GET", "https://provider.example/v1/models")


@pytest.mark.parametrize(
    "raw_error",
    [
        httpx.ConnectError("[Errno 111] Connection refused", request=_REQUEST),
        httpx.ProxyError("407 Proxy Authentication Required", request=_REQUEST),
        httpx.ConnectTimeout("timed out", request=_REQUEST),
        httpx.RemoteProtocolError("Server disconnected without sending a response.", request=_REQUEST),
        NetworkError("anything"),
    ],
)
def test_transport_failures_normalize_to_network_diagnostic(raw_error: Exception) -> None:
    assert normalize_error(raw_error) == NETWORK_DIAGNOSTIC_MESSAGE


def test_client_errors_pass_message_through() -> None:
    assert normalize_error(ProviderRejectedError("quota exceeded", status_code=429)) == "quota exceeded"
    assert normalize_error(AuthError("Please enter your API Key first.")) == "Please enter your API Key first."
    assert (
        normalize_error(NoMatchingModelsError("generateContent"))
        == "No models that support 'generateContent' were found for this API key."
    )


def test_unknown_errors_pass_str_through() -> None:
    assert normalize_error(ValueError("unexpected")) == "unexpected"


def test_network_diagnostic_names_likely_causes() -> None:
    message = NETWORK_DIAGNOSTIC_MESSAGE.lower()
    assert "proxy" in message
    assert "vpn" in message
    assert "extension" in message
