from __future__ import annotations

from typing import Any

import httpx

from model_tester.config import get_settings
from model_tester.errors import (
    AuthError,
    NetworkError,
    ProviderRejectedError,
    normalize_error,
)


API_KEY_HEADER = "x-goog-api-key"
_AUTH_STATUS_CODES = {401, 403}


def require_credential(credential: str | None) -> str:
    resolved = (credential or "").strip()
    if not resolved:
        raise AuthError("Please enter your API Key first.")
    return resolved


class ProviderTransport:
    """Small httpx-based helper shared by the catalog and generation clients.

    The credential is passed per request and always travels in the
    ``x-goog-api-key`` header, never in the query string.
    """

    def __init__(
        self,
        *,
        api_base_url: str | None = None,
        api_version: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        resolved_base_url = (api_base_url if api_base_url is not None else settings.api_base_url).strip()
        if not resolved_base_url:
            raise ValueError("Model provider base URL cannot be empty")
        if not resolved_base_url.endswith("/"):
            resolved_base_url = f"{resolved_base_url}/"

        self.api_version = (api_version if api_version is not None else settings.api_version).strip().strip("/")
        self._client = httpx.Client(
            base_url=resolved_base_url,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ProviderTransport":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def endpoint(self, path: str) -> str:
        path = path.lstrip("/")
        if not self.api_version:
            return path
        return f"{self.api_version}/{path}"

    def request_json(
        self,
        method: str,
        path: str,
        *,
        credential: str,
        fallback_detail: str,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        try:
            response = self._client.request(
                method,
                self.endpoint(path),
                json=payload,
                headers={API_KEY_HEADER: credential},
            )
        except httpx.TransportError as exc:
            raise NetworkError(normalize_error(exc)) from exc

        if not response.is_success:
            detail = _extract_error_detail(response, fallback_detail)
            error_cls = AuthError if response.status_code in _AUTH_STATUS_CODES else ProviderRejectedError
            raise error_cls(detail, status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderRejectedError(
                "Model provider returned a response that is not valid JSON.",
                status_code=response.status_code,
            ) from exc


def _extract_error_detail(response: httpx.Response, fallback: str) -> str:
    if not response.content:
        return fallback

    try:
        payload = response.json()
    except ValueError:
        return fallback

    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()

    return fallback
