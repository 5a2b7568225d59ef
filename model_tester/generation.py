from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from model_tester.catalog import bare_model_id
from model_tester.errors import ErrorKind, InvalidRequestError, ProviderRejectedError
from model_tester.transport import ProviderTransport, require_credential


GENERATE_FALLBACK_DETAIL = "Failed to get a response from the model."
EMPTY_RESPONSE_MESSAGE = (
    "The model returned a response, but it was empty. "
    "This can sometimes happen due to safety settings or certain prompts."
)


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    model_name: str
    prompt_text: str

    @property
    def model_id(self) -> str:
        return bare_model_id(self.model_name)

    def to_payload(self) -> dict[str, Any]:
        return {"contents": [{"parts": [{"text": self.prompt_text}]}]}


@dataclass(frozen=True, slots=True)
class GenerationResult:
    text: str | None

    @classmethod
    def empty(cls) -> "GenerationResult":
        return cls(text=None)

    @property
    def is_empty(self) -> bool:
        return self.text is None

    @property
    def kind(self) -> ErrorKind | None:
        return ErrorKind.empty_response if self.text is None else None

    @property
    def message(self) -> str:
        return EMPTY_RESPONSE_MESSAGE if self.text is None else self.text


def extract_first_text(envelope: dict[str, Any]) -> str | None:
    candidates = envelope.get("candidates")
    if not isinstance(candidates, list):
        return None

    for candidate in candidates:
        if not isinstance(candidate, dict):
            continue
        content = candidate.get("content")
        if not isinstance(content, dict):
            continue
        parts = content.get("parts")
        if not isinstance(parts, list):
            continue
        for part in parts:
            if isinstance(part, dict):
                text = part.get("text")
                if isinstance(text, str) and text:
                    return text
    return None


class GenerationClient:
    """Sends a single-turn prompt to one model and returns its first text part."""

    def __init__(
        self,
        *,
        provider: ProviderTransport | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._provider = provider if provider is not None else ProviderTransport(transport=transport)

    def close(self) -> None:
        self._provider.close()

    def __enter__(self) -> "GenerationClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def generate(self, credential: str, model_name: str, prompt_text: str) -> GenerationResult:
        resolved_credential = require_credential(credential)
        request = GenerationRequest(model_name=(model_name or "").strip(), prompt_text=prompt_text or "")
        if not request.model_id or not request.prompt_text.strip():
            raise InvalidRequestError("Please select a model and enter a prompt.")

        envelope = self._provider.request_json(
            "POST",
            f"models/{quote(request.model_id, safe='')}:generateContent",
            credential=resolved_credential,
            fallback_detail=GENERATE_FALLBACK_DETAIL,
            payload=request.to_payload(),
        )
        if not isinstance(envelope, dict):
            raise ProviderRejectedError("Model provider returned an unexpected generation payload.")

        text = extract_first_text(envelope)
        if text is None:
            return GenerationResult.empty()
        return GenerationResult(text=text)
