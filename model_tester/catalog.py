from __future__ import annotations

import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx

from model_tester.errors import NoMatchingModelsError, ProviderRejectedError
from model_tester.transport import ProviderTransport, require_credential


MODEL_NAME_PREFIX = "models/"
GENERATE_CONTENT = "generateContent"
LIST_MODELS_FALLBACK_DETAIL = "Failed to fetch models. Check your API key and permissions."


def bare_model_id(model_name: str) -> str:
    value = model_name.strip()
    return value.removeprefix(MODEL_NAME_PREFIX)


@dataclass(frozen=True, slots=True)
class ModelDescriptor:
    name: str
    display_name: str
    supported_generation_methods: frozenset[str] = field(default_factory=frozenset)

    @property
    def model_id(self) -> str:
        return bare_model_id(self.name)

    @property
    def label(self) -> str:
        return f"{self.display_name} ({self.model_id})"

    def supports(self, capability: str) -> bool:
        return capability in self.supported_generation_methods

    @classmethod
    def from_payload(cls, item: dict[str, Any]) -> "ModelDescriptor":
        name = str(item.get("name", "")).strip()
        if not name:
            raise ProviderRejectedError("Model provider returned a model entry without a name.")
        display_name = item.get("displayName")
        methods = item.get("supportedGenerationMethods")
        if methods is None:
            methods = []
        if not isinstance(methods, list):
            raise ProviderRejectedError(
                f"Model provider returned unexpected supportedGenerationMethods for {name}."
            )
        return cls(
            name=name,
            display_name=display_name if isinstance(display_name, str) and display_name else name,
            supported_generation_methods=frozenset(method for method in methods if isinstance(method, str)),
        )


def collation_key(value: str) -> tuple[str, str, tuple[bool, ...]]:
    """Sort key following the root-locale collation levels.

    Base letters compare first, ignoring case and accents. Accents break ties
    next, then case, with lowercase ahead of uppercase. The key does not depend
    on the process locale.
    """

    decomposed = unicodedata.normalize("NFKD", value)
    base = "".join(char for char in decomposed if not unicodedata.combining(char))
    return base.casefold(), decomposed.casefold(), tuple(char.isupper() for char in base)


def select_models(descriptors: Iterable[ModelDescriptor], capability: str) -> list[ModelDescriptor]:
    """Keep descriptors supporting ``capability``, ordered by display name.

    ``sorted`` is stable, so models sharing a display name keep the order the
    provider listed them in.
    """

    return sorted(
        (descriptor for descriptor in descriptors if descriptor.supports(capability)),
        key=lambda descriptor: collation_key(descriptor.display_name),
    )


class ModelCatalogClient:
    """Lists the provider's models that can serve a given generation method."""

    def __init__(
        self,
        *,
        provider: ProviderTransport | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._provider = provider if provider is not None else ProviderTransport(transport=transport)

    def close(self) -> None:
        self._provider.close()

    def __enter__(self) -> "ModelCatalogClient":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.close()

    def list_models(self, credential: str, required_capability: str = GENERATE_CONTENT) -> list[ModelDescriptor]:
        resolved_credential = require_credential(credential)
        payload = self._provider.request_json(
            "GET",
            "models",
            credential=resolved_credential,
            fallback_detail=LIST_MODELS_FALLBACK_DETAIL,
        )
        if not isinstance(payload, dict):
            raise ProviderRejectedError("Model provider returned an unexpected model list payload.")

        raw_models = payload.get("models", [])
        if not isinstance(raw_models, list):
            raise ProviderRejectedError("Model provider returned an unexpected model list payload.")

        descriptors = [ModelDescriptor.from_payload(item) for item in raw_models if isinstance(item, dict)]
        selected = select_models(descriptors, required_capability)
        if not selected:
            raise NoMatchingModelsError(required_capability)
        return selected
