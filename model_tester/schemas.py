from __future__ import annotations

from pydantic import BaseModel, Field

from model_tester.catalog import ModelDescriptor
from model_tester.errors import ErrorKind
from model_tester.generation import GenerationResult


class ListModelsRequest(BaseModel):
    required_capability: str | None = Field(default=None, min_length=1, max_length=120)


class ModelRead(BaseModel):
    name: str
    model_id: str
    display_name: str
    label: str
    supported_generation_methods: list[str]

    @classmethod
    def from_descriptor(cls, descriptor: ModelDescriptor) -> "ModelRead":
        return cls(
            name=descriptor.name,
            model_id=descriptor.model_id,
            display_name=descriptor.display_name,
            label=descriptor.label,
            supported_generation_methods=sorted(descriptor.supported_generation_methods),
        )


class ModelListResponse(BaseModel):
    models: list[ModelRead]
    selected_model: str
    required_capability: str


class GenerateRequest(BaseModel):
    model_name: str = Field(default="", max_length=300)
    prompt: str | None = None


class GenerateResponse(BaseModel):
    model_name: str
    text: str | None
    empty: bool
    kind: ErrorKind | None = None
    message: str

    @classmethod
    def from_result(cls, model_name: str, result: GenerationResult) -> "GenerateResponse":
        return cls(
            model_name=model_name,
            text=result.text,
            empty=result.is_empty,
            kind=result.kind,
            message=result.message,
        )


class ClientErrorRead(BaseModel):
    detail: str
    kind: ErrorKind
    status_code: int | None = None
