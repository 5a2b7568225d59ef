from __future__ import annotations

import logging
import time
import uuid
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse

from model_tester import schemas
from model_tester.catalog import ModelCatalogClient
from model_tester.config import get_settings
from model_tester.errors import ClientError, ErrorKind, normalize_error
from model_tester.generation import GenerationClient
from model_tester.transport import API_KEY_HEADER

logger = logging.getLogger("model_tester.api")

_ERROR_STATUS_CODES = {
    ErrorKind.auth: 401,
    ErrorKind.invalid_request: 422,
    ErrorKind.not_found: 404,
    ErrorKind.network: 502,
    ErrorKind.provider_rejected: 502,
}


def _validate_runtime_configuration(settings) -> None:
    safety_errors = settings.production_safety_errors()
    if not safety_errors:
        return

    for error in safety_errors:
        logger.error("unsafe_production_config error=%s", error)
    raise RuntimeError("Unsafe production configuration; see logs for details")


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    _validate_runtime_configuration(settings)
    logger.info("Model tester startup complete")
    yield


app = FastAPI(
    title="Model Tester",
    version="0.1.0",
    description=(
        "Verify a generative-language API key, list the models it can reach, "
        "and send a test prompt to one of them."
    ),
    lifespan=lifespan,
)


def get_catalog_client() -> Iterator[ModelCatalogClient]:
    with ModelCatalogClient() as client:
        yield client


def get_generation_client() -> Iterator[GenerationClient]:
    with GenerationClient() as client:
        yield client


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID", "").strip() or uuid.uuid4().hex
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        duration_ms = (time.perf_counter() - start) * 1000.0
        logger.exception(
            "request_failed method=%s path=%s request_id=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            request_id,
            duration_ms,
        )
        raise

    duration_ms = (time.perf_counter() - start) * 1000.0
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request_completed method=%s path=%s status=%s request_id=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        response.status_code,
        request_id,
        duration_ms,
    )
    return response


@app.exception_handler(ClientError)
async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    message = normalize_error(exc)
    if exc.kind == ErrorKind.network:
        logger.debug("provider_transport_failed path=%s cause=%r", request.url.path, exc.__cause__)
    logger.warning(
        "provider_call_failed path=%s kind=%s upstream_status=%s",
        request.url.path,
        exc.kind.value,
        exc.status_code,
    )
    body = schemas.ClientErrorRead(detail=message, kind=exc.kind, status_code=exc.status_code)
    return JSONResponse(
        status_code=_ERROR_STATUS_CODES.get(exc.kind, 502),
        content=body.model_dump(mode="json"),
    )


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/models", response_model=schemas.ModelListResponse)
def list_models(
    payload: schemas.ListModelsRequest | None = None,
    credential: str | None = Header(default=None, alias=API_KEY_HEADER),
    catalog: ModelCatalogClient = Depends(get_catalog_client),
) -> schemas.ModelListResponse:
    capability = (payload.required_capability if payload else None) or get_settings().required_capability
    models = catalog.list_models(credential or "", capability)
    logger.info("models_listed count=%s capability=%s", len(models), capability)
    return schemas.ModelListResponse(
        models=[schemas.ModelRead.from_descriptor(model) for model in models],
        selected_model=models[0].name,
        required_capability=capability,
    )


@app.post("/generate", response_model=schemas.GenerateResponse)
def generate(
    payload: schemas.GenerateRequest,
    credential: str | None = Header(default=None, alias=API_KEY_HEADER),
    generation: GenerationClient = Depends(get_generation_client),
) -> schemas.GenerateResponse:
    prompt = payload.prompt if payload.prompt is not None else get_settings().default_prompt
    result = generation.generate(credential or "", payload.model_name, prompt)
    if result.is_empty:
        logger.info("generation_empty model=%s", payload.model_name)
    else:
        logger.info("generation_completed model=%s chars=%s", payload.model_name, len(result.text or ""))
    return schemas.GenerateResponse.from_result(payload.model_name, result)
