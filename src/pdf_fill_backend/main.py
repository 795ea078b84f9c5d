from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .configuration import ServiceSettings, get_settings
from .errors import FieldValidationError, PdfFillBackendError
from .form_filler import describe_fields, fill_form
from .middleware import validated_form_values
from .models import FormFieldInfo, ValidationFailure
from .storage_service import ObjectStore, fetch_object, get_object_store
from .validation import FormValues

logger = logging.getLogger(__name__)

TEMPLATE_PHASE = "downloading pdf template"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    logger.info(f"Serving template gs://{settings.bucket}/{settings.template_pdf_file_name}")
    yield


app = FastAPI(title="PDF Fill API", version="0.1.0", lifespan=lifespan)

allowed_origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FieldValidationError)
async def invalid_fields_handler(request: Request, exc: FieldValidationError) -> JSONResponse:
    body = ValidationFailure(error=exc.public_message, invalid_fields=exc.violations)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(PdfFillBackendError)
async def pipeline_error_handler(request: Request, exc: PdfFillBackendError) -> PlainTextResponse:
    logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc.__cause__)
    return PlainTextResponse(exc.public_message, status_code=exc.status_code)


async def _download_template(settings: ServiceSettings, store: ObjectStore) -> bytes:
    return await fetch_object(
        store,
        settings.bucket,
        settings.template_pdf_file_name,
        phase=TEMPLATE_PHASE,
        timeout=settings.storage_timeout_seconds,
    )


@app.get("/healthz")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


@app.post("/fill_pdf", response_class=Response)
async def fill_pdf(
    values: FormValues = Depends(validated_form_values),
    settings: ServiceSettings = Depends(get_settings),
    store: ObjectStore = Depends(get_object_store),
) -> Response:
    template = await _download_template(settings, store)
    filled = await run_in_threadpool(fill_form, template, values)
    return Response(content=filled, media_type="application/pdf")


@app.get("/fields", response_model=List[FormFieldInfo])
async def list_fields(
    settings: ServiceSettings = Depends(get_settings),
    store: ObjectStore = Depends(get_object_store),
) -> List[FormFieldInfo]:
    template = await _download_template(settings, store)
    return await run_in_threadpool(describe_fields, template)


def run() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Server is running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
