"""
PDF Fill Backend - REST API for filling PDF form templates

This package provides a FastAPI-based web service that fills a PDF form
template with caller-supplied values. It enables:

- Validation of submitted values against an allowed-values schema
- Filling text fields and choice (radio) groups by field name
- Streaming the filled document back as application/pdf
- Listing the fillable fields a template exposes

The template and the validation schema both live in a Google Cloud Storage
bucket and are fetched fresh on every request, so updating either object
takes effect immediately without a restart.

Key Components:
    - main: FastAPI application, routes and error mapping
    - middleware: Schema fetch and validation step run before filling
    - validation: Pure allowed-values check
    - form_filler: AcroForm model and filling on top of pypdf
    - storage_service: Object store access through boto3
    - configuration: Environment-driven settings
    - errors / models: Exception hierarchy and pydantic response models

Usage:
    Run the API server with:
        pdf-fill-backend

    Or directly through uvicorn:
        uvicorn pdf_fill_backend.main:app --host 0.0.0.0 --port 8080

Required environment (a .env file is read as well):
    GCS_BUCKET, TEMPLATE_PDF_FILE_NAME, TEMPLATE_VALIDATION_FIELDS_FILE_NAME
"""
