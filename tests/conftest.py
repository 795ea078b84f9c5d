"""
Pytest configuration and fixtures for PDF Fill Backend tests.
"""

import io
import json
import os

import pytest
from fastapi.testclient import TestClient
from reportlab.pdfgen import canvas

# Set test environment variables before importing the app
os.environ["GCS_BUCKET"] = "test-bucket"
os.environ["TEMPLATE_PDF_FILE_NAME"] = "template.pdf"
os.environ["TEMPLATE_VALIDATION_FIELDS_FILE_NAME"] = "validation.json"
os.environ["GCS_HMAC_ACCESS_KEY"] = "test-access-key"
os.environ["GCS_HMAC_SECRET"] = "test-secret"
os.environ["STORAGE_TIMEOUT_SECONDS"] = "2"

from pdf_fill_backend.errors import StorageError
from pdf_fill_backend.main import app
from pdf_fill_backend.storage_service import ObjectStore, get_object_store

TEMPLATE_NAME = "template.pdf"
SCHEMA_NAME = "validation.json"


class FakeObjectStore(ObjectStore):
    """In-memory store keyed by object name; missing objects fail like GCS."""

    def __init__(self, objects=None):
        super().__init__(client=None)
        self.objects = dict(objects or {})
        self.calls = []

    def fetch(self, bucket, object_name):
        self.calls.append((bucket, object_name))
        if object_name not in self.objects:
            raise StorageError(bucket, object_name, "NoSuchKey")
        return self.objects[object_name]


def build_template() -> bytes:
    """Create a one-page form with a text field, a radio group and a checkbox."""
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer)
    form = pdf.acroForm

    pdf.drawString(50, 720, "Name:")
    form.textfield(name="name", x=120, y=710, width=200, height=20)

    pdf.drawString(50, 670, "Sex:")
    form.radio(name="sex", value="M", selected=False, x=120, y=665, size=15)
    form.radio(name="sex", value="F", selected=False, x=160, y=665, size=15)

    pdf.drawString(50, 620, "I agree:")
    form.checkbox(name="agree", x=120, y=615, size=15, checked=False)

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture(scope="session")
def template_pdf():
    """PDF template with fields name (text), sex (M/F group) and agree (checkbox)."""
    return build_template()


@pytest.fixture
def schema():
    return {"sex": ["M", "F"], "country": ["US", "DE"]}


@pytest.fixture
def store(template_pdf, schema):
    return FakeObjectStore(
        {
            TEMPLATE_NAME: template_pdf,
            SCHEMA_NAME: json.dumps(schema).encode("utf-8"),
        }
    )


@pytest.fixture
def client(store):
    """Create a test client whose object store is the in-memory fake."""
    app.dependency_overrides[get_object_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()
