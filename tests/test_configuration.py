"""
Tests for environment-driven settings.
"""

import dataclasses

import pytest

from pdf_fill_backend.configuration import ServiceSettings, load_settings
from pdf_fill_backend.errors import ConfigError

REQUIRED = {
    "GCS_BUCKET": "forms",
    "TEMPLATE_PDF_FILE_NAME": "template.pdf",
    "TEMPLATE_VALIDATION_FIELDS_FILE_NAME": "validation.json",
}


class TestLoadSettings:
    def test_required_values_and_defaults(self):
        settings = load_settings(REQUIRED)
        assert isinstance(settings, ServiceSettings)
        assert settings.bucket == "forms"
        assert settings.template_pdf_file_name == "template.pdf"
        assert settings.validation_fields_file_name == "validation.json"
        assert settings.project_id is None
        assert settings.port == 8080
        assert settings.storage_endpoint == "https://storage.googleapis.com"

    def test_values_are_coerced(self):
        settings = load_settings({**REQUIRED, "PORT": "9000", "STORAGE_TIMEOUT_SECONDS": "2.5"})
        assert settings.port == 9000
        assert settings.storage_timeout_seconds == 2.5

    def test_optional_values(self):
        settings = load_settings({**REQUIRED, "GOOGLE_PROJECT_ID": "my-project", "LOG_LEVEL": "DEBUG"})
        assert settings.project_id == "my-project"
        assert settings.log_level == "DEBUG"

    def test_blank_value_keeps_default(self):
        assert load_settings({**REQUIRED, "PORT": ""}).port == 8080

    def test_missing_required_values(self):
        with pytest.raises(ConfigError) as info:
            load_settings({"GCS_BUCKET": "forms"})
        assert "TEMPLATE_PDF_FILE_NAME" in str(info.value)
        assert "TEMPLATE_VALIDATION_FIELDS_FILE_NAME" in str(info.value)
        assert "GCS_BUCKET" not in str(info.value)

    def test_malformed_port(self):
        with pytest.raises(ConfigError) as info:
            load_settings({**REQUIRED, "PORT": "eighty"})
        assert "PORT" in str(info.value)

    def test_settings_are_immutable(self):
        settings = load_settings(REQUIRED)
        with pytest.raises(dataclasses.FrozenInstanceError):
            settings.port = 1
