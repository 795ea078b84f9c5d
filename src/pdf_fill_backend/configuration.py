from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from omegaconf import MISSING, OmegaConf
from omegaconf.errors import OmegaConfBaseException

from .errors import ConfigError


@dataclass(frozen=True)
class ServiceSettings:
    bucket: str = MISSING
    template_pdf_file_name: str = MISSING
    validation_fields_file_name: str = MISSING
    project_id: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8080
    storage_endpoint: str = "https://storage.googleapis.com"
    storage_region: str = "auto"
    storage_timeout_seconds: float = 10.0
    hmac_access_key: Optional[str] = None
    hmac_secret: Optional[str] = None
    log_level: str = "INFO"


ENV_KEYS: Dict[str, str] = {
    "bucket": "GCS_BUCKET",
    "template_pdf_file_name": "TEMPLATE_PDF_FILE_NAME",
    "validation_fields_file_name": "TEMPLATE_VALIDATION_FIELDS_FILE_NAME",
    "project_id": "GOOGLE_PROJECT_ID",
    "host": "HOST",
    "port": "PORT",
    "storage_endpoint": "STORAGE_ENDPOINT_URL",
    "storage_region": "STORAGE_REGION",
    "storage_timeout_seconds": "STORAGE_TIMEOUT_SECONDS",
    "hmac_access_key": "GCS_HMAC_ACCESS_KEY",
    "hmac_secret": "GCS_HMAC_SECRET",
    "log_level": "LOG_LEVEL",
}


def _overrides_from_environ(environ: Mapping[str, str]) -> Dict[str, Any]:
    # Blank values count as unset so an empty PORT= line keeps the default.
    return {field: environ[key] for field, key in ENV_KEYS.items() if environ.get(key, "").strip()}


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ServiceSettings:
    if environ is None:
        # Process environment wins over .env entries.
        load_dotenv(override=False)
        environ = os.environ

    schema = OmegaConf.structured(ServiceSettings)
    OmegaConf.set_readonly(schema, False)
    try:
        merged = OmegaConf.merge(schema, _overrides_from_environ(environ))
    except OmegaConfBaseException as exc:
        key = ENV_KEYS.get(str(exc.full_key), "environment")
        raise ConfigError(f"Invalid value for {key}: {exc.msg or exc}") from exc

    missing = sorted(ENV_KEYS[field] for field in OmegaConf.missing_keys(merged))
    if missing:
        raise ConfigError(f"Missing required environment values: {', '.join(missing)}")

    return OmegaConf.to_object(merged)  # type: ignore[return-value]


@lru_cache(maxsize=1)
def get_settings() -> ServiceSettings:
    return load_settings()
