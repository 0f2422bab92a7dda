"""Application configuration loaded from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from app.utils.env import default_env_path, load_env_file

load_env_file(default_env_path(), override=False)

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash-latest"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
DEFAULT_OAUTH_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class Settings:
  """Typed settings for the itinerary service."""

  environment: str
  debug: bool
  log_dir: str
  log_max_bytes: int
  log_backup_count: int
  log_http_bodies: bool
  log_http_body_bytes: int
  gcp_project_id: str | None
  gcp_key_json: str | None
  gcp_key_path: str | None
  gemini_api_key: str | None
  gemini_model: str
  gemini_base_url: str
  generation_timeout_seconds: float
  firestore_base_url: str
  firestore_database: str
  firestore_collection: str
  oauth_token_url: str
  http_timeout_seconds: float


def _parse_bool(raw: str | None) -> bool:
  """Parse a boolean-ish string from environment variables."""

  if raw is None:
    return False

  normalized = raw.strip().lower()
  return normalized in {"1", "true", "yes", "on"}


def _optional_str(raw: str | None) -> str | None:
  if raw is None:
    return None
  value = raw.strip()
  if value == "":
    return None
  return value


def _positive_float(name: str, default: str) -> float:
  value = float(os.getenv(name, default))
  if value <= 0:
    raise ValueError(f"{name} must be a positive number.")
  return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
  """Load settings once per process."""

  environment = os.getenv("ITINERARY_ENV", "development").lower()

  # Toggle verbose diagnostics in non-production environments.
  debug = _parse_bool(os.getenv("ITINERARY_DEBUG"))

  log_max_bytes = int(os.getenv("ITINERARY_LOG_MAX_BYTES", "5242880"))  # 5MB default
  if log_max_bytes <= 0:
    raise ValueError("ITINERARY_LOG_MAX_BYTES must be a positive integer.")

  log_backup_count = int(os.getenv("ITINERARY_LOG_BACKUP_COUNT", "10"))
  if log_backup_count < 0:
    raise ValueError("ITINERARY_LOG_BACKUP_COUNT must be zero or a positive integer.")

  # Allow opt-in logging of HTTP request/response bodies with a size cap.
  log_http_bodies = _parse_bool(os.getenv("ITINERARY_LOG_HTTP_BODIES"))
  log_http_body_bytes = int(os.getenv("ITINERARY_LOG_HTTP_BODY_BYTES", "2048"))
  if log_http_body_bytes <= 0:
    raise ValueError("ITINERARY_LOG_HTTP_BODY_BYTES must be a positive integer.")

  generation_timeout_seconds = _positive_float("ITINERARY_GENERATION_TIMEOUT_SECONDS", "45")
  http_timeout_seconds = _positive_float("ITINERARY_HTTP_TIMEOUT_SECONDS", "30")

  return Settings(
    environment=environment,
    debug=debug,
    log_dir=(os.getenv("ITINERARY_LOG_DIR") or "./logs").strip(),
    log_max_bytes=log_max_bytes,
    log_backup_count=log_backup_count,
    log_http_bodies=log_http_bodies,
    log_http_body_bytes=log_http_body_bytes,
    gcp_project_id=_optional_str(os.getenv("GCP_PROJECT_ID")),
    gcp_key_json=_optional_str(os.getenv("GCP_KEY_JSON")),
    gcp_key_path=_optional_str(os.getenv("GCP_KEY_PATH")),
    gemini_api_key=_optional_str(os.getenv("GEMINI_API_KEY")),
    gemini_model=(os.getenv("ITINERARY_GEMINI_MODEL") or DEFAULT_GEMINI_MODEL).strip(),
    gemini_base_url=(os.getenv("ITINERARY_GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL).strip().rstrip("/"),
    generation_timeout_seconds=generation_timeout_seconds,
    firestore_base_url=(os.getenv("ITINERARY_FIRESTORE_BASE_URL") or DEFAULT_FIRESTORE_BASE_URL).strip().rstrip("/"),
    firestore_database=(os.getenv("ITINERARY_FIRESTORE_DATABASE") or "(default)").strip(),
    firestore_collection=(os.getenv("ITINERARY_FIRESTORE_COLLECTION") or "itineraries").strip(),
    oauth_token_url=(os.getenv("ITINERARY_OAUTH_TOKEN_URL") or DEFAULT_OAUTH_TOKEN_URL).strip(),
    http_timeout_seconds=http_timeout_seconds,
  )


def missing_runtime_secrets(settings: Settings) -> list[str]:
  """Return the names of secrets a job needs but the environment does not provide."""
  missing: list[str] = []
  if not settings.gcp_project_id:
    missing.append("GCP_PROJECT_ID")
  if not settings.gcp_key_json and not settings.gcp_key_path:
    missing.append("GCP_KEY_JSON")
  if not settings.gemini_api_key:
    missing.append("GEMINI_API_KEY")
  return missing
