"""Error taxonomy for the itinerary job pipeline."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


class ItineraryEngineError(Exception):
  """Base class for pipeline failures."""


class ConfigurationError(ItineraryEngineError):
  """Raised when required service configuration is missing or unusable."""


class CredentialError(ItineraryEngineError):
  """Raised when the signed assertion cannot be exchanged for a bearer token."""

  def __init__(self, message: str, *, payload: Any = None) -> None:
    super().__init__(message)
    self.payload = payload


class StoreError(ItineraryEngineError):
  """Raised when the document store rejects a create or patch request."""

  def __init__(self, operation: str, status_code: int | None, reason: str, body: Any) -> None:
    self.operation = operation
    self.status_code = status_code
    self.reason = reason
    self.body = body
    details = body if isinstance(body, str) else json.dumps(body)
    super().__init__(f"Firestore {operation} failed: {status_code} {reason}. Details: {details}")


class GenerationErrorKind(str, Enum):
  """Failure categories for the generation call."""

  TIMEOUT = "timeout"
  TRANSPORT = "transport"
  SERVICE_REPORTED = "service_reported"
  MALFORMED = "malformed"
  CONFIGURATION = "configuration"


class GenerationError(ItineraryEngineError):
  """Raised when the generation service does not produce a usable itinerary."""

  def __init__(self, kind: GenerationErrorKind, message: str) -> None:
    super().__init__(message)
    self.kind = kind
