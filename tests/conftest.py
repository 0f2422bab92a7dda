"""Shared fixtures for the itinerary pipeline tests."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from app.config import DEFAULT_FIRESTORE_BASE_URL, DEFAULT_GEMINI_BASE_URL, DEFAULT_OAUTH_TOKEN_URL, Settings
from app.storage.credentials import ServiceCredential

SERVICE_ACCOUNT_EMAIL = "itinerary-worker@demo-project.iam.gserviceaccount.com"


# Force anyio to use asyncio
@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture(scope="session")
def rsa_private_key() -> rsa.RSAPrivateKey:
  return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def private_key_pem(rsa_private_key) -> str:
  return rsa_private_key.private_bytes(encoding=serialization.Encoding.PEM, format=serialization.PrivateFormat.PKCS8, encryption_algorithm=serialization.NoEncryption()).decode("ascii")


@pytest.fixture
def service_credential(private_key_pem) -> ServiceCredential:
  return ServiceCredential(client_email=SERVICE_ACCOUNT_EMAIL, private_key=private_key_pem, token_uri=DEFAULT_OAUTH_TOKEN_URL)


@pytest.fixture
def service_account_json(private_key_pem) -> str:
  return json.dumps({"type": "service_account", "project_id": "demo-project", "client_email": SERVICE_ACCOUNT_EMAIL, "private_key": private_key_pem, "token_uri": DEFAULT_OAUTH_TOKEN_URL})


@pytest.fixture
def settings(service_account_json, tmp_path) -> Settings:
  return Settings(
    environment="test",
    debug=False,
    log_dir=str(tmp_path / "logs"),
    log_max_bytes=1024 * 1024,
    log_backup_count=1,
    log_http_bodies=False,
    log_http_body_bytes=2048,
    gcp_project_id="demo-project",
    gcp_key_json=service_account_json,
    gcp_key_path=None,
    gemini_api_key="test-gemini-key",
    gemini_model="gemini-1.5-flash-latest",
    gemini_base_url=DEFAULT_GEMINI_BASE_URL,
    generation_timeout_seconds=45.0,
    firestore_base_url=DEFAULT_FIRESTORE_BASE_URL,
    firestore_database="(default)",
    firestore_collection="itineraries",
    oauth_token_url=DEFAULT_OAUTH_TOKEN_URL,
    http_timeout_seconds=5.0,
  )


def gemini_payload(document: Any) -> dict[str, Any]:
  """Wrap a model output document the way generateContent returns it."""
  text = document if isinstance(document, str) else json.dumps(document)
  return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}, "finishReason": "STOP"}]}


def two_day_itinerary() -> dict[str, Any]:
  return {
    "itinerary": [
      {"day": 1, "theme": "Left Bank", "activities": [{"time": "9:00 AM", "description": "Walk the Jardin du Luxembourg", "location": "6th arrondissement"}]},
      {"day": 2, "theme": "Museums", "activities": [{"time": "10:00 AM", "description": "Visit the Louvre", "location": "1st arrondissement"}]},
    ]
  }


@dataclass
class FakeGoogleBackend:
  """In-memory stand-in for the OAuth, Firestore and Gemini HTTP endpoints."""

  gemini_response: Any = field(default_factory=lambda: gemini_payload(two_day_itinerary()))
  gemini_delay: float = 0.0
  fail_patch_status: int | None = None
  documents: dict[str, dict[str, Any]] = field(default_factory=dict)
  requests: list[httpx.Request] = field(default_factory=list)
  tokens_issued: int = 0

  @property
  def transport(self) -> httpx.MockTransport:
    return httpx.MockTransport(self.handle)

  def requests_to(self, host: str, method: str | None = None) -> list[httpx.Request]:
    return [request for request in self.requests if request.url.host == host and (method is None or request.method == method)]

  async def handle(self, request: httpx.Request) -> httpx.Response:
    self.requests.append(request)
    host = request.url.host
    if host == "oauth2.googleapis.com":
      self.tokens_issued += 1
      return httpx.Response(200, json={"access_token": f"token-{self.tokens_issued}", "expires_in": 3599, "token_type": "Bearer"})
    if host == "firestore.googleapis.com":
      return self._handle_firestore(request)
    if host == "generativelanguage.googleapis.com":
      if self.gemini_delay:
        await asyncio.sleep(self.gemini_delay)
      return httpx.Response(200, json=self.gemini_response)
    return httpx.Response(404, json={"error": f"unexpected host {host}"})

  def _handle_firestore(self, request: httpx.Request) -> httpx.Response:
    body = json.loads(request.content)
    if request.method == "POST":
      doc_id = request.url.params["documentId"]
      if doc_id in self.documents:
        return httpx.Response(409, json={"error": {"code": 409, "message": f"Document already exists: {doc_id}", "status": "ALREADY_EXISTS"}})
      self.documents[doc_id] = dict(body["fields"])
      return httpx.Response(200, json={"name": doc_id, "fields": body["fields"]})

    if self.fail_patch_status is not None:
      return httpx.Response(self.fail_patch_status, json={"error": {"code": self.fail_patch_status, "message": "patch rejected"}})

    doc_id = request.url.path.rsplit("/", 1)[-1]
    document = self.documents.setdefault(doc_id, {})
    for path in request.url.params.get_list("updateMask.fieldPaths"):
      document[path] = body["fields"][path]
    return httpx.Response(200, json={"name": doc_id, "fields": document})


@pytest.fixture
def google_backend() -> FakeGoogleBackend:
  return FakeGoogleBackend()
