"""Firestore REST client for itinerary job documents."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any
from urllib.parse import quote

import httpx

from app.config import Settings
from app.core.errors import StoreError
from app.jobs.models import JobRecord
from app.storage.credentials import ServiceCredential, load_service_credential, mint_access_token
from app.storage.wire import encode_fields

logger = logging.getLogger(__name__)

CredentialLoader = Callable[[], ServiceCredential]


class FirestoreJobStore:
  """Creates and patches job documents through the Firestore REST API.

  Every operation opens its own HTTP client and mints its own bearer token; nothing is reused
  between calls.
  """

  def __init__(self, settings: Settings, *, credential_loader: CredentialLoader | None = None, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self.settings = settings
    self._credential_loader = credential_loader or (lambda: load_service_credential(settings))
    self._transport = transport

  @property
  def collection_url(self) -> str:
    """Return the collection endpoint for job documents."""
    project = self.settings.gcp_project_id or ""
    return f"{self.settings.firestore_base_url}/projects/{project}/databases/{self.settings.firestore_database}/documents/{self.settings.firestore_collection}"

  def document_url(self, job_id: str) -> str:
    """Return the endpoint of a single job document."""
    return f"{self.collection_url}/{quote(job_id, safe='')}"

  def _build_client(self) -> httpx.AsyncClient:
    # Never trust environment proxy variables for credentialed calls.
    return httpx.AsyncClient(transport=self._transport, timeout=self.settings.http_timeout_seconds, trust_env=False)

  async def _authorized_headers(self, client: httpx.AsyncClient) -> dict[str, str]:
    credential = self._credential_loader()
    token = await mint_access_token(credential, client)
    return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

  async def create_record(self, job_id: str, destination: str, duration_days: int) -> None:
    """Create the job document in the processing state."""
    record = JobRecord.start(job_id, destination, duration_days)
    body = {"fields": encode_fields(record.to_fields())}

    async with self._build_client() as client:
      headers = await self._authorized_headers(client)
      logger.debug("Creating Firestore document %s in %s", job_id, self.settings.firestore_collection)
      try:
        response = await client.post(self.collection_url, params={"documentId": job_id}, json=body, headers=headers)
      except httpx.HTTPError as exc:
        raise StoreError("create", None, type(exc).__name__, str(exc)) from exc

    _raise_for_store_status("create", response)

  async def patch_record(self, job_id: str, fields: Mapping[str, Any]) -> None:
    """Update only the given fields, leaving the rest of the document untouched."""
    # One updateMask entry per field so Firestore does not clear unspecified fields.
    params = [("updateMask.fieldPaths", name) for name in fields]
    body = {"fields": encode_fields(fields)}

    async with self._build_client() as client:
      headers = await self._authorized_headers(client)
      logger.debug("Patching Firestore document %s fields=%s", job_id, list(fields))
      try:
        response = await client.patch(self.document_url(job_id), params=params, json=body, headers=headers)
      except httpx.HTTPError as exc:
        raise StoreError("patch", None, type(exc).__name__, str(exc)) from exc

    _raise_for_store_status("patch", response)


def _raise_for_store_status(operation: str, response: httpx.Response) -> None:
  if response.is_success:
    return

  try:
    details: Any = response.json()
  except ValueError:
    details = response.text

  raise StoreError(operation, response.status_code, response.reason_phrase, details)
