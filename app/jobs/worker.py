"""Background processor for itinerary generation jobs."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from app.ai.providers.gemini import GeminiItineraryClient
from app.config import Settings
from app.jobs.models import completed_fields, failed_fields
from app.storage.firestore_rest import FirestoreJobStore


class JobStore(Protocol):
  """Persistence operations the job processor needs."""

  async def create_record(self, job_id: str, destination: str, duration_days: int) -> None: ...

  async def patch_record(self, job_id: str, fields: Mapping[str, Any]) -> None: ...


class ItineraryGenerator(Protocol):
  """Generation operation the job processor needs."""

  async def generate(self, destination: str, duration_days: int) -> Any: ...


class ItineraryJobProcessor:
  """Runs one itinerary job from record creation to its terminal status.

  The record is created in `processing`, then patched exactly once to `completed` or `failed`.
  If creation fails there is nothing to patch and the job is abandoned. If the `failed` patch
  itself fails, the record stays in `processing`; that case is only logged.
  """

  def __init__(self, *, store: JobStore, generator: ItineraryGenerator) -> None:
    self._store = store
    self._generator = generator
    self._logger = logging.getLogger(__name__)

  async def process(self, job_id: str, destination: str, duration_days: int) -> None:
    """Execute the job; never raises."""
    self._logger.info("[%s] Starting background job for %s (%s days)", job_id, destination, duration_days)

    try:
      await self._store.create_record(job_id, destination, duration_days)
    except Exception:  # noqa: BLE001
      self._logger.error("[%s] Failed to create job record; abandoning job.", job_id, exc_info=True)
      return

    self._logger.info("[%s] Created job record with 'processing' status.", job_id)

    try:
      itinerary = await self._generator.generate(destination, duration_days)
      self._logger.info("[%s] Parsed itinerary. Patching job record...", job_id)
      await self._store.patch_record(job_id, completed_fields(itinerary))
    except Exception as exc:  # noqa: BLE001
      self._logger.error("[%s] Job failed: %s", job_id, exc, exc_info=True)
      await self._mark_failed(job_id, str(exc) or type(exc).__name__)
      return

    self._logger.info("[%s] Background job finished successfully.", job_id)

  async def _mark_failed(self, job_id: str, error_text: str) -> None:
    try:
      await self._store.patch_record(job_id, failed_fields(error_text))
    except Exception:  # noqa: BLE001
      self._logger.critical("[%s] Failed to patch job record with 'failed' status; job remains in 'processing'.", job_id, exc_info=True)
      return

    self._logger.info("[%s] Patched job record with 'failed' status.", job_id)


def build_job_processor(settings: Settings) -> ItineraryJobProcessor:
  """Wire the processor to the Firestore store and Gemini client."""
  return ItineraryJobProcessor(store=FirestoreJobStore(settings), generator=GeminiItineraryClient.from_settings(settings))


async def run_itinerary_job(job_id: str, destination: str, duration_days: int, settings: Settings) -> None:
  """Background task entry point for one itinerary job."""
  processor = build_job_processor(settings)
  await processor.process(job_id, destination, duration_days)
