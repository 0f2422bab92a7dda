"""Domain models for asynchronous itinerary generation jobs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from app.storage.wire import Timestamp

JobStatus = Literal["processing", "completed", "failed"]


@dataclass
class JobRecord:
  """Represents one itinerary job document."""

  job_id: str
  destination: str
  duration_days: int
  status: JobStatus
  created_at: Timestamp
  completed_at: Timestamp | None = None
  itinerary: Any = None
  error: str | None = None

  @classmethod
  def start(cls, job_id: str, destination: str, duration_days: int) -> JobRecord:
    """Return the initial record for a job entering processing."""
    return cls(job_id=job_id, destination=destination, duration_days=duration_days, status="processing", created_at=Timestamp.now())

  def to_fields(self) -> dict[str, Any]:
    """Return the persisted document fields keyed by their stored names."""
    return {
      "status": self.status,
      "destination": self.destination,
      "durationDays": self.duration_days,
      "createdAt": self.created_at,
      "completedAt": self.completed_at,
      "itinerary": self.itinerary,
      "error": self.error,
    }


def completed_fields(itinerary: Any) -> dict[str, Any]:
  """Fields written by the terminal transition to completed."""
  return {"status": "completed", "completedAt": Timestamp.now(), "itinerary": itinerary, "error": None}


def failed_fields(error: str) -> dict[str, Any]:
  """Fields written by the terminal transition to failed."""
  return {"status": "failed", "completedAt": Timestamp.now(), "error": error}
