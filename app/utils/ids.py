"""Identifier utilities."""

from __future__ import annotations

import uuid


def generate_job_id() -> str:
  """Return a new itinerary job identifier."""
  return str(uuid.uuid4())
