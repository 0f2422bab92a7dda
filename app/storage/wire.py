"""Encoding of native values into the Firestore REST typed value format."""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

WireValue = dict[str, Any]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class Timestamp:
  """A `{seconds, nanos}` instant, the shape Firestore uses for timestamps."""

  seconds: int
  nanos: int = 0

  @classmethod
  def now(cls) -> Timestamp:
    """Return the current instant truncated to whole seconds."""
    return cls(seconds=int(time.time()), nanos=0)

  def isoformat(self) -> str:
    """Render the instant as an ISO-8601 UTC string with millisecond precision."""
    instant = _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)
    return instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _timestamp_text(value: Timestamp | Mapping[str, Any]) -> str | None:
  """Return the rendered instant, or None when the seconds or nanos cannot form a valid datetime."""
  try:
    if not isinstance(value, Timestamp):
      value = Timestamp(seconds=int(value["seconds"]), nanos=int(value.get("nanos") or 0))
    return value.isoformat()
  except (TypeError, ValueError, OverflowError):
    return None


def encode_value(value: Any) -> WireValue:
  """Encode a native value as a Firestore wire value.

  The checks run in a fixed order: timestamp-shaped mappings must be recognized before the
  generic mapping branch, and booleans before numbers since ``bool`` subclasses ``int``.
  """
  if value is None:
    return {"nullValue": None}

  if isinstance(value, list | tuple):
    return {"arrayValue": {"values": [encode_value(item) for item in value]}}

  if isinstance(value, Timestamp):
    text = _timestamp_text(value)
    return {"timestampValue": text} if text is not None else {"stringValue": str(value)}

  if isinstance(value, Mapping):
    text = _timestamp_text(value) if "seconds" in value else None
    if text is not None:
      return {"timestampValue": text}
    return {"mapValue": {"fields": {str(key): encode_value(item) for key, item in value.items()}}}

  # Render booleans the way JSON spells them.
  if isinstance(value, bool):
    return {"stringValue": "true" if value else "false"}

  if isinstance(value, int):
    return {"integerValue": value}

  if isinstance(value, float):
    if value.is_integer():
      return {"integerValue": int(value)}
    return {"doubleValue": value}

  return {"stringValue": str(value)}


def encode_fields(fields: Mapping[str, Any]) -> dict[str, WireValue]:
  """Encode each top-level document field."""
  return {name: encode_value(value) for name, value in fields.items()}
