"""Gemini generateContent client for itinerary generation."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import httpx

from app.ai.prompts import build_itinerary_prompt
from app.config import Settings
from app.core.errors import GenerationError, GenerationErrorKind

logger = logging.getLogger(__name__)


def strip_json_fences(text: str) -> str:
  """Remove a surrounding markdown code fence if the model added one."""
  cleaned = text.strip()
  if not cleaned.startswith("```"):
    return cleaned

  lines = cleaned.splitlines()[1:]
  if lines and lines[-1].strip().startswith("```"):
    lines = lines[:-1]
  return "\n".join(lines).strip()


def extract_candidate_text(payload: Any) -> str | None:
  """Return `candidates[0].content.parts[0].text` or None when any step is missing."""
  try:
    text = payload["candidates"][0]["content"]["parts"][0]["text"]
  except (KeyError, IndexError, TypeError):
    return None
  if not isinstance(text, str) or not text:
    return None
  return text


def parse_itinerary(text: str) -> Any:
  """Parse the model text and return the value under the `itinerary` key."""
  try:
    parsed = json.loads(strip_json_fences(text))
  except json.JSONDecodeError as exc:
    raise GenerationError(GenerationErrorKind.MALFORMED, f"Gemini returned invalid JSON: {exc}") from exc

  if not isinstance(parsed, dict):
    raise GenerationError(GenerationErrorKind.MALFORMED, f"Expected a JSON object from Gemini, got {type(parsed).__name__}.")

  itinerary = parsed.get("itinerary")
  # Empty arrays and objects count as present. Empty strings, 0 and false do not.
  if itinerary is None or (not itinerary and not isinstance(itinerary, list | dict)):
    found = ", ".join(str(key) for key in parsed)
    raise GenerationError(GenerationErrorKind.MALFORMED, f"Missing 'itinerary' key in parsed JSON. Found keys: {found}")

  return itinerary


class GeminiItineraryClient:
  """Structured itinerary generation against the Gemini REST API."""

  def __init__(self, api_key: str | None, *, model: str, base_url: str, deadline_seconds: float = 45.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
    self._api_key = api_key
    self.model = model
    self.base_url = base_url.rstrip("/")
    self.deadline_seconds = deadline_seconds
    self._transport = transport

  @classmethod
  def from_settings(cls, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> GeminiItineraryClient:
    """Build a client from service settings."""
    return cls(settings.gemini_api_key, model=settings.gemini_model, base_url=settings.gemini_base_url, deadline_seconds=settings.generation_timeout_seconds, transport=transport)

  @property
  def endpoint(self) -> str:
    return f"{self.base_url}/models/{self.model}:generateContent"

  async def _post(self, body: dict[str, Any]) -> httpx.Response:
    # The deadline is enforced by the caller, so the transport itself gets no timeout.
    async with httpx.AsyncClient(transport=self._transport, timeout=None, trust_env=False) as client:
      return await client.post(self.endpoint, params={"key": self._api_key}, json=body, headers={"Content-Type": "application/json"})

  async def generate(self, destination: str, duration_days: int) -> Any:
    """Return the generated itinerary for a destination and trip length."""
    if not self._api_key:
      raise GenerationError(GenerationErrorKind.CONFIGURATION, "GEMINI_API_KEY environment variable not set.")

    prompt = build_itinerary_prompt(destination, duration_days)
    body = {"contents": [{"parts": [{"text": prompt}]}], "generationConfig": {"responseMimeType": "application/json"}}

    deadline_ms = round(self.deadline_seconds * 1000)
    logger.info("Calling Gemini API at %s (deadline %sms)", self.model, deadline_ms)
    try:
      response = await asyncio.wait_for(self._post(body), timeout=self.deadline_seconds)
    except asyncio.TimeoutError as exc:
      raise GenerationError(GenerationErrorKind.TIMEOUT, f"Gemini API call timed out after {deadline_ms}ms") from exc
    except httpx.HTTPError as exc:
      raise GenerationError(GenerationErrorKind.TRANSPORT, f"Gemini API request failed: {exc}") from exc

    try:
      payload = response.json()
    except ValueError as exc:
      raise GenerationError(GenerationErrorKind.MALFORMED, f"Gemini returned a non-JSON response with status {response.status_code}.") from exc

    logger.debug("Received response from Gemini: %s", json.dumps(payload, indent=2))

    if isinstance(payload, dict) and payload.get("error"):
      error = payload["error"]
      message = error.get("message") if isinstance(error, dict) else None
      raise GenerationError(GenerationErrorKind.SERVICE_REPORTED, message or "Unknown Gemini API error")

    text = extract_candidate_text(payload)
    if text is None:
      raise GenerationError(GenerationErrorKind.MALFORMED, "Invalid response structure from Gemini.")

    return parse_itinerary(text)
