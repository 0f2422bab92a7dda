"""Provider implementations."""

from app.ai.providers.gemini import GeminiItineraryClient

__all__ = ["GeminiItineraryClient"]
