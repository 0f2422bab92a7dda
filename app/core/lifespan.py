import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from app.config import missing_runtime_secrets
from app.core.logging import initialize_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Set up logging after uvicorn starts and report missing job secrets."""
  from app.config import get_settings

  settings = get_settings()
  logger = logging.getLogger("app.core.lifespan")

  try:
    initialize_logging(settings)
  except RuntimeError:
    # Keep serving with uvicorn's default handlers when the log directory is unusable.
    logger.warning("Logging setup failed; continuing with default handlers.", exc_info=True)

  # Jobs fail at the step that needs a missing secret, so startup only warns.
  missing = missing_runtime_secrets(settings)
  if missing:
    logger.warning("Missing configuration for itinerary jobs: %s", ", ".join(missing))

  logger.info("Startup complete environment=%s model=%s", settings.environment, settings.gemini_model)
  yield
