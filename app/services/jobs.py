import logging

from fastapi import BackgroundTasks

from app.api.models import ItineraryRequest, JobCreateResponse
from app.config import Settings
from app.jobs.worker import run_itinerary_job
from app.utils.ids import generate_job_id

logger = logging.getLogger(__name__)


def create_itinerary_job(request: ItineraryRequest, settings: Settings, background_tasks: BackgroundTasks) -> JobCreateResponse:
  """Assign a job id and schedule generation to run after the response is sent."""
  job_id = generate_job_id()
  # The task owns all of its error handling; nothing flows back to the request.
  background_tasks.add_task(run_itinerary_job, job_id, request.destination, request.duration_days, settings)
  logger.info("Accepted itinerary job %s for %s (%s days)", job_id, request.destination, request.duration_days)
  return JobCreateResponse(job_id=job_id)
