from fastapi import APIRouter, BackgroundTasks, Depends, status

from app.api.models import ItineraryRequest, JobCreateResponse
from app.config import Settings, get_settings
from app.services import jobs as job_service

router = APIRouter()


@router.post("", status_code=status.HTTP_202_ACCEPTED, response_model=JobCreateResponse, response_model_by_alias=True)
async def create_itinerary(  # noqa: B008
  request: ItineraryRequest,
  background_tasks: BackgroundTasks,
  settings: Settings = Depends(get_settings),  # noqa: B008
) -> JobCreateResponse:
  """Accept an itinerary request and generate it in the background."""
  return job_service.create_itinerary_job(request, settings, background_tasks)
