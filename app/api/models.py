from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator


class ItineraryRequest(BaseModel):
  """Request payload for itinerary generation."""

  destination: StrictStr = Field(min_length=1, description="Destination to plan the trip for.", examples=["Paris"])
  duration_days: StrictInt = Field(alias="durationDays", ge=1, description="Trip length in days.", examples=[2])
  model_config = ConfigDict(populate_by_name=True, extra="ignore")

  @field_validator("duration_days", mode="before")
  @classmethod
  def accept_integral_float(cls, v: Any) -> Any:
    # 2.0 counts as a whole number of days.
    if isinstance(v, float) and v.is_integer():
      return int(v)
    return v


class JobCreateResponse(BaseModel):
  """Acknowledgement returned before the job runs."""

  job_id: str = Field(serialization_alias="jobId")
