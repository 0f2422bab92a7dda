"""Prompt templates for itinerary generation."""

from __future__ import annotations

_EXAMPLE_ITINERARY = """{
  "itinerary": [
    {
      "day": 1,
      "theme": "Historical Arrival",
      "activities": [
        { "time": "2:00 PM", "description": "Arrive and check into the hotel", "location": "City Center Hotel" },
        { "time": "4:00 PM", "description": "Visit the Old Town Square", "location": "Old Town" }
      ]
    },
    {
      "day": 2,
      "theme": "Cultural Exploration",
      "activities": [
        { "time": "10:00 AM", "description": "Explore the National Museum", "location": "Museum District" }
      ]
    }
  ]
}"""


def build_itinerary_prompt(destination: str, duration_days: int) -> str:
  """Return the instruction asking the model for a raw JSON itinerary."""
  return f"""You are an expert travel itinerary generator. Your task is to create a {duration_days}-day travel plan for {destination}.

**CRITICAL INSTRUCTION**: Your entire response MUST be a single, raw JSON object. Do not add any commentary, markdown, or any text outside of the JSON.

The JSON object must have one single root key: "itinerary".
The value of "itinerary" must be an array of day objects, with exactly {duration_days} elements.

Each day object in the array must contain:
- "day": (Integer) The day number.
- "theme": (String) A short theme for the day.
- "activities": (Array) A list of activity objects.

Each activity object must contain:
- "time": (String) The suggested time, e.g., "9:00 AM".
- "description": (String) A brief description of the activity.
- "location": (String) The location of the activity.

Here is an example of the required format for a 2-day trip:
{_EXAMPLE_ITINERARY}

Now, generate the JSON for the {duration_days}-day trip to {destination}."""
