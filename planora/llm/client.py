"""Generation clients: OpenRouter (OpenAI-compatible) and a deterministic local fallback.

Security: Reads the API key from settings/environment only, never hardcoded.
The local client needs no key and no network, so planning always completes.
"""

import json
import logging
import random
import re
from collections.abc import Sequence
from typing import Any

from openai import AsyncOpenAI
from pydantic import ValidationError

from planora.config import Settings, get_settings
from planora.llm.base import GenerationClient, GenerationError
from planora.models.common import PACE_ACTIVITY_RANGE, Pace
from planora.models.generation import (
    GeneratedDayPlan,
    ItineraryResponse,
    RegenerateRequest,
    RegenerateResponse,
    TripPlanRequest,
)
from planora.models.trip import Activity, DaySlot
from planora.scheduling.fallback import (
    FallbackContext,
    activity_id,
    build_day_activities,
    synthetic_activities,
)
from planora.scheduling.optimizer import LOCAL_REFLOW_NOTES, ScheduleOverflowError, reflow_schedule
from planora.scheduling.timeutils import date_diff_inclusive

logger = logging.getLogger(__name__)

JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

PACE_GUIDANCE = {
    Pace.relaxed: "fewer activities, more time at each",
    Pace.balanced: "balanced mix of activities and rest",
    Pace.fast: "more activities, efficient timing",
}


def extract_json_object(content: str) -> dict[str, Any]:
    """Extract the outermost JSON object from a model reply.

    Raises:
        GenerationError: If no parseable JSON object is present.
    """
    match = JSON_OBJECT_RE.search(content)
    if not match:
        raise GenerationError("no JSON object found in generation response")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise GenerationError(f"invalid JSON in generation response: {e.msg}") from e

    if not isinstance(data, dict):
        raise GenerationError("generation response JSON is not an object")
    return data


class LocalFallbackClient:
    """Deterministic local generator (no API key or network required)."""

    source = "local"

    def __init__(self, rng: random.Random | None = None, *, settings: Settings | None = None):
        """Initialize local client.

        Args:
            rng: Random source for cost jitter and placeholder coordinates
            settings: Settings to read seed, anchor coordinates and buffer from
        """
        settings = settings or get_settings()
        self._rng = rng or random.Random(settings.fallback_rng_seed)
        self._anchor = (settings.fallback_anchor_lat, settings.fallback_anchor_lng)
        self._buffer = settings.travel_buffer_min

    def context_for(self, request: TripPlanRequest) -> FallbackContext:
        """Trip-level inputs for the fallback builders."""
        return FallbackContext(
            destination=request.destination,
            budget=request.budget,
            interests=tuple(request.interests),
            anchor_lat=self._anchor[0],
            anchor_lng=self._anchor[1],
        )

    def build_activities(self, ctx: FallbackContext, slot: DaySlot) -> list[Activity]:
        """Activities for one slot: synthetic for travel/extended days, three otherwise."""
        synthetic = synthetic_activities(ctx, slot)
        if synthetic is not None:
            return synthetic
        return build_day_activities(
            ctx,
            day_number=slot.day_number,
            rng=self._rng,
            destination=slot.destination_name,
        )

    async def generate_itinerary(
        self, request: TripPlanRequest, *, slots: Sequence[DaySlot]
    ) -> list[GeneratedDayPlan]:
        """Generate one plan per slot locally."""
        ctx = self.context_for(request)
        return [
            GeneratedDayPlan.from_day(
                slot.model_copy(update={"activities": self.build_activities(ctx, slot)})
            )
            for slot in slots
        ]

    async def regenerate_day(self, request: RegenerateRequest) -> GeneratedDayPlan:
        """Re-time the day with the deterministic reflow."""
        activities = [
            generated.to_activity(activity_id=activity_id(request.day_number, i), order_index=i)
            for i, generated in enumerate(request.current_activities)
        ]
        try:
            reflowed = reflow_schedule(activities, buffer_minutes=self._buffer)
        except ScheduleOverflowError as e:
            raise GenerationError(str(e)) from e

        day = DaySlot(day_number=request.day_number, date=request.date, activities=reflowed)
        return GeneratedDayPlan.from_day(day, notes=LOCAL_REFLOW_NOTES)


class OpenRouterClient:
    """OpenRouter-backed generation client (OpenAI-compatible chat completions)."""

    source = "openrouter"

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        *,
        settings: Settings | None = None,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key (read from environment)
            model: Model name to use (defaults to settings.openrouter_model)
            settings: Settings for endpoint, sampling and timeouts
        """
        self.settings = settings or get_settings()
        self.model = model or self.settings.openrouter_model
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=self.settings.openrouter_base_url,
            timeout=self.settings.generation_timeout_s,
            max_retries=0,
            default_headers={"X-Title": self.settings.openrouter_app_title},
        )

    async def generate_itinerary(
        self, request: TripPlanRequest, *, slots: Sequence[DaySlot]
    ) -> list[GeneratedDayPlan]:
        """Generate a full itinerary through the external service."""
        content = await self._complete(
            system_prompt=self._build_generation_system_prompt(),
            user_prompt=self._build_generation_context(request, slots),
            temperature=self.settings.generation_temperature,
            max_tokens=self.settings.generation_max_tokens,
        )
        payload = extract_json_object(content)

        try:
            response = ItineraryResponse.model_validate(payload)
        except ValidationError as e:
            raise GenerationError(f"malformed itinerary ({e.error_count()} errors)") from e

        if not response.itinerary:
            raise GenerationError("generation service returned an empty itinerary")
        return response.itinerary

    async def regenerate_day(self, request: RegenerateRequest) -> GeneratedDayPlan:
        """Ask the external service to re-time and enrich a user-edited day."""
        content = await self._complete(
            system_prompt=self._build_regeneration_system_prompt(),
            user_prompt=self._build_regeneration_context(request),
            temperature=self.settings.regeneration_temperature,
            max_tokens=self.settings.regeneration_max_tokens,
        )
        payload = extract_json_object(content)

        try:
            response = RegenerateResponse.model_validate(payload)
        except ValidationError as e:
            raise GenerationError(f"malformed day plan ({e.error_count()} errors)") from e
        return response.day_plan

    async def _complete(
        self, *, system_prompt: str, user_prompt: str, temperature: float, max_tokens: int
    ) -> str:
        """Run one chat completion and return its text content."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            logger.error(f"OpenRouter API call failed: {e}")
            raise GenerationError(f"generation service call failed: {type(e).__name__}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise GenerationError("generation service returned no content")
        return content

    def _build_generation_system_prompt(self) -> str:
        """Build system prompt for itinerary generation."""
        return (
            "You are an expert travel planner. Create detailed, realistic itineraries with "
            "accurate locations, costs in the trip's currency, and explanations. "
            "Always respond with valid JSON only."
        )

    def _build_generation_context(self, request: TripPlanRequest, slots: Sequence[DaySlot]) -> str:
        """Build the user prompt for itinerary generation."""
        days = date_diff_inclusive(request.start_date, request.end_date)
        low, high = PACE_ACTIVITY_RANGE[request.pace]
        interests = ", ".join(request.interests) or "general sightseeing"

        lines = []

        # Trip section
        lines.append(f"Create a detailed {days}-day travel itinerary for {request.destination}.")
        lines.append("")
        lines.append("## Trip Details")
        lines.append(f"- Destination: {request.destination}")
        lines.append(f"- Dates: {request.start_date} to {request.end_date} ({days} days)")
        lines.append(f"- Budget: {request.budget:,.0f} total")
        lines.append(f"- Travel Pace: {request.pace.value} ({PACE_GUIDANCE[request.pace]})")
        lines.append(f"- Interests: {interests}")
        if request.from_:
            lines.append(f"- Starting from: {request.from_}")
        if request.user_preferences:
            lines.append(f"- Traveler preferences: {json.dumps(request.user_preferences)}")
        lines.append("")

        # Day slots section
        lines.append("## Days")
        for slot in slots:
            if slot.is_travel_day:
                lines.append(
                    f"- Day {slot.day_number} ({slot.date}): travel day from "
                    f"{slot.travel_from} to {slot.destination_name}, no sightseeing"
                )
            else:
                place = slot.destination_name or request.destination
                lines.append(f"- Day {slot.day_number} ({slot.date}): {place}")
        lines.append("")

        # Requirements section
        lines.append("## Requirements")
        lines.append(f"1. Create exactly {days} days of activities")
        lines.append(f"2. Each regular day should have {low}-{high} activities with specific times")
        lines.append(f"3. Mix attractions, food experiences and cultural sites around: {interests}")
        lines.append("4. Stay within budget")
        lines.append("5. Activities on the same day must not overlap in time")
        lines.append("6. Provide realistic locations with coordinates")
        lines.append("7. Explain why each activity fits the traveler's interests")
        lines.append("")
        lines.append(self._itinerary_format())

        return "\n".join(lines)

    def _build_regeneration_system_prompt(self) -> str:
        """Build system prompt for day regeneration."""
        return (
            "You are an expert travel optimizer. Analyze user modifications and create optimized "
            "itineraries with realistic timings and improved flow. "
            "Always respond with valid JSON only."
        )

    def _build_regeneration_context(self, request: RegenerateRequest) -> str:
        """Build the user prompt for day regeneration."""
        lines = []

        lines.append("## Current Situation")
        lines.append(f"- Destination: {request.destination}")
        lines.append(f"- Date: {request.date} (Day {request.day_number})")
        lines.append(f"- Travel Pace: {request.pace.value}")
        lines.append(f"- Interests: {', '.join(request.interests) or 'not specified'}")
        lines.append(f"- Budget: {request.budget:,.0f}")
        lines.append("")

        lines.append("## User's Current Activities")
        for index, activity in enumerate(request.current_activities, start=1):
            address = activity.location.address if activity.location else "not specified"
            lines.append(
                f"{index}. {activity.name} - {activity.time}, {activity.duration} min, "
                f"cost {activity.cost:g}, {activity.type.value}, at {address}"
            )
        lines.append("")

        lines.append("## Optimization Requirements")
        lines.append(f"1. {request.user_changes.instruction}")
        lines.append("2. Keep exactly the same activities in the same order")
        lines.append("3. Add 15-30 minute buffers between activities for travel")
        lines.append("4. Ensure activities don't overlap in timing")
        lines.append("5. Enhance descriptions and 'whyThis' explanations")
        lines.append("")
        lines.append(
            '{"dayPlan": {"day": '
            f"{request.day_number}"
            ', "date": "'
            f"{request.date}"
            '", "activities": [<activity>], "totalCost": 0, "totalDuration": 0, '
            '"optimizationNotes": "Brief explanation of changes made"}}'
        )
        lines.append(self._activity_format())

        return "\n".join(lines)

    def _itinerary_format(self) -> str:
        return (
            "Respond with JSON only, no markdown:\n"
            '{"itinerary": [{"day": 1, "date": "YYYY-MM-DD", "activities": [<activity>], '
            '"totalCost": 0, "totalDuration": 0}]}\n' + self._activity_format()
        )

    def _activity_format(self) -> str:
        return (
            'where <activity> is {"time": "09:00", "name": "Activity Name", '
            '"type": "attraction|food|history|nature|shopping|transport", '
            '"description": "Brief description", "duration": 120, "cost": 25, '
            '"location": {"lat": 28.6139, "lng": 77.2090, "address": "Full address"}, '
            '"whyThis": "Why this fits"}'
        )


def get_generation_client(settings: Settings | None = None) -> GenerationClient:
    """Factory function to get the appropriate generation client based on config.

    Returns:
        OpenRouterClient if an API key is configured, LocalFallbackClient otherwise
    """
    settings = settings or get_settings()
    api_key = settings.openrouter_api_key

    if api_key and api_key.get_secret_value():
        logger.info("Using OpenRouter client for itinerary generation")
        return OpenRouterClient(api_key=api_key.get_secret_value(), settings=settings)

    logger.warning("No OpenRouter API key configured, using local fallback generator")
    return LocalFallbackClient(settings=settings)
