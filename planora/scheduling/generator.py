"""Activity generation with a single local fallback.

The external client is asked once. Any failure of that call switches the whole
trip to the deterministic local generator; there is no retry.
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass

from planora.llm.base import GenerationClient
from planora.llm.client import LocalFallbackClient
from planora.models.generation import GeneratedDayPlan, TripPlanRequest
from planora.models.trip import DaySlot
from planora.utils.logging import GenerationLogger
from planora.utils.metrics import PrometheusGenerationMetrics

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Generated day plans and how they were produced."""

    plans: list[GeneratedDayPlan]
    used_fallback: bool
    error: str | None = None


class ActivityGenerator:
    """Fills allocated day slots with activities."""

    def __init__(
        self,
        client: GenerationClient,
        *,
        fallback: LocalFallbackClient | None = None,
        metrics: PrometheusGenerationMetrics | None = None,
        gen_logger: GenerationLogger | None = None,
    ) -> None:
        self.client = client
        self.fallback = fallback or (
            client if isinstance(client, LocalFallbackClient) else LocalFallbackClient()
        )
        self._metrics = metrics or PrometheusGenerationMetrics()
        self._log = gen_logger or GenerationLogger()

    async def generate(
        self, request: TripPlanRequest, slots: Sequence[DaySlot]
    ) -> GenerationResult:
        """Generate day plans for every slot.

        Args:
            request: Trip parameters
            slots: Allocated day slots

        Returns:
            GenerationResult; used_fallback is True when the local generator produced the plans
        """
        started = time.perf_counter()
        try:
            plans = await self.client.generate_itinerary(request, slots=slots)
        except Exception as e:
            latency_ms = (time.perf_counter() - started) * 1000
            self._log.log_outcome(
                "generate_itinerary",
                "fallback",
                latency_ms,
                days=len(slots),
                error_reason=f"{type(e).__name__}: {e}",
            )
            self._metrics.inc_request("generate_itinerary", "fallback")
            self._metrics.inc_fallback("generate_itinerary", type(e).__name__)

            plans = await self.fallback.generate_itinerary(request, slots=slots)
            return GenerationResult(plans=plans, used_fallback=True, error=str(e))

        latency_ms = (time.perf_counter() - started) * 1000
        used_fallback = self.client.source == "local"
        outcome = "fallback" if used_fallback else "success"
        if used_fallback:
            self._log.log_outcome("generate_itinerary", "local", latency_ms, days=len(slots))
        else:
            self._log.log_outcome("generate_itinerary", "success", latency_ms, days=len(slots))
            self._metrics.record_latency("generate_itinerary", outcome, latency_ms)
        self._metrics.inc_request("generate_itinerary", outcome)

        if len(plans) != len(slots):
            logger.warning(f"Generated {len(plans)} day plans for {len(slots)} allocated days")
        return GenerationResult(plans=plans, used_fallback=used_fallback)
