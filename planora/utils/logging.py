"""Structured logging for external generation calls."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class GenerationLogger:
    """Structured logger for generation and regeneration outcomes."""

    def log_outcome(
        self,
        operation: str,
        outcome: str,
        latency_ms: float,
        *,
        trip_ref: str | None = None,
        days: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log a generation attempt with structured data."""
        log_data: dict[str, Any] = {
            "operation": operation,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if trip_ref:
            log_data["trip_ref"] = trip_ref
        if days is not None:
            log_data["days"] = days
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Generation: {operation} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
