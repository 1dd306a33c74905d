"""Structured logging for remote sync steps."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredSyncLogger:
    """Structured logger for sync engine round trips."""

    def log_step(
        self,
        adventure_id: str,
        operation: str,
        step: str,
        outcome: str,
        latency_ms: float,
        rows: int | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log one store round trip with structured data."""
        log_data: dict[str, Any] = {
            "adventure_id": adventure_id,
            "operation": operation,
            "step": step,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if rows is not None:
            log_data["rows"] = rows
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"Sync {operation}/{step}: {adventure_id} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})
