"""Invocation provenance tracking for audit.

Every event that gets past classification produces one provenance record
answering:
- "Which instance and zone did this invocation touch?"
- "What was created or deleted, and under which Route 53 change id?"
- "Which version of the function was running?"

Records are emitted through the structured logger, so they land in the
function's CloudWatch log group as queryable JSON.
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

from .config import DEFAULT_VERSION

logger = logging.getLogger(__name__)


@dataclass
class InvocationProvenance:
    """Complete provenance record for one handled event."""

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    # Identity
    registrar_version: str = DEFAULT_VERSION
    function_name: str = ""
    function_version: str = ""
    request_id: str = ""

    # Event
    instance_id: str = ""
    state: str = ""
    task: str = ""

    # Outcome
    zone_id: str = ""
    outcome: str = ""
    create_count: int = 0
    delete_count: int = 0
    change_id: str | None = None
    duration_seconds: float = 0.0

    # Error tracking
    error: str | None = None
    error_type: str | None = None

    @property
    def total_changes(self) -> int:
        return self.create_count + self.delete_count

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = asdict(self)
        result["timestamp"] = self.timestamp.isoformat()
        return result


class ProvenanceLogger:
    """Logs provenance records for audit."""

    def __init__(self, version: str = DEFAULT_VERSION) -> None:
        self._version = version
        # Set by the Lambda runtime
        self._function_name = os.environ.get("AWS_LAMBDA_FUNCTION_NAME", "")
        self._function_version = os.environ.get("AWS_LAMBDA_FUNCTION_VERSION", "")

    def create_provenance(
        self,
        instance_id: str | None,
        state: str,
        task: str,
        request_id: str | None = None,
    ) -> InvocationProvenance:
        """Create a new provenance record for an invocation.

        Args:
            instance_id: Instance named by the event.
            state: Lifecycle state named by the event.
            task: register or unregister.
            request_id: Lambda request id, if running inside Lambda.

        Returns:
            Initialized provenance record.
        """
        return InvocationProvenance(
            registrar_version=self._version,
            function_name=self._function_name,
            function_version=self._function_version,
            request_id=request_id or "",
            instance_id=instance_id or "",
            state=state,
            task=task,
        )

    def log_provenance(self, provenance: InvocationProvenance) -> None:
        """Log a completed provenance record.

        Args:
            provenance: Completed provenance record.
        """
        log_level = logging.ERROR if provenance.error else logging.INFO

        logger.log(
            log_level,
            "Invocation provenance",
            extra={
                "provenance": provenance.to_dict(),
                # Flatten key fields for easier querying
                "instance_id": provenance.instance_id,
                "zone_id": provenance.zone_id,
                "task": provenance.task,
                "outcome": provenance.outcome,
                "changes": provenance.total_changes,
                "change_id": provenance.change_id,
            },
        )


# Global singleton for provenance logging
_provenance_logger: ProvenanceLogger | None = None


def get_provenance_logger(version: str = DEFAULT_VERSION) -> ProvenanceLogger:
    """Get the global provenance logger instance."""
    global _provenance_logger
    if _provenance_logger is None:
        _provenance_logger = ProvenanceLogger(version)
    return _provenance_logger
