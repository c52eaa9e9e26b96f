"""Per-event reconciliation of instance DNS records.

One EC2 state-change event is handled as a short state machine that stops
at the first unmet precondition:
1. Classify the lifecycle state (running -> register, stopped/terminated -> unregister)
2. Resolve the instance, restricted to instances tagged with a hosted zone
3. Resolve the zone id from the HostedZone tag
4. Resolve the hosted zone
5. Plan the changes (unregister lists the zone's record sets first)
6. Apply the plan as one atomic change batch

Missing instances, missing zone tags and empty plans are expected outcomes,
not errors. Failures from AWS propagate to the caller; the reconciler never
retries, and the batch apply is the only mutating call, so a failed
invocation leaves DNS untouched.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .aws import InstanceDirectory, ZoneStore
from .config import HOSTED_ZONE_TAG
from .models import (
    Change,
    ChangeAction,
    HostedZone,
    Instance,
    LifecycleState,
    StateChangeEvent,
    Task,
)
from .planner import plan_registration, plan_unregistration
from .provenance import ProvenanceLogger, get_provenance_logger
from .tags import get_tag_value

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, Enum):
    """How an invocation ended."""

    IGNORED = "ignored"
    NO_INSTANCE = "no_instance"
    NO_ZONE = "no_zone"
    NO_CHANGES = "no_changes"
    APPLIED = "applied"


@dataclass
class ReconcileResult:
    """Result of handling a single event."""

    state: LifecycleState
    instance_id: str | None = None
    task: Task | None = None
    outcome: ReconcileOutcome | None = None
    zone_id: str | None = None
    changes: list[Change] = field(default_factory=list)
    change_info: dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    error: Exception | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate duration in seconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time).total_seconds()

    def count(self, action: ChangeAction) -> int:
        """Number of planned changes with the given action."""
        return sum(1 for change in self.changes if change.action == action)

    def to_summary(self) -> dict[str, Any]:
        """JSON-serializable summary, returned from the Lambda handler."""
        return {
            "instance_id": self.instance_id,
            "state": self.state.value,
            "task": self.task.value if self.task else None,
            "outcome": self.outcome.value if self.outcome else None,
            "zone_id": self.zone_id,
            "changes": [change.to_api() for change in self.changes],
            "change_id": self.change_info.get("Id"),
        }


class Reconciler:
    """Drives one event through lookup, planning and apply.

    The reconciler owns its AWS gateways. They are built once and reused
    across invocations; nothing else is kept between events.
    """

    def __init__(
        self,
        instances: InstanceDirectory,
        zones: ZoneStore,
        provenance_logger: ProvenanceLogger | None = None,
    ) -> None:
        """Initialize reconciler with its AWS gateways.

        Args:
            instances: EC2 instance lookup.
            zones: Route 53 zone access.
            provenance_logger: Audit logger (default: process-wide instance).
        """
        self._instances = instances
        self._zones = zones
        self._provenance_logger = provenance_logger or get_provenance_logger()

    def reconcile(self, event: StateChangeEvent, request_id: str | None = None) -> ReconcileResult:
        """Handle one state-change event.

        Args:
            event: Validated state-change event.
            request_id: Lambda request id, stamped on the provenance record.

        Returns:
            ReconcileResult describing how the invocation ended.

        Raises:
            botocore.exceptions.ClientError: If an AWS call fails.
            botocore.exceptions.BotoCoreError: If an AWS call cannot be made.
        """
        result = ReconcileResult(state=event.state, instance_id=event.instance_id, task=event.task)

        if result.task is None or result.instance_id is None:
            logger.debug("Ignoring event", extra={"state": event.state.value})
            result.outcome = ReconcileOutcome.IGNORED
            result.end_time = datetime.now(UTC)
            return result

        provenance = self._provenance_logger.create_provenance(
            instance_id=result.instance_id,
            state=event.state.value,
            task=result.task.value,
            request_id=request_id,
        )

        try:
            self._reconcile_instance(result.instance_id, result.task, result)
        except Exception as e:
            result.error = e
            provenance.error = str(e)
            provenance.error_type = type(e).__name__
            raise
        finally:
            result.end_time = datetime.now(UTC)

            provenance.zone_id = result.zone_id or ""
            provenance.outcome = result.outcome.value if result.outcome else "failed"
            provenance.create_count = result.count(ChangeAction.CREATE)
            provenance.delete_count = result.count(ChangeAction.DELETE)
            provenance.change_id = result.change_info.get("Id")
            provenance.duration_seconds = result.duration_seconds
            self._provenance_logger.log_provenance(provenance)

        return result

    def _reconcile_instance(self, instance_id: str, task: Task, result: ReconcileResult) -> None:
        """Run steps 2-6 for an event that needs work, filling in result."""
        instance = self._instances.describe_instance(instance_id, HOSTED_ZONE_TAG)
        if instance is None:
            logger.info("No matching instance", extra={"instance_id": instance_id})
            result.outcome = ReconcileOutcome.NO_INSTANCE
            return

        # Records are keyed on the id; use the event's when the description omits it
        if instance.instance_id is None:
            instance = instance.model_copy(update={"instance_id": instance_id})

        zone_id = get_tag_value(instance.tags, HOSTED_ZONE_TAG)
        if not zone_id:
            logger.info("No hosted zone assigned", extra={"instance_id": instance_id})
            result.outcome = ReconcileOutcome.NO_ZONE
            return

        result.zone_id = zone_id
        zone = self._zones.get_zone(zone_id)

        changes = self._plan(task, instance, zone, zone_id)
        if not changes:
            logger.info(
                "No changes",
                extra={"instance_id": instance_id, "zone_id": zone_id, "task": task.value},
            )
            result.outcome = ReconcileOutcome.NO_CHANGES
            return

        result.changes = changes
        response = self._zones.apply_change_batch(zone_id, changes)
        result.change_info = response.get("ChangeInfo") or {}
        result.outcome = ReconcileOutcome.APPLIED

        logger.info(
            "Change batch applied: %s",
            json.dumps(response, default=str),
            extra={
                "instance_id": instance_id,
                "zone_id": zone_id,
                "task": task.value,
                "change_id": result.change_info.get("Id"),
            },
        )

    def _plan(
        self, task: Task, instance: Instance, zone: HostedZone, zone_id: str
    ) -> list[Change]:
        match task:
            case Task.REGISTER:
                return plan_registration(instance, zone)
            case Task.UNREGISTER:
                record_sets = self._zones.list_record_sets(zone_id)
                return plan_unregistration(instance.instance_id, zone, record_sets)
