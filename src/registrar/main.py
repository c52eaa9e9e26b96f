"""Lambda entry point for the EC2 Route 53 registrar.

The function is subscribed to EC2 Instance State-change Notifications.
Clients are created on the first invocation of a process and reused by
every warm invocation after it.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from .aws import create_clients
from .config import Config
from .models import StateChangeEvent
from .provenance import get_provenance_logger
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

# Attributes every LogRecord carries; anything else came from `extra=`
_STANDARD_RECORD_ATTRS = frozenset(
    (
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
        # Added by the Lambda runtime's log filter
        "aws_request_id",
    )
)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_logging_configured = False


def setup_logging(config: Config) -> None:
    """Configure structured logging once per process.

    The Lambda runtime installs its own handler on the root logger; it is
    replaced so each line is emitted once, in the configured format.
    """
    global _logging_configured
    if _logging_configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    if config.json_logging:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s %(message)s"))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(config.log_level_number)

    # Reduce noise from the AWS SDK
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    _logging_configured = True


# Process-wide reconciler, built on first use
_reconciler: Reconciler | None = None


def get_reconciler(config: Config) -> Reconciler:
    """Get the process-wide reconciler, creating its AWS clients on first use."""
    global _reconciler
    if _reconciler is None:
        instances, zones = create_clients(config)
        _reconciler = Reconciler(
            instances,
            zones,
            provenance_logger=get_provenance_logger(config.version),
        )
    return _reconciler


def handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Handle one EC2 Instance State-change Notification.

    Args:
        event: EventBridge event.
        context: Lambda context object.

    Returns:
        Summary of the reconciliation.

    Raises:
        ConfigurationError: If the function environment is invalid.
        pydantic.ValidationError: If the event lacks required fields.
        botocore.exceptions.ClientError: If an AWS call fails.
    """
    config = Config.from_env()
    setup_logging(config)

    parsed = StateChangeEvent.model_validate(event)
    request_id = getattr(context, "aws_request_id", None)

    logger.info(
        "Received state-change event",
        extra={
            "instance_id": parsed.instance_id,
            "state": parsed.state.value,
            "request_id": request_id,
        },
    )

    result = get_reconciler(config).reconcile(parsed, request_id=request_id)
    return result.to_summary()
