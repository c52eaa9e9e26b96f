"""Tests for invocation provenance tracking."""

from __future__ import annotations

import logging
import os
from datetime import UTC
from unittest.mock import patch

import pytest

from registrar import provenance as provenance_module
from registrar.provenance import (
    InvocationProvenance,
    ProvenanceLogger,
    get_provenance_logger,
)


class TestInvocationProvenance:
    """Tests for InvocationProvenance dataclass."""

    def test_default_values(self) -> None:
        """Default provenance has expected values."""
        provenance = InvocationProvenance()
        assert provenance.registrar_version == "dev"
        assert provenance.instance_id == ""
        assert provenance.total_changes == 0
        assert provenance.change_id is None
        assert provenance.error is None

    def test_timestamp_is_utc(self) -> None:
        """Timestamp uses UTC timezone."""
        assert InvocationProvenance().timestamp.tzinfo is UTC

    def test_total_changes(self) -> None:
        """Total is creates plus deletes."""
        provenance = InvocationProvenance(create_count=3, delete_count=2)
        assert provenance.total_changes == 5

    def test_to_dict(self) -> None:
        """to_dict converts to serializable dictionary."""
        provenance = InvocationProvenance(instance_id="i-1", zone_id="Z1", outcome="applied")
        result = provenance.to_dict()

        assert result["instance_id"] == "i-1"
        assert result["zone_id"] == "Z1"
        assert result["outcome"] == "applied"
        assert isinstance(result["timestamp"], str)


class TestProvenanceLogger:
    """Tests for ProvenanceLogger class."""

    def test_create_provenance_reads_lambda_environment(self) -> None:
        """Function name and version come from the Lambda runtime environment."""
        env = {
            "AWS_LAMBDA_FUNCTION_NAME": "ec2-route53-registrar",
            "AWS_LAMBDA_FUNCTION_VERSION": "$LATEST",
        }
        with patch.dict(os.environ, env, clear=True):
            provenance_logger = ProvenanceLogger(version="1.2.3")

        provenance = provenance_logger.create_provenance(
            instance_id="i-1", state="running", task="register", request_id="req-1"
        )

        assert provenance.function_name == "ec2-route53-registrar"
        assert provenance.function_version == "$LATEST"
        assert provenance.registrar_version == "1.2.3"
        assert provenance.request_id == "req-1"
        assert provenance.task == "register"

    def test_create_provenance_outside_lambda(self) -> None:
        """Missing runtime values become empty strings."""
        with patch.dict(os.environ, {}, clear=True):
            provenance = ProvenanceLogger().create_provenance(
                instance_id=None, state="stopped", task="unregister"
            )

        assert provenance.function_name == ""
        assert provenance.instance_id == ""
        assert provenance.request_id == ""

    def test_log_success_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        """Successful invocations are logged at INFO."""
        provenance = InvocationProvenance(instance_id="i-1", outcome="applied", create_count=2)

        with caplog.at_level(logging.INFO, logger="registrar.provenance"):
            ProvenanceLogger().log_provenance(provenance)

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.instance_id == "i-1"
        assert record.changes == 2
        assert record.provenance["outcome"] == "applied"

    def test_log_error_at_error(self, caplog: pytest.LogCaptureFixture) -> None:
        """Failed invocations are logged at ERROR."""
        provenance = InvocationProvenance(error="boom", error_type="ClientError")

        with caplog.at_level(logging.INFO, logger="registrar.provenance"):
            ProvenanceLogger().log_provenance(provenance)

        assert caplog.records[-1].levelno == logging.ERROR


class TestGetProvenanceLogger:
    """Tests for the singleton accessor."""

    def test_returns_same_instance(self) -> None:
        """Repeated calls return the same logger."""
        with patch.object(provenance_module, "_provenance_logger", None):
            first = get_provenance_logger("1.0.0")
            second = get_provenance_logger("2.0.0")

        assert first is second
