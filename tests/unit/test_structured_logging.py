"""Tests for structured logging context."""

from uuid import uuid4

import pytest
import structlog

from src.planforge.core.logging import (
    bind_pipeline_context,
    bind_request_context,
    clear_pipeline_context,
    clear_request_context,
)

pytestmark = pytest.mark.unit


def test_bind_request_context(capturing_logger):
    """Test binding request_id to log context."""
    bind_request_context("test-request-123")
    structlog.get_logger().info("test message")

    entries = capturing_logger.calls
    assert len(entries) == 1
    assert entries[0].kwargs["request_id"] == "test-request-123"


def test_bind_request_context_with_none(capturing_logger):
    """Test that None request_id is not bound."""
    bind_request_context(None)
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs


def test_pipeline_context_bound_and_cleared(capturing_logger):
    subproject_id = uuid4()
    bind_request_context("req-1")
    bind_pipeline_context(subproject_id, "run-abc")
    logger = structlog.get_logger()

    logger.info("inside run")
    clear_pipeline_context()
    logger.info("after run")

    inside, after = capturing_logger.calls
    assert inside.kwargs["subproject_id"] == str(subproject_id)
    assert inside.kwargs["pipeline_run"] == "run-abc"
    assert "subproject_id" not in after.kwargs
    assert "pipeline_run" not in after.kwargs
    # Request context survives the end of a pipeline run
    assert after.kwargs["request_id"] == "req-1"


def test_clear_request_context(capturing_logger):
    bind_request_context("req-2")
    clear_request_context()
    structlog.get_logger().info("test message")

    assert "request_id" not in capturing_logger.calls[0].kwargs
