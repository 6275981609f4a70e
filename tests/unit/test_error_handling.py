"""Tests for error handling across components."""

import logging

import pytest

from cluster_orchestrator.exceptions import (
    AccessorError,
    CancelledError,
    ClusterOrchestratorError,
    ConfigError,
    ConfigurationError,
    ConflictError,
    InvariantViolation,
    StoreError,
    SyncError,
    ValidationError,
)
from cluster_orchestrator.logging_config import get_logger, setup_logging


def test_custom_exception_with_details():
    """Test that custom exceptions support message and details."""
    error = ConfigError("PrimaryMaster requires locations", "Declare them under 'locations'")

    assert error.message == "PrimaryMaster requires locations"
    assert error.details == "Declare them under 'locations'"
    assert "PrimaryMaster requires locations" in str(error)
    assert "Declare them under 'locations'" in str(error)


def test_custom_exception_without_details():
    """Test that custom exceptions work without details."""
    error = ValidationError("Invalid input")

    assert error.message == "Invalid input"
    assert error.details is None
    assert str(error) == "Invalid input"


def test_exception_hierarchy():
    """Test that all custom exceptions inherit from ClusterOrchestratorError."""
    for error_type in [
        AccessorError,
        ConfigError,
        SyncError,
        InvariantViolation,
        ValidationError,
        ConfigurationError,
    ]:
        assert issubclass(error_type, ClusterOrchestratorError)

    assert issubclass(ConflictError, AccessorError)
    assert issubclass(CancelledError, AccessorError)
    assert issubclass(StoreError, AccessorError)


def test_invariant_violation_is_not_an_accessor_error():
    """Logic faults must not be mistaken for retryable I/O failures."""
    assert not issubclass(InvariantViolation, AccessorError)
    assert not issubclass(InvariantViolation, SyncError)


def test_format_message_includes_details():
    error = SyncError("Failed to sync PrimaryMaster", "HTTP 500: Internal Server Error")

    full_message = error.format_message()
    assert "Failed to sync PrimaryMaster" in full_message
    assert "HTTP 500" in full_message
    assert "Details:" in full_message


def test_exception_can_be_caught_as_base_class():
    """Test that specific exceptions can be caught as ClusterOrchestratorError."""
    try:
        raise ConflictError("Test error")
    except ClusterOrchestratorError as e:
        assert isinstance(e, ConflictError)
        assert e.message == "Test error"


def test_logging_setup():
    """Test that logging can be configured."""
    setup_logging(level="INFO", verbose=False)

    logger = get_logger("test")
    assert logger is not None
    assert logger.name == "test"


def test_logging_with_verbose():
    """Test that verbose mode sets DEBUG level."""
    setup_logging(verbose=True)

    assert logging.getLogger().level == logging.DEBUG
    get_logger("test").debug("This is a debug message")


def test_logging_to_file(tmp_path):
    log_file = tmp_path / "logs" / "orchestrator.log"
    setup_logging(level="INFO", log_file=log_file)

    get_logger("test").info("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.exists()
    assert "written to file" in log_file.read_text()


def test_noisy_libraries_are_capped():
    setup_logging(verbose=True)

    assert logging.getLogger("kubernetes").level == logging.WARNING
    assert logging.getLogger("urllib3").level == logging.WARNING


def test_manifest_not_found_error():
    """Test that a missing manifest has a helpful message."""
    from cluster_orchestrator.models.cluster import ClusterResource

    with pytest.raises(ValidationError) as exc_info:
        ClusterResource.load("nonexistent.yaml")

    error_msg = str(exc_info.value)
    assert "not found" in error_msg.lower()
    assert "nonexistent.yaml" in error_msg


def test_component_logger_tags_records(tmp_path):
    """Test that component log lines name their cluster and component."""
    from cluster_orchestrator.logging_config import component_logger

    log_file = tmp_path / "orchestrator.log"
    setup_logging(level="INFO", log_file=log_file)

    component_logger("test", "minisaurus", "PrimaryMaster").info("executing Sync")
    get_logger("test").info("outside any cluster")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text()
    assert "[minisaurus] PrimaryMaster: executing Sync" in text
    assert "[-] outside any cluster" in text


def test_logging_from_settings(tmp_path):
    """Test that settings choose the level and the log file."""
    from cluster_orchestrator.logging_config import setup_logging_from_settings
    from cluster_orchestrator.settings import OperatorSettings

    log_file = tmp_path / "from-settings.log"
    settings = OperatorSettings(log_level="warning", log_file=str(log_file))

    setup_logging_from_settings(settings)
    get_logger("test").warning("kept")
    get_logger("test").info("dropped")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert logging.getLogger().level == logging.WARNING
    assert "kept" in log_file.read_text()
    assert "dropped" not in log_file.read_text()


def test_only_logic_faults_are_fatal():
    """Test that every error kind but an invariant violation is retried."""
    assert AccessorError("x").retryable
    assert ConflictError("x").retryable
    assert SyncError("x").retryable
    assert ValidationError("x").retryable
    assert not InvariantViolation("x").retryable
