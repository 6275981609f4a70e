"""Custom exceptions for the cluster orchestrator."""


class ClusterOrchestratorError(Exception):
    """Base exception for all cluster orchestrator errors.

    ``retryable`` errors leave the cluster record untouched and are retried
    on the next tick; any other error stops the reconciliation loop.
    """

    retryable = True

    def __init__(self, message: str, details: str = None):
        """Initialize the exception.

        Args:
            message: Main error message
            details: Additional details or suggestions
        """
        self.message = message
        self.details = details
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format the complete error message.

        Returns:
            Formatted error message with details
        """
        if self.details:
            return f"{self.message}\n\nDetails: {self.details}"
        return self.message


class AccessorError(ClusterOrchestratorError):
    """I/O failure against the declarative store or managed objects.

    Always retryable on the next reconciliation tick.
    """

    pass


class ConflictError(AccessorError):
    """Raised when a conditional write loses against a concurrent edit."""

    pass


class CancelledError(AccessorError):
    """Raised when the call context was cancelled or its deadline passed."""

    pass


class StoreError(AccessorError):
    """Exception raised when the cluster record cannot be read or written."""

    pass


class ConfigError(ClusterOrchestratorError):
    """Exception raised when a component configuration payload cannot be generated."""

    pass


class SyncError(ClusterOrchestratorError):
    """Exception raised when writing a component's desired state fails."""

    pass


class InvariantViolation(ClusterOrchestratorError):
    """Programming-logic fault; aborts the current tick."""

    retryable = False


class ValidationError(ClusterOrchestratorError):
    """Exception raised for cluster manifest validation errors."""

    pass


class ConfigurationError(ClusterOrchestratorError):
    """Exception raised for operator settings errors."""

    pass
