"""Custom exceptions for the cluster reporter."""


class ReporterError(Exception):
    """Base exception for all cluster reporter errors."""

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


class PowerShellError(ReporterError):
    """Exception raised when a PowerShell invocation fails.

    ``exit_code`` is the PowerShell process exit code when the process ran.
    """

    def __init__(self, message: str, details: str = None, exit_code: int | None = None):
        self.exit_code = exit_code
        super().__init__(message, details)


class ClusterOperationError(ReporterError):
    """Exception raised when a clustering cmdlet returns unusable results."""

    pass


class ConfigurationError(ReporterError):
    """Exception raised for configuration errors."""

    pass


class ReportWriteError(ReporterError):
    """Exception raised when the report file cannot be written."""

    pass
