"""Custom exception hierarchy for rollback commands and history handling."""


class RollbackError(Exception):
    """Base exception for all rollback errors.

    All rollback-specific exceptions inherit from this class, enabling
    centralized exception handling in the CLI layer.

    Attributes:
        error_type: Stable classification name used in JSON output
    """

    error_type = "RollbackError"


class ConfigError(RollbackError):
    """Exception raised for configuration errors.

    Raised when the configuration file or environment variables cannot be
    parsed or contain invalid values.

    Attributes:
        field: The configuration field that caused the error
        message: Human-readable error message describing the issue
    """

    error_type = "ConfigError"

    def __init__(self, field: str, message: str) -> None:
        """Initialize ConfigError with field and message.

        Args:
            field: Configuration field name where error occurred
            message: Descriptive error message
        """
        self.field = field
        self.message = message
        super().__init__(f"Configuration error in '{field}': {message}")


class InvalidArgumentError(RollbackError):
    """Exception raised when a required command argument is missing or empty."""

    error_type = "InvalidArgument"

    def __init__(self, argument: str, message: str) -> None:
        """Create an argument error for the named argument."""
        self.argument = argument
        self.message = message
        super().__init__(message)


class InsufficientHistoryError(RollbackError):
    """Exception raised when a rollback needs more history than is recorded.

    Attributes:
        count: Number of entries currently in the history
        required: Minimum number of entries needed
    """

    error_type = "InsufficientHistory"

    def __init__(self, count: int, required: int = 2) -> None:
        """Initialize with the current and required entry counts.

        Args:
            count: Number of recorded deployments
            required: Number of deployments the operation needs
        """
        self.count = count
        self.required = required
        self.message = (
            f"Need at least {required} deployments to rollback. Current: {count}."
        )
        super().__init__(self.message)


class TagNotFoundError(RollbackError):
    """Exception raised when a rollback target tag is not in the history."""

    error_type = "TagNotFound"

    def __init__(self, tag: str) -> None:
        """Create a not-found error for the given tag."""
        self.tag = tag
        self.message = f'Tag "{tag}" not found in history.'
        super().__init__(self.message)


class DispatchError(RollbackError):
    """Exception raised when an external rollback command fails.

    Commands that already ran before the failure are not undone.

    Attributes:
        command: Description of the command that failed
        detail: Underlying failure output from the command
    """

    error_type = "DispatchError"

    def __init__(self, command: str, detail: str) -> None:
        """Initialize DispatchError with the failing command and its detail.

        Args:
            command: Shell-style description of the failed command
            detail: Error output or exception text from the executor
        """
        self.command = command
        self.detail = detail
        self.message = f"Command failed: {command}"
        if detail:
            self.message += f"\n{detail}"
        super().__init__(self.message)


class PersistenceError(RollbackError):
    """Exception raised when the history file cannot be written."""

    error_type = "PersistenceError"

    def __init__(self, path: str, message: str) -> None:
        """Create a persistence error for the given history path."""
        self.path = path
        self.message = message
        super().__init__(f"Failed to persist history at {path}: {message}")


class DockerNotAvailableError(RollbackError):
    """Exception raised when the Docker daemon cannot be reached.

    Attributes:
        operation: The operation that required Docker
    """

    error_type = "DockerNotAvailable"

    def __init__(self, operation: str) -> None:
        """Initialize with the operation that needed the Docker daemon."""
        self.operation = operation
        self.message = (
            f"Docker is not available for '{operation}'.\n"
            "Ensure the Docker daemon is running and DOCKER_HOST is correct."
        )
        super().__init__(self.message)
