"""Custom exception classes for the manager API and its job core."""


class ManagerError(Exception):
    """Base exception for errors surfaced at the HTTP boundary."""

    def __init__(self, code: str, message: str, details=None, status_code: int = 500):
        self.code = code
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ManagerError):
    """Request validation failure."""

    def __init__(self, message: str, details=None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class NotFoundError(ManagerError):
    """Resource not found."""

    def __init__(self, resource: str = "", resource_id: str = ""):
        message = f"{resource} '{resource_id}' not found" if resource else "not found"
        super().__init__("NOT_FOUND", message, status_code=404)


class AuthenticationError(ManagerError):
    """Authentication required or credentials invalid."""

    def __init__(self, message: str = "Authentication required"):
        super().__init__("AUTHENTICATION_ERROR", message, status_code=401)


class CommandError(Exception):
    """Base class for external command failures."""


class CommandTimeoutError(CommandError):
    """The command did not finish within its allotted time."""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"timeout after {timeout_ms}ms")


class CommandFailedError(CommandError):
    """The command exited with a non-zero code."""

    def __init__(self, exit_code: int | None, output: str):
        self.exit_code = exit_code
        self.output = output
        message = output.strip() or f"command exited with code {exit_code}"
        super().__init__(message)


class JobPreconditionError(Exception):
    """A job was rejected before any external call was attempted."""
