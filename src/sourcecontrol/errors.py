"""Exception hierarchy for source-control binding operations.

Transport and server failures from the Azure SDK are NOT wrapped here:
Create, Update and Delete propagate ``azure.core.exceptions.AzureError``
subclasses unmodified. Only failures that originate locally, or that need
identifying context (Read), get their own type.
"""

from __future__ import annotations


class SourceControlError(Exception):
    """Base class for all locally raised source-control errors."""

    pass


class ResourceIdParseError(SourceControlError):
    """Raised when a persisted identifier does not match the ARM id grammar."""

    def __init__(self, remote_id: str, reason: str) -> None:
        super().__init__(f"Cannot parse source control id {remote_id!r}: {reason}")
        self.remote_id = remote_id
        self.reason = reason


class SourceControlReadError(SourceControlError):
    """Raised when the remote read of a binding fails."""

    def __init__(self, app_service_name: str, resource_group_name: str, cause: Exception) -> None:
        super().__init__(
            f"Error making Read request on source control for web app "
            f"{app_service_name!r} in resource group {resource_group_name!r}: {cause}"
        )
        self.app_service_name = app_service_name
        self.resource_group_name = resource_group_name


class SourceControlNotFoundError(SourceControlReadError):
    """Raised when the binding (or its web app) no longer exists remotely.

    Callers treat this as "entity vanished" and drop local state.
    """

    pass


class OperationCancelledError(SourceControlError):
    """Raised when the execution context is cancelled during a remote wait.

    Remote work that was already submitted is not rolled back.
    """

    def __init__(self, operation_name: str) -> None:
        super().__init__(f"{operation_name} cancelled while waiting for completion")
        self.operation_name = operation_name


class OperationTimeoutError(SourceControlError):
    """Raised when the context deadline passes during a remote wait."""

    def __init__(self, operation_name: str, timeout_seconds: float | None) -> None:
        super().__init__(f"{operation_name} timed out after {timeout_seconds}s")
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
