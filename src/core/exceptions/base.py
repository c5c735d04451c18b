from typing import Any


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Validation error."""

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message=message, status_code=422, details=details)


class DataIntegrityError(AppException):
    """Snapshot references a record that was not fetched alongside it."""

    def __init__(self, resource: str, identifier: Any, referenced_by: str):
        message = f"{referenced_by} references unknown {resource} id={identifier}"
        super().__init__(
            message=message,
            status_code=500,
            details={"resource": resource, "id": str(identifier)},
        )


class ReportSerializationError(AppException):
    """Report content cannot be represented in the target format."""

    def __init__(self, report_format: str, reason: str):
        message = f"Cannot build {report_format} report: {reason}"
        super().__init__(message=message, status_code=500, details={"format": report_format})
