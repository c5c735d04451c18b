from src.core.exceptions.base import (
    AppException,
    ValidationError,
    DataIntegrityError,
    ReportSerializationError,
)

__all__ = [
    "AppException",
    "ValidationError",
    "DataIntegrityError",
    "ReportSerializationError",
]
