"""Read-back checks for exported archives."""

from .validator import ExportValidator, Issue, QAResult, validate_export

__all__ = ["ExportValidator", "Issue", "QAResult", "validate_export"]
