"""Utility modules for the AI security maturity engine."""

from .storage import (
    BackupValidationError,
    EntityNotFoundError,
    SettingsStore,
    StoreError,
)
from .export import (
    WorkbookImport,
    WorkbookImportError,
    export_workbook,
    import_answers_workbook,
    metrics_summary,
)

__all__ = [
    "BackupValidationError",
    "EntityNotFoundError",
    "SettingsStore",
    "StoreError",
    "WorkbookImport",
    "WorkbookImportError",
    "export_workbook",
    "import_answers_workbook",
    "metrics_summary",
]
