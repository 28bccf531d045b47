from .backup_service import BackupService
from .checksum import canonical_payload, compute_checksum, snapshot_checksum, verify_snapshot_checksum
from .exporter import SnapshotExporter, get_mime_type, get_suggested_filename
from .importer import SnapshotImporter, merge_by_id
from .models import (
    SNAPSHOT_VERSION,
    ExportFormat,
    ExportOptions,
    ExportResult,
    ImportOptions,
    ImportResult,
    ImportStats,
    ImportStrategy,
    ValidationResult,
)
from .snapshot_validator import SnapshotValidator

__all__ = [
    "BackupService",
    "SnapshotExporter",
    "SnapshotImporter",
    "SnapshotValidator",
    "canonical_payload",
    "compute_checksum",
    "snapshot_checksum",
    "verify_snapshot_checksum",
    "get_mime_type",
    "get_suggested_filename",
    "merge_by_id",
    "SNAPSHOT_VERSION",
    "ExportFormat",
    "ExportOptions",
    "ExportResult",
    "ImportOptions",
    "ImportResult",
    "ImportStats",
    "ImportStrategy",
    "ValidationResult",
]
