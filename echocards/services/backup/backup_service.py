from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Optional, Union

from echocards.services.backup.exporter import SnapshotExporter, get_mime_type, get_suggested_filename
from echocards.services.backup.importer import SnapshotImporter
from echocards.services.backup.models import (
    ExportFormat,
    ExportOptions,
    ExportResult,
    ImportOptions,
    ImportResult,
    ImportStrategy,
    ValidationResult,
)
from echocards.services.backup.snapshot_validator import SnapshotValidator
from echocards.services.storage.base import StorageBackend
from echocards.utils.error_handler import ExportError, ImportParseError, OperationInProgressError


logger = logging.getLogger(__name__)

BUSY_MESSAGE = "Another backup operation is already in progress"
INVALID_JSON_MESSAGE = "Invalid JSON format"


class BackupService:
    """Main orchestrator for backup and restore: export → deliver, read → parse → validate → import."""

    def __init__(self, storage: StorageBackend, config_service=None):
        self.storage = storage
        self.config_service = config_service
        self.validator = SnapshotValidator()
        self.exporter = SnapshotExporter(storage)
        self.importer = SnapshotImporter(storage, self.validator)
        self._lock = threading.Lock()

    # ---------------------- Helpers ----------------------
    @contextmanager
    def _exclusive(self, operation: str):
        if not self._lock.acquire(blocking=False):
            logger.warning(f"Rejected {operation}: {BUSY_MESSAGE}")
            raise OperationInProgressError(BUSY_MESSAGE, error_code="OPERATION_IN_PROGRESS")
        try:
            yield
        finally:
            self._lock.release()

    def is_busy(self) -> bool:
        return self._lock.locked()

    def default_export_options(self) -> ExportOptions:
        """Export options from the configured backup defaults."""
        if not self.config_service:
            return ExportOptions()
        defaults = self.config_service.get_backup_defaults()
        return ExportOptions(
            include_preferences=defaults["include_preferences"],
            include_checksum=defaults["include_checksum"],
        )

    def default_import_options(self) -> ImportOptions:
        """Import options from the configured backup defaults."""
        if not self.config_service:
            return ImportOptions()
        defaults = self.config_service.get_backup_defaults()
        return ImportOptions(
            strategy=ImportStrategy(defaults["default_import_strategy"]),
            verify_checksum=defaults["verify_checksum"],
        )

    # ---------------------- Export ----------------------
    def export_to_json(self, options: Optional[ExportOptions] = None) -> str:
        with self._exclusive("JSON export"):
            return self.exporter.to_json(options or self.default_export_options())

    def export_to_csv(self) -> str:
        with self._exclusive("CSV export"):
            return self.exporter.to_csv()

    def export_to_anki(self) -> str:
        with self._exclusive("Anki export"):
            return self.exporter.to_anki()

    def export_data(
        self,
        export_format: Union[ExportFormat, str],
        options: Optional[ExportOptions] = None,
        today: Optional[date] = None,
    ) -> ExportResult:
        """
        Export the data set and attach the file name and MIME type for delivery.

        Failures are reported in the result rather than raised.
        """
        try:
            export_format = ExportFormat(export_format)
        except ValueError:
            return ExportResult(
                success=False,
                format=None,
                message=f"Unsupported export format: {export_format}",
            )

        try:
            with self._exclusive(f"{export_format.value} export"):
                content = self.exporter.export(export_format, options or self.default_export_options())
        except (ExportError, OperationInProgressError) as e:
            return ExportResult(success=False, format=export_format, message=e.message)

        filename = get_suggested_filename(export_format, today)
        logger.info(f"Exported {export_format.value} data as {filename}")
        return ExportResult(
            success=True,
            format=export_format,
            content=content,
            filename=filename,
            mime_type=get_mime_type(export_format),
            message=f"Data exported successfully as {export_format.value.upper()}",
        )

    def write_export(self, result: ExportResult, directory: Union[str, Path]) -> Path:
        """
        Write a successful export to ``directory`` under its suggested file name.

        Raises:
            ExportError: If the export failed or the file cannot be written
        """
        if not result.success:
            raise ExportError(f"Nothing to write: {result.message}", error_code="EXPORT_FAILED")

        target_dir = Path(directory)
        target = target_dir / result.filename
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="") as f:
                f.write(result.content)
        except OSError as e:
            logger.error(f"Error writing export file {target}: {e}")
            raise ExportError(f"Failed to write export file: {e}", error_code="EXPORT_WRITE_FAILED") from e

        logger.info(f"Wrote export file {target}")
        return target

    @staticmethod
    def get_suggested_filename(export_format: Union[ExportFormat, str], today: Optional[date] = None) -> str:
        return get_suggested_filename(ExportFormat(export_format), today)

    @staticmethod
    def get_mime_type(export_format: Union[ExportFormat, str]) -> str:
        return get_mime_type(ExportFormat(export_format))

    # ---------------------- Import ----------------------
    @staticmethod
    def read_file_content(source: Any) -> str:
        """
        Read an import file as UTF-8 text.

        Args:
            source: Raw bytes, a file-like object (such as a Streamlit upload)
                or a filesystem path

        Raises:
            ImportParseError: If the file cannot be read or is not UTF-8
        """
        try:
            if isinstance(source, (bytes, bytearray)):
                raw = bytes(source)
            elif hasattr(source, "read"):
                raw = source.read()
            else:
                raw = Path(source).read_bytes()

            if isinstance(raw, str):
                return raw.lstrip("\ufeff")
            return raw.decode("utf-8-sig")
        except (OSError, UnicodeDecodeError, TypeError) as e:
            logger.error(f"Error reading import file: {e}")
            raise ImportParseError(f"Failed to read file: {e}", error_code="FILE_READ_FAILED") from e

    @staticmethod
    def _parse(text: str) -> Any:
        try:
            return json.loads(text)
        except (json.JSONDecodeError, TypeError) as e:
            raise ImportParseError(INVALID_JSON_MESSAGE) from e

    def validate_file_content(self, text: str) -> ValidationResult:
        """Parse and validate file content without touching the store."""
        try:
            data = self._parse(text)
        except ImportParseError as e:
            logger.warning(f"Import file is not valid JSON: {e.__cause__}")
            return ValidationResult(valid=False, errors=[e.message])
        return self.validator.validate(data)

    def import_from_json(self, text: str, options: Optional[ImportOptions] = None) -> ImportResult:
        """
        Parse, validate and import a JSON backup.

        Returns:
            ImportResult; parse failures, validation failures and a busy
            service are all reported as unsuccessful results
        """
        options = options or self.default_import_options()

        try:
            with self._exclusive("import"):
                try:
                    snapshot = self._parse(text)
                except ImportParseError as e:
                    logger.warning(f"Import rejected: {e.message}")
                    result = ImportResult(success=False, message=e.message, strategy=options.strategy,
                                          dry_run=options.dry_run)
                    result.stats.errors.append(e.message)
                    return result

                validation = self.validator.validate(snapshot)
                return self.importer.import_snapshot(snapshot, options, validation)
        except OperationInProgressError as e:
            result = ImportResult(success=False, message=e.message, strategy=options.strategy,
                                  dry_run=options.dry_run)
            result.stats.errors.append(e.message)
            return result
