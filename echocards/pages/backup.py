"""
Backup & Restore page: export the data set, or upload → validate → import a backup.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import streamlit as st

from echocards.services.backup.backup_service import BackupService
from echocards.services.backup.models import (
    ExportFormat,
    ExportOptions,
    ExportResult,
    ImportOptions,
    ImportResult,
    ImportStrategy,
    ValidationResult,
)
from echocards.utils.error_handler import ImportParseError
from echocards.utils.logging_config import get_logger
from echocards.utils.notifications import get_notification_manager

logger = get_logger(__name__)

PAGE_KEY = "backup_state"

FORMAT_LABELS = {
    ExportFormat.JSON: "JSON - Complete backup with all data (Recommended)",
    ExportFormat.CSV: "CSV - Cards only, for spreadsheet editing",
    ExportFormat.ANKI: "Anki - Import into Anki flashcard app",
}

STRATEGY_LABELS = {
    ImportStrategy.MERGE: "Merge - Add new items, update existing (Recommended)",
    ImportStrategy.SKIP: "Skip - Only add new items, keep existing unchanged",
    ImportStrategy.REPLACE: "Replace - Delete all existing data and replace with backup",
}


def _init_state() -> None:
    if PAGE_KEY not in st.session_state:
        st.session_state[PAGE_KEY] = {
            "file_name": None,
            "content": None,
            "validation": None,
            "import_result": None,
            "export_result": None,
        }


def _set_state(**kwargs) -> None:
    st.session_state[PAGE_KEY].update(kwargs)


def _reset_import_state() -> None:
    _set_state(file_name=None, content=None, validation=None, import_result=None)


def run_export(
    backup_service: BackupService,
    export_format: ExportFormat,
    include_preferences: bool = True,
    include_checksum: bool = True,
) -> ExportResult:
    """Export in the chosen format and report the outcome to the user."""
    options = ExportOptions(
        include_preferences=include_preferences,
        # Checksums only apply to the JSON snapshot
        include_checksum=include_checksum if export_format == ExportFormat.JSON else False,
    )
    result = backup_service.export_data(export_format, options)

    if result.success:
        get_notification_manager().success(f"Data exported successfully as {export_format.value.upper()}!")
    else:
        logger.error(f"Export failed: {result.message}")
        get_notification_manager().error(f"Failed to export data. {result.message}")
    return result


def validate_upload(backup_service: BackupService, upload: Any) -> Dict[str, Any]:
    """
    Read and validate an uploaded backup file.

    Returns:
        Dictionary with the file ``content`` (None if unreadable) and its
        ``validation`` result
    """
    try:
        content = backup_service.read_file_content(upload)
    except ImportParseError as e:
        get_notification_manager().error("Invalid file format. Please select a valid EchoCards backup file.")
        return {"content": None, "validation": ValidationResult(valid=False, errors=[e.message])}

    validation = backup_service.validate_file_content(content)

    notifications = get_notification_manager()
    if not validation.valid:
        notifications.error("File validation failed. Please check errors below.")
    elif validation.warnings:
        notifications.warning("File validated with warnings. Review before importing.")
    else:
        notifications.success("File validated successfully!")

    return {"content": content, "validation": validation}


def run_import(
    backup_service: BackupService,
    content: Optional[str],
    validation: Optional[ValidationResult],
    strategy: ImportStrategy,
    dry_run: bool = False,
    verify_checksum: bool = True,
) -> Optional[ImportResult]:
    """
    Import a validated backup.

    Returns:
        ImportResult, or None if the import was refused
    """
    if not content:
        get_notification_manager().error("Please select a file to import")
        return None

    if validation is None or not validation.valid:
        get_notification_manager().error("Cannot import invalid file. Please fix errors first.")
        return None

    options = ImportOptions(strategy=strategy, verify_checksum=verify_checksum, dry_run=dry_run)
    result = backup_service.import_from_json(content, options)

    if result.success:
        get_notification_manager().success(result.message)
    else:
        get_notification_manager().error(result.message)
    return result


def format_import_stats(result: ImportResult) -> Dict[str, Any]:
    """Rows for the import result table."""
    stats = result.stats
    return {
        "Decks imported": stats.decks_imported,
        "Cards imported": stats.cards_imported,
        "Decks skipped": stats.decks_skipped,
        "Cards skipped": stats.cards_skipped,
        "Errors": len(stats.errors),
    }


def render_validation(validation: ValidationResult) -> None:
    if validation.valid:
        st.success("Backup file is valid")
    if validation.errors:
        st.markdown("**Errors**")
        for error in validation.errors:
            st.error(error)
    if validation.warnings:
        st.markdown("**Warnings**")
        for warning in validation.warnings:
            st.warning(warning)


def render_export_tab(backup_service: BackupService) -> None:
    st.subheader("Export Format")
    export_format = st.radio(
        "Export format",
        options=list(FORMAT_LABELS),
        format_func=lambda f: FORMAT_LABELS[f],
        label_visibility="collapsed",
    )

    include_preferences = True
    include_checksum = True
    if export_format == ExportFormat.JSON:
        defaults = backup_service.default_export_options()
        st.subheader("Options")
        include_preferences = st.checkbox(
            "Include preferences (voice, conversational mode)", value=defaults.include_preferences
        )
        include_checksum = st.checkbox(
            "Include checksum for integrity verification", value=defaults.include_checksum
        )

    if st.button(f"Export as {export_format.value.upper()}", type="primary", disabled=backup_service.is_busy()):
        result = run_export(backup_service, export_format, include_preferences, include_checksum)
        _set_state(export_result=result if result.success else None)

    result: Optional[ExportResult] = st.session_state[PAGE_KEY].get("export_result")
    if result is not None:
        st.download_button(
            f"Download {result.filename}",
            data=result.content,
            file_name=result.filename,
            mime=result.mime_type,
        )

    st.info("Export your data regularly to prevent data loss. JSON format is recommended for complete backups.")


def render_import_tab(backup_service: BackupService) -> None:
    state = st.session_state[PAGE_KEY]

    st.subheader("Select File")
    upload = st.file_uploader("EchoCards backup file", type=["json"], accept_multiple_files=False)

    if upload is None:
        if state["file_name"]:
            _reset_import_state()
        return

    if upload.name != state["file_name"]:
        checked = validate_upload(backup_service, upload)
        _set_state(file_name=upload.name, import_result=None, **checked)

    validation: Optional[ValidationResult] = state["validation"]
    if validation is None:
        return

    st.subheader("Validation")
    render_validation(validation)
    if not validation.valid:
        return

    defaults = backup_service.default_import_options()
    st.subheader("Import Strategy")
    strategies = list(STRATEGY_LABELS)
    strategy = st.selectbox(
        "Import strategy",
        options=strategies,
        index=strategies.index(defaults.strategy),
        format_func=lambda s: STRATEGY_LABELS[s],
    )
    if strategy == ImportStrategy.REPLACE:
        st.warning("Replace deletes all existing decks and cards before importing.")

    verify_checksum = st.checkbox("Verify checksum", value=defaults.verify_checksum)

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Dry Run", disabled=backup_service.is_busy()):
            result = run_import(backup_service, state["content"], validation, strategy, True, verify_checksum)
            _set_state(import_result=result)
    with col2:
        if st.button("Import Data", type="primary", disabled=backup_service.is_busy()):
            result = run_import(backup_service, state["content"], validation, strategy, False, verify_checksum)
            _set_state(import_result=result)

    result: Optional[ImportResult] = state.get("import_result")
    if result is not None:
        if result.success:
            st.success(result.message)
        else:
            st.error(result.message)
        st.table(format_import_stats(result))
        for error in result.stats.errors:
            st.error(error)

        if st.button("Import Another File"):
            _reset_import_state()
            st.rerun()


def show_backup_page() -> None:
    """Main function to display the backup and restore page."""
    st.title("💾 Backup & Restore")

    if "app_state" not in st.session_state:
        st.error("Application not initialized. Please refresh the page.")
        return

    backup_service: BackupService = st.session_state.app_state.backup_service
    if not backup_service:
        st.error("Backup service not available. Please refresh the page.")
        return

    _init_state()

    export_tab, import_tab = st.tabs(["Export Data", "Import Data"])
    with export_tab:
        render_export_tab(backup_service)
    with import_tab:
        render_import_tab(backup_service)
