"""
Reconcile a validated backup snapshot with the persisted data set.

All reconciled collections are computed before anything is written, then
committed to the store as one unit.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple, TypeVar

from echocards.services.backup.checksum import verify_snapshot_checksum
from echocards.services.backup.models import (
    ImportOptions,
    ImportResult,
    ImportStats,
    ImportStrategy,
    ValidationResult,
)
from echocards.services.backup.snapshot_validator import (
    REQUIRED_CARD_FIELDS,
    REQUIRED_DECK_FIELDS,
    SnapshotValidator,
)
from echocards.services.storage.base import (
    CARDS_KEY,
    DECKS_KEY,
    STUDY_PROGRESS_KEY,
    StorageBackend,
)
from echocards.utils.error_handler import ChecksumMismatchError, DataValidationError, EchoCardsError
from echocards.utils.serialization import DataSerializer
from echocards.utils.validators import ValidationError


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _record_id(item: Any) -> Optional[str]:
    record_id = item.get("id") if isinstance(item, dict) else getattr(item, "id", None)
    return record_id if isinstance(record_id, str) and record_id else None


def merge_by_id(existing: List[T], incoming: List[T], overwrite: bool) -> Tuple[List[T], int, int]:
    """
    Union two collections keyed by ``id``.

    Records may be model objects or raw dictionaries. Existing records without
    a usable id are kept where they are and never collide.

    New ids are appended in incoming order. On collision the incoming record
    replaces the existing one in place when ``overwrite`` is set, and is
    dropped otherwise. Duplicate ids inside ``incoming`` collide with their
    earlier occurrence the same way.

    Returns:
        (merged records, number added, number collided)
    """
    merged = list(existing)
    positions: Dict[str, int] = {}
    for i, item in enumerate(merged):
        record_id = _record_id(item)
        if record_id is not None:
            positions.setdefault(record_id, i)
    added = 0
    collided = 0

    for item in incoming:
        record_id = _record_id(item)
        if record_id in positions:
            collided += 1
            if overwrite:
                merged[positions[record_id]] = item
        else:
            if record_id is not None:
                positions[record_id] = len(merged)
            merged.append(item)
            added += 1

    return merged, added, collided


def _has_required(item: Any, fields) -> bool:
    return isinstance(item, dict) and all(item.get(f) for f in fields)


class SnapshotImporter:
    """Apply a snapshot to the store with the REPLACE, MERGE or SKIP strategy."""

    def __init__(self, storage: StorageBackend, validator: Optional[SnapshotValidator] = None):
        self.storage = storage
        self.validator = validator or SnapshotValidator()

    def import_snapshot(
        self,
        snapshot: Dict[str, Any],
        options: Optional[ImportOptions] = None,
        validation: Optional[ValidationResult] = None,
    ) -> ImportResult:
        """
        Import a parsed snapshot.

        Args:
            snapshot: Parsed snapshot dictionary
            options: Strategy, checksum verification and dry-run flags
            validation: Result of an earlier validation of the same snapshot;
                the snapshot is validated here when omitted

        Returns:
            ImportResult; failures are reported in the result, never raised
        """
        options = options or ImportOptions()
        result = ImportResult(success=False, strategy=options.strategy, dry_run=options.dry_run)

        if validation is None:
            validation = self.validator.validate(snapshot)
        result.warnings.extend(validation.warnings)
        if not validation.valid:
            result.stats.errors = list(validation.errors)
            result.message = f"Validation failed: {', '.join(validation.errors)}"
            logger.warning(result.message)
            return result

        try:
            if options.verify_checksum and verify_snapshot_checksum(snapshot) is False:
                raise ChecksumMismatchError()

            if options.dry_run:
                result.success = True
                result.message = "Validation successful (dry run)"
                result.stats.decks_imported = len(snapshot["decks"])
                result.stats.cards_imported = len(snapshot["cards"])
                logger.info(f"Dry run: {result.get_summary()}")
                return result

            if options.strategy == ImportStrategy.REPLACE:
                changes = self._replace(snapshot, result)
            elif options.strategy == ImportStrategy.MERGE:
                changes = self._merge(snapshot, result.stats)
            elif options.strategy == ImportStrategy.SKIP:
                changes = self._skip(snapshot, result.stats)
            else:
                raise ValueError(f"Unsupported import strategy: {options.strategy}")

            preferences = snapshot.get("preferences")
            if isinstance(preferences, dict):
                changes.update(
                    self.storage.preference_changes(DataSerializer.deserialize_preferences(preferences))
                )

            self.storage.commit(changes)

            result.success = True
            result.message = (
                f"Successfully imported {result.stats.decks_imported} decks "
                f"and {result.stats.cards_imported} cards"
            )
            logger.info(f"Import ({options.strategy.value}) finished: {result.get_summary()}")

        except Exception as e:
            result.success = False
            result.message = e.message if isinstance(e, EchoCardsError) else (str(e) or "Unknown import error")
            result.stats.errors.append(result.message)
            logger.error(f"Import ({options.strategy.value}) failed: {result.message}")

        return result

    def _incoming(self, snapshot: Dict[str, Any], filter_required: bool):
        """Incoming decks and cards as storage records, with ``dueDate`` normalized."""
        raw_decks = snapshot.get("decks") or []
        raw_cards = snapshot.get("cards") or []
        if filter_required:
            raw_decks = [d for d in raw_decks if _has_required(d, REQUIRED_DECK_FIELDS)]
            raw_cards = [c for c in raw_cards if _has_required(c, REQUIRED_CARD_FIELDS)]

        # Card deserialization parses dueDate into a datetime
        try:
            decks = DataSerializer.deserialize_decks_list(raw_decks)
            cards = DataSerializer.deserialize_cards_list(raw_cards)
        except (ValidationError, ValueError) as e:
            raise DataValidationError(f"Invalid record in backup: {e}", "INVALID_RECORD") from e
        return DataSerializer.serialize_decks_list(decks), DataSerializer.serialize_cards_list(cards)

    def _replace(self, snapshot: Dict[str, Any], result: ImportResult) -> Dict[str, Any]:
        try:
            incoming_decks, incoming_cards = self._incoming(snapshot, filter_required=True)
            decks, _, duplicate_decks = merge_by_id([], incoming_decks, overwrite=True)
            cards, _, duplicate_cards = merge_by_id([], incoming_cards, overwrite=True)
        except Exception as e:
            raise RuntimeError(f"Failed to replace data: {e}") from e

        if duplicate_decks or duplicate_cards:
            result.warnings.append(
                f"Collapsed {duplicate_decks} duplicate decks and {duplicate_cards} duplicate cards"
            )

        result.stats.decks_imported = len(decks)
        result.stats.cards_imported = len(cards)

        return {
            DECKS_KEY: decks,
            CARDS_KEY: cards,
            # Replace discards existing progress even when the backup has none
            STUDY_PROGRESS_KEY: snapshot.get("studyProgress"),
        }

    # Existing records are merged as stored, so ones this version cannot read survive
    def _merge(self, snapshot: Dict[str, Any], stats: ImportStats) -> Dict[str, Any]:
        try:
            incoming_decks, incoming_cards = self._incoming(snapshot, filter_required=False)
            decks, stats.decks_imported, stats.decks_overwritten = merge_by_id(
                self.storage.read_records(DECKS_KEY), incoming_decks, overwrite=True
            )
            cards, stats.cards_imported, stats.cards_overwritten = merge_by_id(
                self.storage.read_records(CARDS_KEY), incoming_cards, overwrite=True
            )
        except Exception as e:
            raise RuntimeError(f"Failed to merge data: {e}") from e

        changes = {DECKS_KEY: decks, CARDS_KEY: cards}
        if snapshot.get("studyProgress") is not None:
            changes[STUDY_PROGRESS_KEY] = snapshot["studyProgress"]
        return changes

    def _skip(self, snapshot: Dict[str, Any], stats: ImportStats) -> Dict[str, Any]:
        try:
            incoming_decks, incoming_cards = self._incoming(snapshot, filter_required=False)
            decks, stats.decks_imported, stats.decks_ignored = merge_by_id(
                self.storage.read_records(DECKS_KEY), incoming_decks, overwrite=False
            )
            cards, stats.cards_imported, stats.cards_ignored = merge_by_id(
                self.storage.read_records(CARDS_KEY), incoming_cards, overwrite=False
            )
        except Exception as e:
            raise RuntimeError(f"Failed to skip-import data: {e}") from e

        # Existing study progress is kept
        return {DECKS_KEY: decks, CARDS_KEY: cards}
