"""
Export of the local data set: full JSON snapshot, flat CSV and Anki TSV.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import pandas as pd

from echocards.models.card import Card
from echocards.services.backup.checksum import canonical_payload, compute_checksum
from echocards.services.backup.models import SNAPSHOT_VERSION, ExportFormat, ExportOptions
from echocards.services.storage.base import StorageBackend
from echocards.utils.error_handler import ExportError
from echocards.utils.serialization import DataSerializer, format_timestamp
from echocards.utils.validators import DataValidator


logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "Deck Name",
    "Question",
    "Answer",
    "Explanation",
    "Due Date",
    "Stability",
    "Difficulty",
    "Lapses",
    "Reps",
    "State",
]
ANKI_COLUMNS = ["Question", "Answer", "Explanation", "Tags"]

UNKNOWN_DECK_CSV = "Unknown Deck"
UNKNOWN_DECK_ANKI = "Unknown"
ANKI_APP_TAG = "EchoCards"

_FILENAME_TEMPLATES = {
    ExportFormat.JSON: "echocards-backup-{day}.json",
    ExportFormat.CSV: "echocards-export-{day}.csv",
    ExportFormat.ANKI: "echocards-anki-{day}.txt",
}
_MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.ANKI: "text/plain",
}


def get_suggested_filename(export_format: ExportFormat, day: Optional[date] = None) -> str:
    """Date-stamped file name for an export, e.g. ``echocards-backup-2024-05-01.json``."""
    day = day or date.today()
    return _FILENAME_TEMPLATES[export_format].format(day=day.isoformat())


def get_mime_type(export_format: ExportFormat) -> str:
    return _MIME_TYPES.get(export_format, "text/plain")


def _fixed2(value: Any) -> str:
    return f"{value:.2f}" if DataValidator.is_number(value) else ""


def _number_text(value: Any) -> str:
    return str(value) if DataValidator.is_number(value) else ""


def _escape_tsv(value: Optional[str]) -> str:
    """Make a value safe for a tab-separated line. No quoting is applied."""
    if not value:
        return ""
    return (
        str(value)
        .replace("\t", "    ")
        .replace("\r\n", " ")
        .replace("\r", " ")
        .replace("\n", " ")
        .strip()
    )


class SnapshotExporter:
    """Formats the persisted data set. Only storage read failures raise."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    # ------------------------------------------------------------------ JSON
    def build_snapshot(
        self, options: Optional[ExportOptions] = None, export_date: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Build the snapshot dictionary for a JSON export.

        Timestamps are normalized to ISO-8601 strings. The checksum is computed
        over the serialized ``decks``/``cards``/``studyProgress`` and left out
        if it cannot be computed.

        Raises:
            ExportError: If the store cannot be read
        """
        options = options or ExportOptions()

        try:
            decks = self.storage.get_decks()
            cards = self.storage.get_cards()
            study_progress = self.storage.get_study_progress()
            preferences = self.storage.get_preferences() if options.include_preferences else None
        except Exception as e:
            logger.error(f"Error reading data for JSON export: {e}")
            raise ExportError(f"Failed to export data to JSON: {e}", error_code="EXPORT_READ_FAILED") from e

        export_date = export_date or datetime.now(timezone.utc)
        snapshot: Dict[str, Any] = {
            "version": SNAPSHOT_VERSION,
            "exportDate": format_timestamp(export_date),
            "decks": DataSerializer.serialize_decks_list(decks),
            "cards": DataSerializer.serialize_cards_list(cards),
            "studyProgress": study_progress,
        }
        if preferences is not None:
            snapshot["preferences"] = DataSerializer.serialize_preferences(preferences)

        if options.include_checksum:
            checksum = compute_checksum(
                canonical_payload(snapshot["decks"], snapshot["cards"], snapshot["studyProgress"])
            )
            if checksum:
                snapshot["checksum"] = checksum
            else:
                logger.warning("Checksum could not be computed; exporting without it")

        logger.info(f"Built snapshot with {len(decks)} decks and {len(cards)} cards")
        return snapshot

    def to_json(self, options: Optional[ExportOptions] = None, export_date: Optional[datetime] = None) -> str:
        """Pretty-printed (2-space) JSON snapshot."""
        return DataSerializer.to_json(self.build_snapshot(options, export_date), indent=2)

    # ------------------------------------------------------------------- CSV
    def to_csv(self) -> str:
        """
        One row per card with the deck name resolved. Values containing commas,
        quotes or newlines are quoted with inner quotes doubled.

        Raises:
            ExportError: If the store cannot be read
        """
        deck_names, cards = self._read_cards_with_deck_names("CSV")

        rows: List[List[str]] = []
        for card in cards:
            rows.append(
                [
                    deck_names.get(card.deck_id, UNKNOWN_DECK_CSV),
                    card.question,
                    card.answer,
                    card.explanation or "",
                    format_timestamp(card.due_date) or "",
                    _fixed2(card.stability),
                    _fixed2(card.difficulty),
                    _number_text(card.lapses),
                    _number_text(card.reps),
                    card.state.value,
                ]
            )

        df = pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=str)
        return df.to_csv(index=False, lineterminator="\n")

    # ------------------------------------------------------------------ Anki
    def to_anki(self) -> str:
        """
        Anki-importable TSV: question, answer, explanation, tags.

        Raises:
            ExportError: If the store cannot be read
        """
        deck_names, cards = self._read_cards_with_deck_names("Anki")

        lines = ["\t".join(ANKI_COLUMNS)]
        for card in cards:
            deck_name = deck_names.get(card.deck_id, UNKNOWN_DECK_ANKI)
            lines.append(
                "\t".join(
                    [
                        _escape_tsv(card.question),
                        _escape_tsv(card.answer),
                        _escape_tsv(card.explanation),
                        _escape_tsv(f"{ANKI_APP_TAG} {deck_name}"),
                    ]
                )
            )
        return "\n".join(lines) + "\n"

    def export(self, export_format: ExportFormat, options: Optional[ExportOptions] = None) -> str:
        if export_format == ExportFormat.JSON:
            return self.to_json(options)
        if export_format == ExportFormat.CSV:
            return self.to_csv()
        if export_format == ExportFormat.ANKI:
            return self.to_anki()
        raise ExportError(f"Unsupported export format: {export_format}", error_code="UNSUPPORTED_FORMAT")

    def _read_cards_with_deck_names(self, label: str):
        try:
            decks = self.storage.get_decks()
            cards: List[Card] = self.storage.get_cards()
        except Exception as e:
            logger.error(f"Error reading data for {label} export: {e}")
            raise ExportError(
                f"Failed to export data to {label}: {e}", error_code="EXPORT_READ_FAILED"
            ) from e

        return {deck.id: deck.name for deck in decks}, cards
