from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


SNAPSHOT_VERSION = "1.0"


class ExportFormat(Enum):
    JSON = "json"
    CSV = "csv"
    ANKI = "anki"


class ImportStrategy(Enum):
    REPLACE = "replace"  # Replace all existing decks and cards
    MERGE = "merge"  # Keep both, imported records win on id collisions
    SKIP = "skip"  # Keep existing records, only add new ids


@dataclass
class ExportOptions:
    include_preferences: bool = True
    include_checksum: bool = True


@dataclass
class ImportOptions:
    strategy: ImportStrategy = ImportStrategy.MERGE
    verify_checksum: bool = True
    dry_run: bool = False


@dataclass
class ValidationResult:
    """Outcome of snapshot validation. Only errors make a snapshot invalid."""

    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"valid": self.valid, "errors": list(self.errors), "warnings": list(self.warnings)}


@dataclass
class ImportStats:
    """
    Per-collection import counters.

    ``overwritten`` counts incoming records that replaced an existing record
    with the same id (MERGE); ``ignored`` counts incoming records dropped
    because the id already existed (SKIP). Both are reported as "skipped" in
    the result payload.
    """

    decks_imported: int = 0
    cards_imported: int = 0
    decks_overwritten: int = 0
    cards_overwritten: int = 0
    decks_ignored: int = 0
    cards_ignored: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def decks_skipped(self) -> int:
        return self.decks_overwritten + self.decks_ignored

    @property
    def cards_skipped(self) -> int:
        return self.cards_overwritten + self.cards_ignored

    def to_dict(self) -> Dict[str, Any]:
        return {
            "decksImported": self.decks_imported,
            "cardsImported": self.cards_imported,
            "decksSkipped": self.decks_skipped,
            "cardsSkipped": self.cards_skipped,
            "errors": list(self.errors),
        }


@dataclass
class ImportResult:
    """Result of a snapshot import."""

    success: bool
    message: str = ""
    stats: ImportStats = field(default_factory=ImportStats)
    strategy: Optional[ImportStrategy] = None
    dry_run: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": self.success, "message": self.message, "stats": self.stats.to_dict()}

    def get_summary(self) -> str:
        parts = [
            f"Success: {self.success}",
            f"Decks imported: {self.stats.decks_imported}",
            f"Cards imported: {self.stats.cards_imported}",
            f"Decks skipped: {self.stats.decks_skipped}",
            f"Cards skipped: {self.stats.cards_skipped}",
            f"Errors: {len(self.stats.errors)}",
        ]
        return " | ".join(parts)


@dataclass
class ExportResult:
    """Result of an export: file content plus delivery metadata."""

    success: bool
    format: Optional[ExportFormat]
    content: str = ""
    filename: str = ""
    mime_type: str = ""
    message: str = ""
