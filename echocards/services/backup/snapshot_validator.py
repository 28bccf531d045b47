"""
Structural validation of an untrusted, already JSON-parsed backup snapshot.

Checks accumulate instead of stopping at the first problem so the user sees
everything wrong with a file in one pass. Errors block the import; warnings
are advisory.
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import Any, Dict, List

from echocards.models.card import CardState
from echocards.services.backup.models import SNAPSHOT_VERSION, ValidationResult
from echocards.utils.validators import DataValidator


logger = logging.getLogger(__name__)

VALID_STATES = {state.value for state in CardState}
REQUIRED_DECK_FIELDS = ("id", "name")
REQUIRED_CARD_FIELDS = ("id", "deckId", "question", "answer")


class SnapshotValidator:
    """Validate snapshot structure, field values and deck references."""

    def validate(self, data: Any) -> ValidationResult:
        result = ValidationResult(valid=True)

        if data is None or data is False or data == "" or data == 0:
            result.add_error("No data provided")
            return result

        if not isinstance(data, dict):
            result.add_error(f"Backup data must be a JSON object, got {type(data).__name__}")
            return result

        self._check_version(data, result)

        decks = data.get("decks")
        cards = data.get("cards")

        if not isinstance(decks, list):
            result.add_error("Decks must be an array")
        else:
            self._check_decks(decks, result)

        if not isinstance(cards, list):
            result.add_error("Cards must be an array")
        else:
            self._check_cards(cards, result)

        if isinstance(decks, list) and isinstance(cards, list):
            self._check_orphans(decks, cards, result)
            self._check_duplicate_ids(decks, "deck", result)
            self._check_duplicate_ids(cards, "card", result)

        logger.debug(
            f"Snapshot validation: valid={result.valid}, "
            f"{len(result.errors)} errors, {len(result.warnings)} warnings"
        )
        return result

    def _check_version(self, data: Dict[str, Any], result: ValidationResult) -> None:
        version = data.get("version")
        if not version:
            result.add_warning("No version field found")
        elif version != SNAPSHOT_VERSION:
            result.add_warning(f"Unsupported version: {version} (expected {SNAPSHOT_VERSION})")

    def _check_required(self, item: Dict[str, Any], fields, label: str, result: ValidationResult) -> None:
        for field_name in fields:
            value = item.get(field_name)
            if not value:
                result.add_error(f"{label} missing {field_name}")
            elif not isinstance(value, str):
                result.add_error(f"{label} has non-string {field_name}: {value!r}")

    def _check_decks(self, decks: List[Any], result: ValidationResult) -> None:
        for index, deck in enumerate(decks):
            label = f"Deck at index {index}"
            if not isinstance(deck, dict):
                result.add_error(f"{label} is not an object")
                continue
            self._check_required(deck, REQUIRED_DECK_FIELDS, label, result)

    def _check_cards(self, cards: List[Any], result: ValidationResult) -> None:
        for index, card in enumerate(cards):
            label = f"Card at index {index}"
            if not isinstance(card, dict):
                result.add_error(f"{label} is not an object")
                continue

            self._check_required(card, REQUIRED_CARD_FIELDS, label, result)
            card_ref = card.get("id") or f"at index {index}"

            explanation = card.get("explanation")
            if explanation is not None and not isinstance(explanation, str):
                result.add_error(f"Card {card_ref} has non-string explanation: {explanation!r}")

            # Scheduler fields out of range are importable; the scheduler repairs them
            stability = card.get("stability")
            if not DataValidator.is_number(stability) or stability < 0:
                result.add_warning(f"Card {card_ref} has invalid stability")

            difficulty = card.get("difficulty")
            if not DataValidator.is_number(difficulty) or difficulty < 1 or difficulty > 10:
                result.add_warning(f"Card {card_ref} has invalid difficulty")

            state = card.get("state")
            if not isinstance(state, str) or state not in VALID_STATES:
                result.add_error(f"Card {card_ref} has invalid state: {state}")

            due_date = card.get("dueDate")
            if due_date and DataValidator.parse_timestamp(due_date) is None:
                result.add_error(f"Card {card_ref} has invalid dueDate: {due_date}")

    def _check_orphans(self, decks: List[Any], cards: List[Any], result: ValidationResult) -> None:
        deck_ids = {
            deck.get("id") for deck in decks if isinstance(deck, dict) and isinstance(deck.get("id"), str)
        }
        orphaned = [
            card
            for card in cards
            if isinstance(card, dict)
            and (not isinstance(card.get("deckId"), str) or card["deckId"] not in deck_ids)
        ]
        if orphaned:
            result.add_warning(f"Found {len(orphaned)} orphaned cards (no matching deck)")

    def _check_duplicate_ids(self, items: List[Any], kind: str, result: ValidationResult) -> None:
        counts = Counter(
            item.get("id")
            for item in items
            if isinstance(item, dict) and isinstance(item.get("id"), str) and item.get("id")
        )
        duplicates = sum(count - 1 for count in counts.values() if count > 1)
        if duplicates:
            result.add_warning(f"Found {duplicates} duplicate {kind} ids in backup")
