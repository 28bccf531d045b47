"""
Key-value storage for decks, cards, study progress and preferences.

Each logical collection lives under a fixed key and is always read and written
as a whole. Backends only implement raw key access; typed accessors and the
multi-key commit are shared.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from echocards.models.card import Card
from echocards.models.deck import Deck
from echocards.models.preferences import Preferences
from echocards.utils.error_handler import DataPersistenceError
from echocards.utils.serialization import DataSerializer


logger = logging.getLogger(__name__)

DECKS_KEY = "decks"
CARDS_KEY = "cards"
STUDY_PROGRESS_KEY = "studyProgress"
VOICE_PREFERENCE_KEY = "voicePreference"
CONVERSATIONAL_MODE_KEY = "conversationalMode"

ALL_KEYS = (
    DECKS_KEY,
    CARDS_KEY,
    STUDY_PROGRESS_KEY,
    VOICE_PREFERENCE_KEY,
    CONVERSATIONAL_MODE_KEY,
)


class StorageBackend(ABC):
    """Abstract whole-collection store."""

    @abstractmethod
    def read_key(self, key: str) -> Any:
        """Return the JSON value stored under ``key``, or None if absent."""

    @abstractmethod
    def write_key(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``."""

    @abstractmethod
    def remove_key(self, key: str) -> None:
        """Delete ``key``; deleting an absent key is not an error."""

    # ------------------------------------------------------------------ reads
    def get_decks(self) -> List[Deck]:
        """Load all decks. Records that cannot be read are logged and skipped."""
        return self._load_records(DECKS_KEY, DataSerializer.deserialize_deck)

    def get_cards(self) -> List[Card]:
        """Load all cards. Records that cannot be read are logged and skipped."""
        return self._load_records(CARDS_KEY, DataSerializer.deserialize_card)

    def get_study_progress(self) -> Any:
        """Study progress as stored; the scheduler owns its shape."""
        return self.read_key(STUDY_PROGRESS_KEY)

    def get_preferences(self) -> Preferences:
        return DataSerializer.deserialize_preferences(
            {
                "voicePreference": self.read_key(VOICE_PREFERENCE_KEY),
                "conversationalMode": self.read_key(CONVERSATIONAL_MODE_KEY) or False,
            }
        )

    def read_records(self, key: str) -> list:
        """
        Stored records under ``key`` exactly as written, readable or not.

        Raises:
            DataPersistenceError: If the stored value is not a list
        """
        raw = self.read_key(key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            raise DataPersistenceError(f"Stored '{key}' must be a list, got {type(raw).__name__}")
        return raw

    def _load_records(self, key: str, deserialize) -> list:
        records = []
        for i, data in enumerate(self.read_records(key)):
            try:
                records.append(deserialize(data))
            except Exception as e:
                logger.error(f"Error loading {key} record at index {i}: {e}")
                # Keep the rest of the collection usable
                continue
        return records

    # ----------------------------------------------------------------- writes
    def set_decks(self, decks: List[Deck]) -> None:
        self.commit({DECKS_KEY: DataSerializer.serialize_decks_list(decks)})

    def set_cards(self, cards: List[Card]) -> None:
        self.commit({CARDS_KEY: DataSerializer.serialize_cards_list(cards)})

    def set_study_progress(self, progress: Any) -> None:
        self.commit({STUDY_PROGRESS_KEY: progress})

    def set_preferences(self, preferences: Preferences) -> None:
        self.commit(self.preference_changes(preferences))

    @staticmethod
    def preference_changes(preferences: Preferences) -> Dict[str, Any]:
        """Map preferences onto their two standalone storage keys."""
        data = DataSerializer.serialize_preferences(preferences)
        return {
            VOICE_PREFERENCE_KEY: data["voicePreference"],
            CONVERSATIONAL_MODE_KEY: data["conversationalMode"],
        }

    def commit(self, changes: Dict[str, Any]) -> None:
        """
        Write several keys as one unit.

        A value of None removes the key. Keys are written in the order given;
        if any write fails, keys already written are restored to their
        previous values before the error is raised.

        Raises:
            DataPersistenceError: If a write fails
        """
        previous = {key: self.read_key(key) for key in changes}
        written: List[str] = []

        try:
            for key, value in changes.items():
                if value is None:
                    self.remove_key(key)
                else:
                    self.write_key(key, value)
                written.append(key)
        except Exception as e:
            logger.error(f"Commit failed after writing {written or 'nothing'}: {e}")
            self._rollback(previous, written)
            raise DataPersistenceError(
                f"Failed to write {', '.join(changes)}: {e}",
                error_code="COMMIT_FAILED",
            ) from e

        logger.debug(f"Committed keys: {', '.join(changes)}")

    def _rollback(self, previous: Dict[str, Any], written: List[str]) -> None:
        for key in reversed(written):
            try:
                if previous[key] is None:
                    self.remove_key(key)
                else:
                    self.write_key(key, previous[key])
            except Exception as e:
                logger.error(f"Could not restore '{key}' after failed commit: {e}")
