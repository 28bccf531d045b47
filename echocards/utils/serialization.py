"""
Data serialization and deserialization utilities for JSON persistence.

Records use the camelCase field names of the EchoCards storage and backup
format (``deckId``, ``dueDate``, ...), so the same dictionaries are written
to the local store and to exported snapshots.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List

from echocards.models.card import Card, CardState
from echocards.models.deck import Deck
from echocards.models.preferences import DEFAULT_VOICE, Preferences, VoiceName
from echocards.utils.validators import DataValidator


DECK_FIELDS = ("id", "name")
CARD_FIELDS = (
    "id",
    "deckId",
    "question",
    "answer",
    "explanation",
    "dueDate",
    "stability",
    "difficulty",
    "lapses",
    "reps",
    "state",
)


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for application data types."""

    def default(self, obj):
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


def format_timestamp(value: Any) -> Any:
    """Normalize a timestamp to an ISO-8601 string, leaving other values as they are."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class DataSerializer:
    """Utility class for serializing and deserializing application data."""

    @staticmethod
    def serialize_deck(deck: Deck) -> Dict[str, Any]:
        """Serialize a Deck object to dictionary."""
        data = {"id": deck.id, "name": deck.name}
        for key, value in deck.extra_fields.items():
            data.setdefault(key, format_timestamp(value))
        return data

    @staticmethod
    def deserialize_deck(data: Dict[str, Any]) -> Deck:
        """Deserialize dictionary to Deck object."""
        DataValidator.validate_dict(data, "deck")
        return Deck(
            id=data["id"],
            name=data["name"],
            extra_fields={k: v for k, v in data.items() if k not in DECK_FIELDS},
        )

    @staticmethod
    def serialize_card(card: Card) -> Dict[str, Any]:
        """Serialize a Card object to dictionary."""
        data: Dict[str, Any] = {
            "id": card.id,
            "deckId": card.deck_id,
            "question": card.question,
            "answer": card.answer,
        }
        if card.explanation is not None:
            data["explanation"] = card.explanation
        data.update(
            {
                "dueDate": format_timestamp(card.due_date),
                "stability": card.stability,
                "difficulty": card.difficulty,
                "lapses": card.lapses,
                "reps": card.reps,
                "state": card.state.value,
            }
        )
        for key, value in card.extra_fields.items():
            data.setdefault(key, format_timestamp(value))
        return data

    @staticmethod
    def deserialize_card(data: Dict[str, Any]) -> Card:
        """
        Deserialize dictionary to Card object.

        ``dueDate`` is parsed into a datetime whatever its stored form;
        scheduler fields are taken as they are.
        """
        DataValidator.validate_dict(data, "card")
        raw_due = data.get("dueDate")
        due_date = None
        if raw_due not in (None, ""):
            due_date = DataValidator.validate_datetime(raw_due, "dueDate")

        return Card(
            id=data["id"],
            deck_id=data["deckId"],
            question=data["question"],
            answer=data["answer"],
            explanation=data.get("explanation"),
            due_date=due_date,
            stability=data.get("stability", 0.0),
            difficulty=data.get("difficulty", 5.0),
            lapses=data.get("lapses", 0),
            reps=data.get("reps", 0),
            state=DataValidator.validate_enum(data.get("state", CardState.NEW.value), CardState, "state"),
            extra_fields={k: v for k, v in data.items() if k not in CARD_FIELDS},
        )

    @staticmethod
    def serialize_preferences(preferences: Preferences) -> Dict[str, Any]:
        """Serialize Preferences to the snapshot ``preferences`` object."""
        return {
            "voicePreference": preferences.voice_preference.value,
            "conversationalMode": preferences.conversational_mode,
        }

    @staticmethod
    def deserialize_preferences(data: Dict[str, Any]) -> Preferences:
        """
        Deserialize a ``preferences`` object.

        Unknown voices fall back to the default voice; conversational mode
        accepts booleans and the ``"true"``/``"false"`` strings the browser
        store writes.
        """
        DataValidator.validate_dict(data, "preferences")
        try:
            voice = VoiceName(data.get("voicePreference"))
        except ValueError:
            voice = DEFAULT_VOICE

        mode = data.get("conversationalMode", False)
        if isinstance(mode, str):
            mode = mode.strip().lower() == "true"

        return Preferences(voice_preference=voice, conversational_mode=bool(mode))

    @staticmethod
    def serialize_decks_list(decks: List[Deck]) -> List[Dict[str, Any]]:
        """Serialize a list of Deck objects."""
        return [DataSerializer.serialize_deck(deck) for deck in decks]

    @staticmethod
    def deserialize_decks_list(data: List[Dict[str, Any]]) -> List[Deck]:
        """Deserialize a list of dictionaries to Deck objects."""
        return [DataSerializer.deserialize_deck(deck_data) for deck_data in data]

    @staticmethod
    def serialize_cards_list(cards: List[Card]) -> List[Dict[str, Any]]:
        """Serialize a list of Card objects."""
        return [DataSerializer.serialize_card(card) for card in cards]

    @staticmethod
    def deserialize_cards_list(data: List[Dict[str, Any]]) -> List[Card]:
        """Deserialize a list of dictionaries to Card objects."""
        return [DataSerializer.deserialize_card(card_data) for card_data in data]

    @staticmethod
    def to_json(obj: Any, indent: int = 2) -> str:
        """Convert object to JSON string using custom encoder."""
        return json.dumps(obj, cls=JSONEncoder, indent=indent, ensure_ascii=False)

    @staticmethod
    def from_json(json_str: str) -> Any:
        """Parse JSON string to Python object."""
        return json.loads(json_str)
