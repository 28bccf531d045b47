from .base import (
    ALL_KEYS,
    CARDS_KEY,
    CONVERSATIONAL_MODE_KEY,
    DECKS_KEY,
    STUDY_PROGRESS_KEY,
    VOICE_PREFERENCE_KEY,
    StorageBackend,
)
from .json_store import JSONFileStorage
from .memory_store import InMemoryStorage

__all__ = [
    "ALL_KEYS",
    "CARDS_KEY",
    "CONVERSATIONAL_MODE_KEY",
    "DECKS_KEY",
    "STUDY_PROGRESS_KEY",
    "VOICE_PREFERENCE_KEY",
    "StorageBackend",
    "JSONFileStorage",
    "InMemoryStorage",
]
