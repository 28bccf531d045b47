"""
Data models for the EchoCards application.
"""

from .card import Card, CardState
from .deck import Deck
from .preferences import DEFAULT_VOICE, Preferences, VoiceName

__all__ = [
    "Card",
    "CardState",
    "Deck",
    "Preferences",
    "VoiceName",
    "DEFAULT_VOICE",
]
