from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class CardState(Enum):
    NEW = "NEW"
    LEARNING = "LEARNING"
    REVIEW = "REVIEW"
    RELEARNING = "RELEARNING"


@dataclass
class Card:
    """
    Flashcard with the scheduling state kept by the spaced-repetition scheduler.

    ``stability``, ``difficulty``, ``lapses``, ``reps`` and ``state`` are owned by
    the scheduler; backups store them as found and never recompute them. Only
    the fields needed to identify and show a card are enforced here, range
    problems in the scheduler fields are reported as validation warnings
    instead.
    """
    id: str
    deck_id: str
    question: str
    answer: str
    explanation: Optional[str] = None
    due_date: Optional[datetime] = None
    stability: float = 0.0
    difficulty: float = 5.0
    lapses: int = 0
    reps: int = 0
    state: CardState = CardState.NEW
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate card data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate card data integrity."""
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Card ID must be a non-empty string")

        if not self.deck_id or not isinstance(self.deck_id, str):
            raise ValueError("Card deck ID must be a non-empty string")

        if not self.question or not isinstance(self.question, str):
            raise ValueError("Question must be a non-empty string")

        if not self.answer or not isinstance(self.answer, str):
            raise ValueError("Answer must be a non-empty string")

        if self.explanation is not None and not isinstance(self.explanation, str):
            raise ValueError("Explanation must be a string when provided")

        if self.due_date is not None and not isinstance(self.due_date, datetime):
            raise ValueError("Due date must be a datetime object when provided")

        if not isinstance(self.state, CardState):
            raise ValueError(f"State must be a CardState enum, got {type(self.state)}")

        if not isinstance(self.extra_fields, dict):
            raise ValueError("Extra fields must be a dictionary")

