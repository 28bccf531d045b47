from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class Deck:
    """
    A named collection of cards. Cards reference their deck by ``id``.
    """
    id: str
    name: str
    # Fields written by other parts of the app (description, createdAt, ...)
    # are carried through backups untouched.
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate deck data after initialization."""
        self.validate()

    def validate(self) -> None:
        """Validate deck data integrity."""
        if not self.id or not isinstance(self.id, str):
            raise ValueError("Deck ID must be a non-empty string")

        if not self.name or not isinstance(self.name, str):
            raise ValueError("Deck name must be a non-empty string")

        if not isinstance(self.extra_fields, dict):
            raise ValueError("Extra fields must be a dictionary")
