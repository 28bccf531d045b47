from dataclasses import dataclass
from enum import Enum


class VoiceName(Enum):
    """Prebuilt voices offered by the speech backend."""
    PUCK = "Puck"
    CHARON = "Charon"
    KORE = "Kore"
    FENRIR = "Fenrir"
    AOEDE = "Aoede"
    LEDA = "Leda"
    ORUS = "Orus"
    ZEPHYR = "Zephyr"


DEFAULT_VOICE = VoiceName.ZEPHYR


@dataclass
class Preferences:
    """User preferences stored next to the card data."""
    voice_preference: VoiceName = DEFAULT_VOICE
    conversational_mode: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.voice_preference, VoiceName):
            raise ValueError(
                f"Voice preference must be a VoiceName enum, got {type(self.voice_preference)}"
            )

        if not isinstance(self.conversational_mode, bool):
            raise ValueError("Conversational mode must be a boolean")
