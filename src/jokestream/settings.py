"""User-facing filter settings backed by the layered Config."""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jokestream.config import Config


class FilterStrength(str, Enum):
    """Filter sensitivity levels.

    Stored and surfaced to callers, but matching does not vary by strength yet.
    """

    MINIMAL = "minimal"
    MODERATE = "moderate"
    STRICT = "strict"


@dataclass
class FilterSettings:
    """Snapshot of the [filter] configuration section."""

    enabled: bool = True
    strength: FilterStrength = FilterStrength.STRICT
    custom_blocklist: list[str] = field(default_factory=list)

    @classmethod
    def from_config(cls, config: "Config") -> "FilterSettings":
        """Read settings from [filter]; an unknown strength raises ValueError."""
        return cls(
            enabled=bool(config.get("filter", "enabled", default=True)),
            strength=FilterStrength(config.get("filter", "strength", default="strict")),
            custom_blocklist=list(config.get("filter", "custom_blocklist", default=[])),
        )


class SettingsStore:
    """Settings actions that persist through Config.set()."""

    def __init__(self, config: "Config"):
        self.config = config

    @property
    def settings(self) -> FilterSettings:
        return FilterSettings.from_config(self.config)

    def toggle_filter(self) -> bool:
        """Flip the filter on or off and return the new state."""
        enabled = not self.settings.enabled
        self.config.set("filter", "enabled", value=enabled)
        return enabled

    def set_strength(self, strength: FilterStrength | str) -> FilterStrength:
        strength = FilterStrength(strength)
        self.config.set("filter", "strength", value=strength.value)
        return strength

    def add_to_blocklist(self, word: str) -> list[str]:
        """Append a word to the custom blocklist (duplicates are kept out).

        Raises:
            ValueError: If the word is blank or contains whitespace
        """
        word = word.strip()
        if not word:
            raise ValueError("Blocklist word cannot be empty")
        if any(ch.isspace() for ch in word):
            raise ValueError(f"Blocklist entries must be single words, got {word!r}")

        blocklist = self.settings.custom_blocklist
        if word not in blocklist:
            blocklist.append(word)
            self.config.set("filter", "custom_blocklist", value=blocklist)
        return blocklist

    def remove_from_blocklist(self, word: str) -> list[str]:
        blocklist = [w for w in self.settings.custom_blocklist if w != word]
        self.config.set("filter", "custom_blocklist", value=blocklist)
        return blocklist
