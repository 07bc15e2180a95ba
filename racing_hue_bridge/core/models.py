"""Domain models for lighting commands."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

ALL_LIGHTS = "ALL"
DRONE_LIGHT = "Drone"


class CommandValidationError(ValueError):
    """Raised when a lighting command cannot be constructed."""


class LightAction(str, Enum):
    ON = "ON"
    OFF = "OFF"
    BLINK = "BLINK"
    BLINKONCE = "BLINKONCE"


class LightColor(str, Enum):
    GREEN = "GREEN"
    RED = "RED"
    BLUE = "BLUE"
    YELLOW = "YELLOW"


@dataclass(frozen=True, slots=True)
class Command:
    """A single instruction for the lighting service.

    ``color`` is never set for ``OFF``. For the other actions it is optional;
    the lighting service leaves the current color unchanged when it is absent.
    """

    target: str
    action: LightAction
    color: Optional[LightColor] = None

    def __post_init__(self) -> None:
        if not isinstance(self.target, str) or not self.target:
            raise CommandValidationError("Command target must be a non-empty string")
        if not isinstance(self.action, LightAction):
            raise CommandValidationError(f"Unsupported light action: {self.action!r}")
        if self.color is not None and not isinstance(self.color, LightColor):
            raise CommandValidationError(f"Unsupported light color: {self.color!r}")
        if self.action is LightAction.OFF and self.color is not None:
            raise CommandValidationError("OFF commands cannot carry a color")

    @classmethod
    def build(
        cls, target: str, action: str, color: Optional[str] = None
    ) -> "Command":
        """Create a command from raw strings, rejecting unknown names."""

        try:
            parsed_action = LightAction[action]
        except (KeyError, TypeError) as exc:
            raise CommandValidationError(f"Unsupported light action: {action!r}") from exc

        parsed_color: Optional[LightColor] = None
        if color is not None:
            try:
                parsed_color = LightColor[color]
            except (KeyError, TypeError) as exc:
                raise CommandValidationError(
                    f"Unsupported light color: {color!r}"
                ) from exc

        return cls(target=target, action=parsed_action, color=parsed_color)

    def path_segments(self) -> Tuple[str, ...]:
        if self.color is None:
            return (self.target, self.action.value)
        return (self.target, self.action.value, self.color.value)

    def __str__(self) -> str:
        return "/".join(self.path_segments())
