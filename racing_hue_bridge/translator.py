"""Translation of race events into lighting commands.

Each subscribed event name owns exactly one rule. A rule looks at a single
record of the event payload and returns the command to send, or ``None`` when
the record does not qualify. Adding an event type means registering a rule;
transport and dispatch code never branch on event names.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .core.models import ALL_LIGHTS, DRONE_LIGHT, Command, LightAction, LightColor

LOGGER = logging.getLogger(__name__)

EventRecord = Mapping[str, Any]
Rule = Callable[[EventRecord], Optional[Command]]


class UnknownEventError(KeyError):
    """Raised when translating an event name that has no rule."""


DRONE_STATUS_COMMANDS: Dict[str, Command] = {
    "GOING": Command(DRONE_LIGHT, LightAction.BLINK, LightColor.GREEN),
    "TAKING PICTURE": Command(DRONE_LIGHT, LightAction.BLINKONCE, LightColor.BLUE),
    "RETURNING": Command(DRONE_LIGHT, LightAction.BLINK, LightColor.GREEN),
    "LANDING": Command(DRONE_LIGHT, LightAction.BLINK, LightColor.GREEN),
    "DOWNLOADING": Command(DRONE_LIGHT, LightAction.ON, LightColor.GREEN),
    "LANDED": Command(DRONE_LIGHT, LightAction.OFF),
}


def car_light_rule(action: LightAction, color: Optional[LightColor] = None) -> Rule:
    """Build a rule that targets the light named after the record's car."""

    def rule(record: EventRecord) -> Optional[Command]:
        carname = record.get("data_carname")
        if not carname or not isinstance(carname, str):
            return None
        return Command(carname, action, color)

    return rule


def race_rule(record: EventRecord) -> Optional[Command]:
    if record.get("raceStatus") == "STOPPED":
        return Command(ALL_LIGHTS, LightAction.OFF)
    return None


def drone_rule(record: EventRecord) -> Optional[Command]:
    status = record.get("status")
    if not isinstance(status, str):
        return None
    return DRONE_STATUS_COMMANDS.get(status)


def default_rules() -> Dict[str, Rule]:
    return {
        "speed": car_light_rule(LightAction.ON, LightColor.GREEN),
        "highspeed": car_light_rule(LightAction.BLINK, LightColor.YELLOW),
        "regularspeed": car_light_rule(LightAction.ON, LightColor.GREEN),
        "lap": car_light_rule(LightAction.BLINKONCE, LightColor.GREEN),
        "offtrack": car_light_rule(LightAction.BLINK, LightColor.RED),
        "race": race_rule,
        "drone": drone_rule,
    }


def extract_records(message: Any) -> List[EventRecord]:
    """Unwrap a transport message into the list of event records.

    Messages are arrays whose elements carry the record under
    ``payload.data``. Bare mappings are accepted as records; any other
    element is skipped.
    """

    if isinstance(message, Mapping):
        message = [message]
    elif not isinstance(message, (list, tuple)):
        LOGGER.debug("Ignoring non-array event message: %r", message)
        return []

    records: List[EventRecord] = []
    for item in message:
        if not isinstance(item, Mapping):
            continue
        payload = item.get("payload")
        if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
            records.append(payload["data"])
        else:
            records.append(item)
    return records


class EventTranslator:
    """Maps event names and records onto lighting commands."""

    def __init__(self, rules: Optional[Mapping[str, Rule]] = None) -> None:
        self._rules: Dict[str, Rule] = dict(default_rules() if rules is None else rules)

    @property
    def event_names(self) -> List[str]:
        return list(self._rules)

    def handles(self, event_name: str) -> bool:
        return event_name in self._rules

    def register(self, event_name: str, rule: Rule) -> None:
        if event_name in self._rules:
            LOGGER.debug("Replacing translation rule for %s", event_name)
        self._rules[event_name] = rule

    def translate(self, event_name: str, records: Iterable[EventRecord]) -> List[Command]:
        try:
            rule = self._rules[event_name]
        except KeyError as exc:
            raise UnknownEventError(event_name) from exc

        commands: List[Command] = []
        for record in records:
            command = rule(record)
            if command is None:
                LOGGER.debug("No command for %s record: %r", event_name, record)
                continue
            commands.append(command)
        return commands


_DEFAULT_TRANSLATOR = EventTranslator()


def translate(event_name: str, records: Iterable[EventRecord]) -> List[Command]:
    """Translate using the default rule table."""

    return _DEFAULT_TRANSLATOR.translate(event_name, records)
