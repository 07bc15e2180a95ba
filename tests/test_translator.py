"""Tests for the event-to-command rule table."""

import pytest

from racing_hue_bridge.core.models import Command, LightAction, LightColor
from racing_hue_bridge.translator import (
    EventTranslator,
    UnknownEventError,
    car_light_rule,
    extract_records,
    translate,
)


def test_highspeed_blinks_yellow_for_every_named_car():
    records = [
        {"data_carname": "Ground Shock"},
        {"data_carname": ""},
        {"speed": 120},
        {"data_carname": "Skull"},
    ]

    commands = translate("highspeed", records)

    assert commands == [
        Command("Ground Shock", LightAction.BLINK, LightColor.YELLOW),
        Command("Skull", LightAction.BLINK, LightColor.YELLOW),
    ]


@pytest.mark.parametrize(
    "event_name,action,color",
    [
        ("regularspeed", LightAction.ON, LightColor.GREEN),
        ("lap", LightAction.BLINKONCE, LightColor.GREEN),
        ("offtrack", LightAction.BLINK, LightColor.RED),
        ("speed", LightAction.ON, LightColor.GREEN),
    ],
)
def test_car_events(event_name, action, color):
    commands = translate(event_name, [{"data_carname": "Thermo"}])

    assert commands == [Command("Thermo", action, color)]


def test_car_events_preserve_payload_order():
    records = [{"data_carname": name} for name in ("Guardian", "Skull", "Guardian")]

    commands = translate("lap", records)

    assert [command.target for command in commands] == ["Guardian", "Skull", "Guardian"]


def test_race_stopped_turns_everything_off():
    assert translate("race", [{"raceStatus": "STOPPED"}]) == [
        Command("ALL", LightAction.OFF)
    ]


@pytest.mark.parametrize("record", [{"raceStatus": "RUNNING"}, {"raceStatus": "stopped"}, {}])
def test_race_ignores_other_states(record):
    assert translate("race", [record]) == []


@pytest.mark.parametrize(
    "status,expected",
    [
        ("GOING", Command("Drone", LightAction.BLINK, LightColor.GREEN)),
        ("TAKING PICTURE", Command("Drone", LightAction.BLINKONCE, LightColor.BLUE)),
        ("RETURNING", Command("Drone", LightAction.BLINK, LightColor.GREEN)),
        ("LANDING", Command("Drone", LightAction.BLINK, LightColor.GREEN)),
        ("DOWNLOADING", Command("Drone", LightAction.ON, LightColor.GREEN)),
        ("LANDED", Command("Drone", LightAction.OFF)),
    ],
)
def test_drone_status_table(status, expected):
    assert translate("drone", [{"status": status}]) == [expected]


def test_drone_landed_has_no_color():
    (command,) = translate("drone", [{"status": "LANDED"}])

    assert command.target == "Drone"
    assert command.action is LightAction.OFF
    assert command.color is None


def test_drone_unknown_status_is_ignored():
    assert translate("drone", [{"status": "HOVERING"}, {"status": None}, {}]) == []


def test_unknown_event_raises():
    with pytest.raises(UnknownEventError):
        translate("pitstop", [{"data_carname": "Skull"}])


def test_registering_a_rule_extends_the_table():
    translator = EventTranslator()
    translator.register("pitstop", car_light_rule(LightAction.BLINK, LightColor.BLUE))

    assert translator.handles("pitstop")
    assert translator.translate("pitstop", [{"data_carname": "Skull"}]) == [
        Command("Skull", LightAction.BLINK, LightColor.BLUE)
    ]
    # the module-level table is unaffected
    assert not EventTranslator().handles("pitstop")


def test_custom_rule_table_replaces_defaults():
    translator = EventTranslator({"lap": car_light_rule(LightAction.ON)})

    assert translator.event_names == ["lap"]
    assert translator.translate("lap", [{"data_carname": "Skull"}]) == [
        Command("Skull", LightAction.ON)
    ]


def test_extract_records_unwraps_payload_envelope():
    message = [
        {"payload": {"data": {"data_carname": "Skull"}}},
        {"data_carname": "Thermo"},
        "garbage",
        {"payload": "not-a-mapping"},
    ]

    records = extract_records(message)

    assert records == [
        {"data_carname": "Skull"},
        {"data_carname": "Thermo"},
        {"payload": "not-a-mapping"},
    ]
    assert translate("lap", records) == [
        Command("Skull", LightAction.BLINKONCE, LightColor.GREEN),
        Command("Thermo", LightAction.BLINKONCE, LightColor.GREEN),
    ]


def test_extract_records_accepts_single_mapping_and_rejects_scalars():
    assert extract_records({"payload": {"data": {"raceStatus": "STOPPED"}}}) == [
        {"raceStatus": "STOPPED"}
    ]
    assert extract_records(None) == []
    assert extract_records("STOPPED") == []
