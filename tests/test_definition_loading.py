from pathlib import Path

import pytest

from src.acheron.events.load import (
    build_event_definition,
    load_definition_directory,
    load_definition_file,
    validate_event_definition_schema,
)
from src.acheron.events.model import ConditionKind, DefinitionError, Priority
from src.acheron.events.registry import Category

SOURCE = Path("events/Hostile/test.yaml")


def _record(**overrides):
    record = {
        "quest": "q_captive",
        "name": "Captive",
        "cooldown": 48,
        "priority": "StoryGeneric",
        "weight": 70,
        "flags": ["Teleport", "InCombat"],
        "conditions": [
            {"target": "victim", "kind": "race", "identifier": "NordRace"},
            {"target": "victim", "kind": "location", "identifier": "WhiterunHold"},
            {"target": "assailant", "kind": "faction", "identifier": "BanditFaction"},
            {"target": "assailant", "kind": "QuestRunning", "identifier": "q_main", "polarity": False},
        ],
    }
    record.update(overrides)
    return record


def test_build_full_record(forms):
    event = build_event_definition(_record(), forms, SOURCE)

    assert event.quest.id == "q_captive"
    assert event.name == "Captive"
    assert event.cooldown == 48
    assert event.priority is Priority.StoryGeneric
    assert event.weight == 70
    assert event.flags.has_teleport() and event.flags.has_in_combat()
    assert [c.kind for c in event.victim_conditions] == [ConditionKind.Race, ConditionKind.Location]
    assert [c.kind for c in event.assailant_conditions] == [ConditionKind.Faction, ConditionKind.QuestRunning]
    assert event.assailant_conditions[1].polarity is False
    assert event.victim_conditions[0].polarity is True


def test_minimal_record_uses_defaults(forms):
    event = build_event_definition({"quest": "q_robbed"}, forms, SOURCE)
    assert event.name == "UNTITLED"
    assert event.weight == 50
    assert event.priority is Priority.Default
    assert event.flags.names() == ["Teleport"]
    assert event.remaining_cooldown == 0


def test_enum_values_are_case_insensitive(forms):
    event = build_event_definition(
        _record(priority="storypriority", conditions=[{"target": "VICTIM", "kind": "WorldSpace", "identifier": "Tamriel"}]),
        forms,
        SOURCE,
    )
    assert event.priority is Priority.StoryPriority
    assert event.victim_conditions[0].kind is ConditionKind.WorldSpace


@pytest.mark.parametrize("overrides, message", [
    ({"quest": ""}, "Missing or empty 'quest'"),
    ({"weight": 101}, "Invalid 'weight'"),
    ({"weight": -1}, "Invalid 'weight'"),
    ({"weight": 12.5}, "Invalid 'weight'"),
    ({"cooldown": -3}, "Invalid 'cooldown'"),
    ({"name": ""}, "Invalid or empty 'name'"),
    ({"flags": "Teleport"}, "Invalid 'flags'"),
    ({"conditions": {"victim": []}}, "'conditions' must be a list"),
    ({"conditions": [{"kind": "race", "identifier": "NordRace"}]}, "must define 'target'"),
    ({"conditions": [{"target": "victim", "kind": "race", "identifier": "NordRace", "polarity": "no"}]}, "polarity"),
    ({"colour": "red"}, "Unknown keys"),
])
def test_schema_errors(overrides, message):
    with pytest.raises(DefinitionError, match=message):
        validate_event_definition_schema(_record(**overrides), SOURCE)


@pytest.mark.parametrize("overrides, message", [
    ({"quest": "q_missing"}, "Unable to resolve quest"),
    ({"priority": "Urgent"}, "Invalid 'priority'"),
    ({"flags": ["Explode"]}, "Unknown event flag"),
    ({"conditions": [{"target": "bystander", "kind": "race", "identifier": "NordRace"}]}, "Invalid 'target'"),
    ({"conditions": [{"target": "victim", "kind": "mood", "identifier": "angry"}]}, "Invalid 'kind'"),
    ({"conditions": [{"target": "victim", "kind": "keyword", "identifier": "ActorTypeDragon"}]}, "Unable to resolve Keyword"),
])
def test_resolution_errors(forms, overrides, message):
    with pytest.raises(DefinitionError, match=message):
        build_event_definition(_record(**overrides), forms, SOURCE)


def test_errors_name_the_source_file(forms):
    with pytest.raises(DefinitionError) as excinfo:
        build_event_definition(_record(quest="q_missing"), forms, SOURCE)
    assert excinfo.value.source == str(SOURCE)
    assert str(SOURCE) in str(excinfo.value)


def test_load_definition_file(forms, tmp_path):
    path = tmp_path / "robbed.yaml"
    path.write_text("quest: q_robbed\nname: Robbed\nweight: 10\n")
    event = load_definition_file(path, forms)
    assert (event.name, event.weight) == ("Robbed", 10)


def test_load_empty_definition_file(forms, tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")
    with pytest.raises(DefinitionError, match="empty"):
        load_definition_file(path, forms)


def test_load_definition_directory_orders_files_by_name(forms, tmp_path):
    hostile = tmp_path / "Hostile"
    hostile.mkdir()
    (hostile / "b.yaml").write_text("quest: q_captive\nname: B\n")
    (hostile / "a.yml").write_text("quest: q_robbed\nname: A\n")
    (hostile / "notes.txt").write_text("not a definition")
    (tmp_path / "guard").mkdir()
    (tmp_path / "guard" / "jailed.yaml").write_text("quest: q_jailed\nname: Jailed\n")

    loaded = load_definition_directory(tmp_path, forms)
    assert set(loaded) == set(Category)
    assert [e.name for e in loaded[Category.Hostile]] == ["A", "B"]
    assert [e.name for e in loaded[Category.Guard]] == ["Jailed"]
    assert loaded[Category.NPC] == []


def test_load_missing_definition_directory(forms, tmp_path):
    loaded = load_definition_directory(tmp_path / "missing", forms)
    assert all(events == [] for events in loaded.values())
