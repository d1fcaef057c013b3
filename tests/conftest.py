from pathlib import Path

import pytest

from src.acheron.core.ids import ActorId, FactionId, KeywordId, LocationId, WorldSpaceId, QuestId
from src.acheron.core.rng import get_seeded_rng
from src.acheron.events.model import EventDefinition
from src.acheron.events.registry import EventRegistry
from src.acheron.world.load import load_forms
from src.acheron.world.model import Actor, Faction, FormIndex, Keyword, Location, Quest, WorldSpace

DATA_PATH = Path(__file__).parent.parent / "data"


@pytest.fixture
def data_path() -> Path:
    return DATA_PATH


@pytest.fixture
def forms() -> FormIndex:
    forms = FormIndex()
    forms.add(Faction(id=FactionId("BanditFaction"), name="Bandits"))
    forms.add(Faction(id=FactionId("GuardFaction"), name="Guards"))
    forms.add(Keyword(id=KeywordId("ActorTypeNPC")))
    forms.add(Keyword(id=KeywordId("ActorTypeCreature")))
    forms.add(WorldSpace(id=WorldSpaceId("Tamriel")))
    forms.add(WorldSpace(id=WorldSpaceId("Solstheim")))

    hold = forms.add(Location(id=LocationId("WhiterunHold"), name="Whiterun Hold"))
    forms.add(Location(id=LocationId("Whiterun"), name="Whiterun", parent=hold))
    forms.add(Location(id=LocationId("Raven Rock"), name="Raven Rock"))

    for quest_id in ("q_robbed", "q_captive", "q_story", "q_jailed"):
        forms.add(Quest(id=QuestId(quest_id), name=quest_id))
    forms.add(Quest(id=QuestId("q_main"), name="Main Quest", running=True))
    forms.add(Quest(id=QuestId("q_done"), name="Finished Quest", running=True, completed=True))

    forms.add(Actor(
        id=ActorId("victim"),
        race="NordRace",
        keywords={KeywordId("ActorTypeNPC")},
        location=forms.locations[LocationId("Whiterun")],
        worldspace=forms.worldspaces[WorldSpaceId("Tamriel")],
    ))
    forms.add(Actor(
        id=ActorId("bandit"),
        race="ImperialRace",
        factions={FactionId("BanditFaction")},
        base_keywords={KeywordId("ActorTypeNPC")},
    ))
    forms.add(Actor(id=ActorId("farmer"), race="NordRace", base_keywords={KeywordId("ActorTypeNPC")}))
    forms.add(Actor(id=ActorId("guard"), race="NordRace", factions={FactionId("GuardFaction")}))
    forms.add(Actor(id=ActorId("wolf"), keywords={KeywordId("ActorTypeCreature")}))
    return forms


@pytest.fixture
def registry(forms) -> EventRegistry:
    return EventRegistry(forms=forms, rng=get_seeded_rng(42))


@pytest.fixture
def bundled_registry(tmp_path) -> EventRegistry:
    """Registry over the bundled data with weights stored in a temporary file."""
    registry = EventRegistry(
        forms=load_forms(DATA_PATH / "forms.yaml"),
        definitions_dir=DATA_PATH / "events",
        weights_path=tmp_path / "weights.json",
        rng=get_seeded_rng(7),
    )
    registry.initialize()
    return registry


def make_event(forms: FormIndex, quest_id: str, **kwargs) -> EventDefinition:
    kwargs.setdefault("name", quest_id)
    return EventDefinition(quest=forms.quests[QuestId(quest_id)], **kwargs)
