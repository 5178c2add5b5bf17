from rules.character import Character
from rules.injuries import active_injuries, add_condition, add_injury, remove_condition, remove_injury


def test_add_injury_fills_catalog_text() -> None:
    character = Character()
    wound = add_injury(character, "Head", "Black Eye")

    assert wound is not None
    assert wound.treatment == "None."
    assert wound.description
    assert character.head_injuries == [wound]
    assert active_injuries(character) == []


def test_add_injury_rejects_unknown_location() -> None:
    character = Character()
    assert add_injury(character, "tail", "Docked") is None
    assert all(not character.injuries(location) for location in ("head", "arm", "body", "leg"))


def test_remove_injury_by_id() -> None:
    character = Character()
    first = add_injury(character, "leg", "Sprain", treatment="Rest for a day")
    add_injury(character, "leg", "Sprain", treatment="Rest for a day")

    assert remove_injury(character, "leg", first.id) is True
    assert len(character.leg_injuries) == 1
    assert [location for location, _ in active_injuries(character)] == ["leg"]
    assert remove_injury(character, "leg", first.id) is False


def test_conditions_allow_duplicates() -> None:
    character = Character()
    first = add_condition(character, "Blinded")
    add_condition(character, "Blinded")
    custom = add_condition(character, "Homesick", "Misses the hive")

    assert first.description
    assert custom.description == "Misses the hive"
    assert len(character.conditions) == 3
    assert remove_condition(character, first.id) is True
    assert [entry.name for entry in character.conditions] == ["Blinded", "Homesick"]
    assert remove_condition(character, "missing") is False
