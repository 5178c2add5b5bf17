from __future__ import annotations

from rules.catalog import get_condition, get_critical_wound
from rules.character import INJURY_LOCATIONS, Character, ConditionEntry, Wound


def add_injury(
    character: Character,
    location: str,
    name: str,
    description: str | None = None,
    treatment: str | None = None,
) -> Wound | None:
    key = location.strip().lower()
    if key not in INJURY_LOCATIONS:
        return None
    definition = get_critical_wound(key, name)
    wound = Wound(
        name=name,
        description=description if description is not None else (definition.description if definition else ""),
        treatment=treatment if treatment is not None else (definition.treatment if definition else ""),
    )
    character.injuries(key).append(wound)
    character.touch()
    return wound


def remove_injury(character: Character, location: str, wound_id: str) -> bool:
    wounds = character.injuries(location)
    for index, wound in enumerate(wounds):
        if wound.id == wound_id:
            del wounds[index]
            character.touch()
            return True
    return False


def active_injuries(character: Character) -> list[tuple[str, Wound]]:
    return [
        (location, wound)
        for location in INJURY_LOCATIONS
        for wound in character.injuries(location)
        if wound.is_active
    ]


def add_condition(character: Character, name: str, description: str | None = None) -> ConditionEntry:
    if description is None:
        definition = get_condition(name)
        description = definition.description if definition else ""
    entry = ConditionEntry(name=name, description=description)
    character.conditions.append(entry)
    character.touch()
    return entry


def remove_condition(character: Character, condition_id: str) -> bool:
    for index, entry in enumerate(character.conditions):
        if entry.id == condition_id:
            del character.conditions[index]
            character.touch()
            return True
    return False
