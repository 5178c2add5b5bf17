from __future__ import annotations

from rules.catalog import skill_characteristic
from rules.character import ADVANCE_VALUE, INJURY_LOCATIONS, Character


def characteristic_value(character: Character, name: str) -> int:
    return character.characteristic(name).derived_value


def characteristic_bonus(character: Character, name: str) -> int:
    return characteristic_value(character, name) // 10


def total_skill_advances(character: Character, skill: str) -> int:
    return character.skill_advances.get(skill, 0) + character.faction_skill_advances.get(skill, 0)


def skill_value(character: Character, skill: str) -> int:
    related = skill_characteristic(skill)
    base = characteristic_value(character, related) if related else 0
    return base + ADVANCE_VALUE * total_skill_advances(character, skill)


def specialization_value(character: Character, skill: str, specialization: str) -> int:
    advances = character.skill_specializations.get(skill, {}).get(specialization, 0)
    return skill_value(character, skill) + ADVANCE_VALUE * max(0, advances)


def calculate_max_wounds(character: Character) -> int:
    return (
        characteristic_bonus(character, "Strength")
        + characteristic_bonus(character, "Willpower")
        + 2 * characteristic_bonus(character, "Toughness")
    )


def calculate_corruption_threshold(character: Character) -> int:
    return characteristic_bonus(character, "Willpower") + characteristic_bonus(character, "Toughness")


def calculate_critical_wounds_threshold(character: Character) -> int:
    return characteristic_bonus(character, "Toughness")


def count_active_critical_wounds(character: Character) -> int:
    return sum(
        1
        for location in INJURY_LOCATIONS
        for wound in character.injuries(location)
        if wound.is_active
    )


def available_experience(character: Character) -> int:
    return character.total_experience - character.spent_experience


def available_fate(character: Character) -> int:
    return character.fate - character.spent_fate
