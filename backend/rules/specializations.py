from __future__ import annotations

import logging
from dataclasses import dataclass

from rules.catalog import UNKNOWN_SKILL, find_skill_for_specialization
from rules.character import Character

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpecializationEntry:
    name: str
    skill: str
    advances: int


def get_specialization_advances(character: Character, specialization: str, skill: str) -> int:
    return character.skill_specializations.get(skill, {}).get(specialization, 0)


def set_specialization_advances(
    character: Character, specialization: str, skill: str, advances: int
) -> None:
    character.skill_specializations.setdefault(skill, {})[specialization] = max(0, int(advances))
    character.touch()


def add_specialization_advances(
    character: Character, specialization: str, skill: str, advances: int
) -> None:
    current = get_specialization_advances(character, specialization, skill)
    set_specialization_advances(character, specialization, skill, current + int(advances))


def delete_specialization(character: Character, specialization: str, skill: str) -> None:
    set_specialization_advances(character, specialization, skill, 0)


def get_visible_specializations(character: Character) -> list[SpecializationEntry]:
    entries = [
        SpecializationEntry(name=name, skill=skill, advances=advances)
        for skill, specializations in character.skill_specializations.items()
        for name, advances in specializations.items()
        if advances > 0
    ]
    return sorted(entries, key=lambda entry: (entry.name, entry.skill))


def has_specialization_data(character: Character) -> bool:
    return any(character.skill_specializations.values())


def parse_legacy_key(key: str) -> tuple[str, str]:
    """Split a legacy ``"Name (Skill)"`` key into (specialization, skill)."""
    name, separator, rest = key.partition(" (")
    if separator and rest.endswith(")"):
        return name, rest[:-1]
    return key, find_skill_for_specialization(key)


def migrate_from_legacy_specializations(character: Character) -> bool:
    if has_specialization_data(character) or not character.specialization_advances:
        return False

    migrated: dict[str, dict[str, int]] = {}
    for key, advances in character.specialization_advances.items():
        name, skill = parse_legacy_key(key)
        if skill == UNKNOWN_SKILL:
            logger.warning("Specialization %r has no known skill; keeping it under %s", key, UNKNOWN_SKILL)
        bucket = migrated.setdefault(skill, {})
        bucket[name] = bucket.get(name, 0) + max(0, int(advances))

    character.skill_specializations = migrated
    character.touch()
    return True
