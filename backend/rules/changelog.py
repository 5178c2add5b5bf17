from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Protocol

from rules.character import (
    FIRST_SESSION,
    INJURY_LOCATIONS,
    Character,
    ChangeLogEntry,
    Characteristic,
    ConditionEntry,
    EquipmentItem,
    Reputation,
    WeaponItem,
    Wound,
)

ARROW = "→"
SUMMARY_SEPARATOR = ", "

IDENTITY_FIELDS = (
    ("name", "name"),
    ("player", "player"),
    ("campaign", "campaign"),
    ("faction", "faction"),
    ("role", "role"),
    ("homeworld", "homeworld"),
)
NARRATIVE_FIELDS = (
    ("background", "background"),
    ("short_term_goal", "short-term goal"),
    ("long_term_goal", "long-term goal"),
    ("description", "description"),
    ("notes", "notes"),
)
RESOURCE_FIELDS = (
    ("fate", "fate"),
    ("spent_fate", "spent fate"),
    ("solars", "solars"),
    ("total_experience", "total experience"),
    ("spent_experience", "spent experience"),
)


class CharacterSaver(Protocol):
    def save(self, character: Character) -> bool: ...


@dataclass(frozen=True)
class CharacterSnapshot:
    name: str
    player: str
    campaign: str
    faction: str
    role: str
    homeworld: str
    background: str
    short_term_goal: str
    long_term_goal: str
    description: str
    notes: str
    characteristics: dict[str, Characteristic]
    legacy_characteristics: dict[str, int]
    fate: int
    spent_fate: int
    solars: int
    total_experience: int
    spent_experience: int
    critical_wounds: int
    head_injuries: tuple[Wound, ...]
    arm_injuries: tuple[Wound, ...]
    body_injuries: tuple[Wound, ...]
    leg_injuries: tuple[Wound, ...]
    conditions: tuple[ConditionEntry, ...]
    skill_advances: dict[str, int]
    faction_skill_advances: dict[str, int]
    skill_specializations: dict[str, dict[str, int]]
    specialization_advances: dict[str, int]
    talents: frozenset[str]
    equipment: tuple[EquipmentItem, ...]
    weapons: tuple[WeaponItem, ...]
    psychic_powers: tuple[str, ...]
    reputations: tuple[Reputation, ...]


def take_snapshot(character: Character) -> CharacterSnapshot:
    return CharacterSnapshot(
        name=character.name,
        player=character.player,
        campaign=character.campaign,
        faction=character.faction,
        role=character.role,
        homeworld=character.homeworld,
        background=character.background,
        short_term_goal=character.short_term_goal,
        long_term_goal=character.long_term_goal,
        description=character.description,
        notes=character.notes,
        characteristics=copy.deepcopy(character.characteristics),
        legacy_characteristics=dict(character.legacy_characteristics),
        fate=character.fate,
        spent_fate=character.spent_fate,
        solars=character.solars,
        total_experience=character.total_experience,
        spent_experience=character.spent_experience,
        critical_wounds=character.critical_wounds,
        head_injuries=tuple(copy.deepcopy(character.head_injuries)),
        arm_injuries=tuple(copy.deepcopy(character.arm_injuries)),
        body_injuries=tuple(copy.deepcopy(character.body_injuries)),
        leg_injuries=tuple(copy.deepcopy(character.leg_injuries)),
        conditions=tuple(copy.deepcopy(character.conditions)),
        skill_advances=dict(character.skill_advances),
        faction_skill_advances=dict(character.faction_skill_advances),
        skill_specializations=copy.deepcopy(character.skill_specializations),
        specialization_advances=dict(character.specialization_advances),
        talents=frozenset(character.talents),
        equipment=tuple(copy.deepcopy(character.equipment)),
        weapons=tuple(copy.deepcopy(character.weapons)),
        psychic_powers=tuple(character.psychic_powers),
        reputations=tuple(copy.deepcopy(character.reputations)),
    )


def generate_change_summary(current: Any, original: Any) -> list[str]:
    """Diff two character states (records or snapshots) into log lines."""
    changes: list[str] = []

    for attr, label in IDENTITY_FIELDS:
        _diff_scalar(changes, label, getattr(original, attr), getattr(current, attr))
    for attr, label in NARRATIVE_FIELDS:
        new_value = getattr(current, attr)
        if new_value != getattr(original, attr):
            changes.append(f"{label}: {new_value}")

    _diff_characteristics(changes, current.characteristics, original.characteristics)

    legacy_names = sorted(set(current.legacy_characteristics) | set(original.legacy_characteristics))
    for name in legacy_names:
        _diff_scalar(
            changes,
            name.lower(),
            original.legacy_characteristics.get(name, 0),
            current.legacy_characteristics.get(name, 0),
        )

    for attr, label in RESOURCE_FIELDS:
        _diff_scalar(changes, label, getattr(original, attr), getattr(current, attr))
    _diff_scalar(changes, "critical wounds", original.critical_wounds, current.critical_wounds)

    for location in INJURY_LOCATIONS:
        attr = f"{location}_injuries"
        _diff_names(
            changes,
            f"{location} injury",
            [wound.name for wound in getattr(current, attr)],
            [wound.name for wound in getattr(original, attr)],
        )
    _diff_names(
        changes,
        "condition",
        [entry.name for entry in current.conditions],
        [entry.name for entry in original.conditions],
    )

    _diff_int_map(changes, "skill", current.skill_advances, original.skill_advances)
    _diff_int_map(changes, "faction skill", current.faction_skill_advances, original.faction_skill_advances)
    _diff_specializations(changes, current, original)

    _diff_names(changes, "talent", current.talents, original.talents)
    _diff_items(changes, "equipment", current.equipment, original.equipment)
    _diff_items(changes, "weapon", current.weapons, original.weapons)
    _diff_names(changes, "psychic power", current.psychic_powers, original.psychic_powers)
    _diff_reputation(changes, current.reputations, original.reputations)
    return changes


def append_log_entry(character: Character, summary: str, session: int | None = None) -> ChangeLogEntry:
    entry = ChangeLogEntry(
        summary=summary,
        session=character.current_session if session is None else session,
    )
    character.change_log.append(entry)
    return entry


def log_changes(character: Character, original: CharacterSnapshot) -> ChangeLogEntry | None:
    changes = generate_change_summary(character, original)
    if not changes:
        return None
    return append_log_entry(character, SUMMARY_SEPARATOR.join(changes))


def increment_session(character: Character) -> ChangeLogEntry:
    character.current_session += 1
    character.touch()
    return append_log_entry(character, f"Session incremented to {character.current_session}")


def decrement_session(character: Character) -> ChangeLogEntry | None:
    if character.current_session <= FIRST_SESSION:
        return None
    character.current_session -= 1
    character.touch()
    return append_log_entry(character, f"Session decremented to {character.current_session}")


def group_change_log(character: Character) -> list[tuple[int, list[ChangeLogEntry]]]:
    sessions: dict[int, list[ChangeLogEntry]] = {}
    for entry in character.change_log:
        sessions.setdefault(entry.session, []).append(entry)
    return [
        (session, sorted(reversed(entries), key=lambda entry: entry.timestamp, reverse=True))
        for session, entries in sorted(sessions.items(), reverse=True)
    ]


def save_with_change_tracking(
    repository: CharacterSaver, character: Character, snapshot: CharacterSnapshot
) -> bool:
    log_changes(character, snapshot)
    return repository.save(character)


def _diff_scalar(changes: list[str], label: str, old: Any, new: Any) -> None:
    if old != new:
        changes.append(f"{label} {old}{ARROW}{new}")


def _diff_characteristics(
    changes: list[str],
    current: dict[str, Characteristic],
    original: dict[str, Characteristic],
) -> None:
    for name in _ordered_keys(current, original):
        new = current.get(name)
        old = original.get(name)
        if old is None and new is not None:
            changes.append(f"characteristic added: {name} (base {new.base}, advances {new.advances})")
        elif new is None and old is not None:
            changes.append(f"characteristic removed: {name} (base {old.base}, advances {old.advances})")
        elif old is not None and new is not None:
            _diff_scalar(changes, f"{name} base", old.base, new.base)
            _diff_scalar(changes, f"{name} advances", old.advances, new.advances)


def _diff_int_map(changes: list[str], kind: str, current: dict[str, int], original: dict[str, int]) -> None:
    for key in _ordered_keys(current, original):
        if key not in current:
            if original[key]:
                changes.append(f"{kind} {key} removed ({original[key]}{ARROW}0)")
            continue
        _diff_scalar(changes, f"{kind} {key}", original.get(key, 0), current[key])


def _diff_specializations(changes: list[str], current: Any, original: Any) -> None:
    if any(current.skill_specializations.values()) or any(original.skill_specializations.values()):
        pairs = sorted(
            {
                (skill, name)
                for source in (current.skill_specializations, original.skill_specializations)
                for skill, names in source.items()
                for name in names
            }
        )
        for skill, name in pairs:
            old = original.skill_specializations.get(skill, {}).get(name, 0)
            new = current.skill_specializations.get(skill, {}).get(name, 0)
            if old == new:
                continue
            label = f"specialization {name} ({skill})"
            if new > 0:
                changes.append(f"{label} {old}{ARROW}{new}")
            elif old > 0:
                changes.append(f"{label} removed ({old}{ARROW}0)")
        return
    _diff_int_map(changes, "specialization", current.specialization_advances, original.specialization_advances)


def _diff_names(changes: list[str], kind: str, current, original) -> None:
    current_names = set(current)
    original_names = set(original)
    for name in sorted(current_names - original_names):
        changes.append(f"{kind} added: {name}")
    for name in sorted(original_names - current_names):
        changes.append(f"{kind} removed: {name}")


def _diff_items(changes: list[str], kind: str, current, original) -> None:
    current_ids = {item.id for item in current}
    original_ids = {item.id for item in original}
    for item in current:
        if item.id not in original_ids:
            changes.append(f"{kind} added: {item.name}")
    for item in original:
        if item.id not in current_ids:
            changes.append(f"{kind} removed: {item.name}")


def _diff_reputation(changes: list[str], current, original) -> None:
    current_map = {entry.key: entry for entry in current}
    original_map = {entry.key: entry for entry in original}
    for key in _ordered_keys(current_map, original_map):
        new = current_map.get(key)
        old = original_map.get(key)
        if new is None:
            changes.append(f"reputation {_reputation_label(old)} removed ({old.value}{ARROW}0)")
            continue
        _diff_scalar(changes, f"reputation {_reputation_label(new)}", old.value if old else 0, new.value)


def _reputation_label(entry: Reputation) -> str:
    return entry.individual or entry.faction


def _ordered_keys(current: dict, original: dict) -> list:
    keys = list(original)
    keys.extend(key for key in current if key not in original)
    return keys
