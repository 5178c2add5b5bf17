from __future__ import annotations

import logging
from typing import Iterable

from rules.catalog import CharacteristicBonus, Faction, Origin, Role, faction_skill_pool
from rules.changelog import append_log_entry
from rules.character import (
    CHARACTERISTIC_NAMES,
    DEFAULT_CHARACTERISTIC_BASE,
    MIN_CHARACTERISTIC_BASE,
    TOTAL_STAGES,
    Character,
    WeaponItem,
    add_characteristic_bonus,
    set_characteristic,
)
from rules.derived import calculate_max_wounds
from rules.items import parse_granted_item, parse_weapon_from_name
from rules.reputation import adjust_reputation
from rules.specializations import add_specialization_advances

logger = logging.getLogger(__name__)

CHARACTERISTIC_POINT_POOL = 90
CREATION_LOG_SUMMARY = "Character created"


def apply_origin(
    character: Character,
    origin: Origin,
    chosen_bonus: CharacteristicBonus | None,
) -> bool:
    if character.applied_origin_bonuses.get(origin.name):
        logger.debug("Origin %s already applied to %s", origin.name, character.id)
        return False

    _apply_bonus(character, origin.mandatory_bonus)
    _apply_bonus(character, chosen_bonus)
    _grant_items(character, origin.granted_equipment)

    character.homeworld = origin.name
    character.applied_origin_bonuses[origin.name] = True
    character.touch()
    return True


def apply_faction(
    character: Character,
    faction: Faction,
    chosen_bonus: CharacteristicBonus | None,
    chosen_talent_group_index: int | None,
    skill_point_allocation: dict[str, int] | None,
) -> bool:
    if character.applied_faction_bonuses.get(faction.name):
        logger.debug("Faction %s already applied to %s", faction.name, character.id)
        return False

    _apply_bonus(character, faction.mandatory_bonus)
    _apply_bonus(character, chosen_bonus)
    _merge_points(character.faction_skill_advances, skill_point_allocation)

    character.talents.update(faction.talents)
    if chosen_talent_group_index is not None and 0 <= chosen_talent_group_index < len(faction.talent_choices):
        group = faction.talent_choices[chosen_talent_group_index]
        character.talents.update(group.talents)
        character.selected_faction_talent_choice = group.name

    _grant_items(character, faction.equipment)
    character.solars = faction.solars
    adjust_reputation(character, faction.influence_bonus, 1)

    character.faction = faction.name
    character.applied_faction_bonuses[faction.name] = True
    character.touch()
    return True


def apply_role(
    character: Character,
    role: Role,
    chosen_talents: Iterable[str],
    skill_point_allocation: dict[str, int] | None,
    specialization_point_allocation: dict[str, dict[str, int]] | None,
    chosen_weapons: Iterable[str],
    chosen_equipment: Iterable[str],
) -> bool:
    character.talents.update(chosen_talents)
    _merge_points(character.skill_advances, skill_point_allocation)
    for skill, specializations in (specialization_point_allocation or {}).items():
        for name, points in specializations.items():
            if points:
                add_specialization_advances(character, name, skill, points)

    for name in chosen_weapons:
        character.weapons.append(parse_weapon_from_name(name))
    _grant_items(character, chosen_equipment)
    _grant_items(character, role.equipment)

    character.role = role.name
    character.touch()
    return True


def allocate_characteristics(character: Character, allocation: dict[str, int]) -> None:
    for name in CHARACTERISTIC_NAMES:
        if name in allocation:
            set_characteristic(character, name, base=DEFAULT_CHARACTERISTIC_BASE + int(allocation[name]))


def remaining_characteristic_points(allocation: dict[str, int]) -> int:
    return CHARACTERISTIC_POINT_POOL - sum(int(points) for points in allocation.values())


def validate_characteristic_allocation(allocation: dict[str, int]) -> list[str]:
    problems = []
    for name, points in allocation.items():
        if name not in CHARACTERISTIC_NAMES:
            problems.append(f"Unknown characteristic: {name}")
            continue
        if points < 0:
            problems.append(f"{name} cannot take negative points")
        elif DEFAULT_CHARACTERISTIC_BASE + points < MIN_CHARACTERISTIC_BASE:
            problems.append(f"{name} would fall below {MIN_CHARACTERISTIC_BASE}")
    remaining = remaining_characteristic_points(allocation)
    if remaining < 0:
        problems.append(f"Allocation exceeds the pool by {-remaining} points")
    return problems


def validate_origin_choice(origin: Origin, chosen_bonus: str | None) -> list[str]:
    if not origin.choice_bonus:
        return []
    if find_choice_bonus(origin.choice_bonus, chosen_bonus) is None:
        return [f"{origin.name} does not offer a bonus to {chosen_bonus or 'nothing'}"]
    return []


def validate_faction_choices(
    faction: Faction,
    chosen_bonus: str | None,
    chosen_talent_group_index: int | None,
    skill_point_allocation: dict[str, int],
) -> list[str]:
    problems = []
    if faction.choice_bonus and find_choice_bonus(faction.choice_bonus, chosen_bonus) is None:
        problems.append(f"{faction.name} does not offer a bonus to {chosen_bonus or 'nothing'}")
    if faction.talent_choices:
        if chosen_talent_group_index is None or not 0 <= chosen_talent_group_index < len(faction.talent_choices):
            problems.append(f"{faction.name} requires one of its talent choices")
    problems.extend(
        _pool_problems(
            "skill",
            skill_point_allocation,
            allowed=set(faction.skill_advances),
            pool=faction_skill_pool(),
        )
    )
    return problems


def validate_role_choices(
    role: Role,
    chosen_talents: list[str],
    skill_point_allocation: dict[str, int],
    specialization_point_allocation: dict[str, dict[str, int]],
    chosen_weapons: list[str],
    chosen_equipment: list[str],
) -> list[str]:
    problems = []
    for talent in chosen_talents:
        if talent not in role.talent_choices:
            problems.append(f"{role.name} does not offer the talent {talent}")
    if len(set(chosen_talents)) != len(chosen_talents):
        problems.append("Talents must be distinct")
    if len(chosen_talents) != role.talent_count:
        problems.append(f"{role.name} requires {role.talent_count} talents")

    problems.extend(
        _pool_problems(
            "skill",
            skill_point_allocation,
            allowed=set(role.skill_advances),
            pool=role.skill_advance_count,
        )
    )

    spec_total = 0
    for skill, specializations in specialization_point_allocation.items():
        for name, points in specializations.items():
            if points < 0:
                problems.append(f"Specialization {name} ({skill}) cannot take negative points")
            if points and not specialization_allowed(role, skill, name):
                problems.append(f"{role.name} does not offer the specialization {name} ({skill})")
            spec_total += points
    if role.specialization_advances and spec_total != role.specialization_advance_count:
        problems.append(
            f"{role.name} requires {role.specialization_advance_count} specialization advances"
        )

    problems.extend(_group_problems("weapon", role.weapon_choices, chosen_weapons))
    problems.extend(_group_problems("equipment", role.equipment_choices, chosen_equipment))
    return problems


def specialization_allowed(role: Role, skill: str, name: str) -> bool:
    for entry in role.specialization_advances:
        if entry == skill:
            return True
        entry_name, separator, rest = entry.partition(" (")
        if separator and rest.endswith(")") and rest[:-1] == skill:
            if entry_name in (name, "Any"):
                return True
    return False


def find_choice_bonus(
    choices: tuple[CharacteristicBonus, ...], characteristic: str | None
) -> CharacteristicBonus | None:
    if not characteristic:
        return None
    return next((bonus for bonus in choices if bonus.characteristic == characteristic), None)


def can_proceed(character: Character, stage: int) -> bool:
    if stage == 0:
        return bool(character.name.strip())
    if stage in (1, 5):
        return True
    if stage == 2:
        return bool(character.homeworld)
    if stage == 3:
        return bool(character.faction)
    if stage == 4:
        return bool(character.role)
    return False


def advance_stage(character: Character, stage: int) -> bool:
    if not can_proceed(character, stage):
        return False
    character.creation_progress = min(TOTAL_STAGES, max(character.creation_progress, stage + 1))
    character.touch()
    return True


def can_complete_creation(character: Character) -> bool:
    return all(
        (
            character.name.strip(),
            character.homeworld,
            character.faction,
            character.role,
        )
    )


def complete_creation(character: Character) -> None:
    already_complete = character.is_creation_complete
    character.creation_progress = TOTAL_STAGES
    character.max_wounds = calculate_max_wounds(character)
    if character.wounds == 0:
        character.wounds = character.max_wounds
    if not already_complete:
        append_log_entry(character, CREATION_LOG_SUMMARY)
    character.touch()


def _apply_bonus(character: Character, bonus: CharacteristicBonus | None) -> None:
    if bonus is None:
        return
    add_characteristic_bonus(character, bonus.characteristic, bonus.bonus)


def _merge_points(target: dict[str, int], allocation: dict[str, int] | None) -> None:
    for key, points in (allocation or {}).items():
        if points:
            target[key] = target.get(key, 0) + int(points)


def _grant_items(character: Character, names: Iterable[str]) -> None:
    for name in names:
        item = parse_granted_item(name)
        if isinstance(item, WeaponItem):
            character.weapons.append(item)
        else:
            character.equipment.append(item)


def _pool_problems(kind: str, allocation: dict[str, int], *, allowed: set[str], pool: int) -> list[str]:
    problems = []
    for key, points in allocation.items():
        if points < 0:
            problems.append(f"{kind.capitalize()} {key} cannot take negative points")
        if points and key not in allowed:
            problems.append(f"{kind.capitalize()} {key} is not available")
    total = sum(allocation.values())
    if total != pool:
        problems.append(f"{kind.capitalize()} points must total {pool} (got {total})")
    return problems


def _group_problems(kind: str, groups: tuple[tuple[str, ...], ...], chosen: list[str]) -> list[str]:
    if len(chosen) != len(groups):
        return [f"Pick exactly one {kind} from each of the {len(groups)} groups"]
    return [
        f"{pick} is not in {kind} group {index + 1}"
        for index, (group, pick) in enumerate(zip(groups, chosen))
        if pick not in group
    ]
