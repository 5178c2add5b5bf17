from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CATALOG_DIR_ENV = "IMPERIUM_CATALOG_DIR"
DEFAULT_CATALOG_DIR = Path(__file__).resolve().parent / "data"

UNKNOWN_SKILL = "Unknown"
DEFAULT_EQUIPMENT_CATEGORY = "Other"
DEFAULT_ARMOUR_CATEGORY = "Basic"

WEAPON_CATEGORY_MELEE = "Melee"
WEAPON_CATEGORY_RANGED = "Ranged"
WEAPON_CATEGORY_GRENADES = "Grenades & Explosives"
WEAPON_CATEGORIES = (WEAPON_CATEGORY_MELEE, WEAPON_CATEGORY_RANGED, WEAPON_CATEGORY_GRENADES)
DEFAULT_WEAPON_CATEGORY = WEAPON_CATEGORY_RANGED

ARMOUR_CATEGORIES = ("Basic", "Flak", "Mesh", "Carapace", "Power")
DEFAULT_FACTION_SKILL_POOL = 5


@dataclass(frozen=True)
class TagSpec:
    name: str
    parameter: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.parameter})" if self.parameter else self.name


@dataclass(frozen=True)
class CharacteristicBonus:
    characteristic: str
    bonus: int = 5


@dataclass(frozen=True)
class Origin:
    name: str
    mandatory_bonus: CharacteristicBonus
    choice_bonus: tuple[CharacteristicBonus, ...]
    granted_equipment: tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class TalentChoice:
    name: str
    talents: tuple[str, ...]


@dataclass(frozen=True)
class Faction:
    name: str
    mandatory_bonus: CharacteristicBonus
    choice_bonus: tuple[CharacteristicBonus, ...]
    skill_advances: tuple[str, ...]
    influence_bonus: str
    talents: tuple[str, ...]
    talent_choices: tuple[TalentChoice, ...]
    equipment: tuple[str, ...]
    solars: int
    description: str = ""


@dataclass(frozen=True)
class Role:
    name: str
    talent_choices: tuple[str, ...]
    talent_count: int
    skill_advances: tuple[str, ...]
    skill_advance_count: int
    specialization_advances: tuple[str, ...]
    specialization_advance_count: int
    weapon_choices: tuple[tuple[str, ...], ...]
    equipment: tuple[str, ...]
    equipment_choices: tuple[tuple[str, ...], ...]
    description: str = ""


@dataclass(frozen=True)
class WeaponTemplate:
    name: str
    category: str
    specialization: str
    damage: str
    range: str
    magazine: int
    encumbrance: int
    cost: int
    availability: str
    traits: tuple[TagSpec, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class EquipmentTemplate:
    name: str
    category: str
    description: str
    encumbrance: int
    cost: int
    availability: str
    qualities: tuple[str, ...] = ()
    flaws: tuple[str, ...] = ()
    traits: tuple[TagSpec, ...] = ()


@dataclass(frozen=True)
class ArmourTemplate:
    name: str
    category: str
    description: str
    locations: tuple[str, ...]
    armour_value: int
    encumbrance: int
    cost: int
    availability: str
    traits: tuple[TagSpec, ...] = ()


@dataclass(frozen=True)
class WeaponModification:
    name: str
    cost: int
    availability: str
    used_with: str
    description: str


@dataclass(frozen=True)
class ConditionDefinition:
    name: str
    description: str


@dataclass(frozen=True)
class CriticalWoundDefinition:
    location: str
    name: str
    description: str
    treatment: str


@dataclass(frozen=True)
class Catalog:
    characteristics: tuple[str, ...]
    skills: dict[str, str]
    specializations: dict[str, tuple[str, ...]]
    talents: dict[str, str]
    origins: tuple[Origin, ...]
    factions: tuple[Faction, ...]
    faction_skill_pool: int
    roles: tuple[Role, ...]
    weapons: tuple[WeaponTemplate, ...]
    modifications: tuple[WeaponModification, ...]
    weapon_traits: tuple[str, ...]
    equipment: tuple[EquipmentTemplate, ...]
    armour: tuple[ArmourTemplate, ...]
    qualities: tuple[str, ...]
    flaws: tuple[str, ...]
    equipment_traits: tuple[str, ...]
    availability: tuple[str, ...]
    conditions: tuple[ConditionDefinition, ...]
    critical_wounds: dict[str, tuple[CriticalWoundDefinition, ...]]


_CATALOG: Catalog | None = None


def catalog_dir() -> Path:
    override = os.getenv(CATALOG_DIR_ENV)
    return Path(override) if override else DEFAULT_CATALOG_DIR


def load_catalog() -> Catalog:
    global _CATALOG
    if _CATALOG is not None:
        return _CATALOG

    json_dir = catalog_dir()
    skills_payload = _read_json(json_dir, "skills.json")
    factions_payload = _read_json(json_dir, "factions.json")
    weapons_payload = _read_json(json_dir, "weapons.json")
    equipment_payload = _read_json(json_dir, "equipment.json")

    skills: dict[str, str] = {}
    specializations: dict[str, tuple[str, ...]] = {}
    raw_skills = skills_payload.get("skills", {})
    if isinstance(raw_skills, dict):
        for skill_name, data in raw_skills.items():
            if not isinstance(data, dict):
                continue
            skills[skill_name] = str(data.get("characteristic") or "")
            specializations[skill_name] = _str_tuple(data.get("specializations"))

    talents_payload = _read_json(json_dir, "talents.json").get("talents", {})
    talents = (
        {str(name): str(text) for name, text in talents_payload.items()}
        if isinstance(talents_payload, dict)
        else {}
    )

    catalog = Catalog(
        characteristics=_str_tuple(skills_payload.get("characteristics")),
        skills=skills,
        specializations=specializations,
        talents=talents,
        origins=tuple(
            _build_origin(item)
            for item in _dict_items(_read_json(json_dir, "origins.json").get("origins"))
        ),
        factions=tuple(_build_faction(item) for item in _dict_items(factions_payload.get("factions"))),
        faction_skill_pool=_safe_int(factions_payload.get("skillPool"), DEFAULT_FACTION_SKILL_POOL),
        roles=tuple(_build_role(item) for item in _dict_items(_read_json(json_dir, "roles.json").get("roles"))),
        weapons=tuple(_build_weapon(item) for item in _dict_items(weapons_payload.get("weapons"))),
        modifications=tuple(
            WeaponModification(
                name=str(item.get("name") or ""),
                cost=_safe_int(item.get("cost")),
                availability=str(item.get("availability") or ""),
                used_with=str(item.get("usedWith") or ""),
                description=str(item.get("description") or ""),
            )
            for item in _dict_items(weapons_payload.get("modifications"))
        ),
        weapon_traits=_str_tuple(weapons_payload.get("traits")),
        equipment=tuple(_build_equipment(item) for item in _dict_items(equipment_payload.get("equipment"))),
        armour=tuple(
            _build_armour(item)
            for item in _dict_items(_read_json(json_dir, "armour.json").get("armour"))
        ),
        qualities=_str_tuple(equipment_payload.get("qualities")),
        flaws=_str_tuple(equipment_payload.get("flaws")),
        equipment_traits=_str_tuple(equipment_payload.get("traits")),
        availability=_str_tuple(equipment_payload.get("availability")),
        conditions=tuple(
            ConditionDefinition(
                name=str(item.get("name") or ""),
                description=str(item.get("description") or ""),
            )
            for item in _dict_items(_read_json(json_dir, "conditions.json").get("conditions"))
        ),
        critical_wounds=_build_critical_wounds(
            _read_json(json_dir, "critical_wounds.json").get("criticalWounds")
        ),
    )

    _CATALOG = catalog
    return catalog


def reset_catalog() -> None:
    global _CATALOG
    _CATALOG = None


def parse_tag(text: str) -> TagSpec:
    """Split ``"Penetrating (4)"`` into its name and parameter."""
    cleaned = text.strip()
    if cleaned.endswith(")") and " (" in cleaned:
        name, _, rest = cleaned.partition(" (")
        return TagSpec(name=name.strip(), parameter=rest[:-1].strip())
    return TagSpec(name=cleaned)


def list_origins() -> tuple[Origin, ...]:
    return load_catalog().origins


def list_factions() -> tuple[Faction, ...]:
    return load_catalog().factions


def list_roles() -> tuple[Role, ...]:
    return load_catalog().roles


def get_origin(name: str | None) -> Origin | None:
    return _find_named(load_catalog().origins, name)


def get_faction(name: str | None) -> Faction | None:
    return _find_named(load_catalog().factions, name)


def get_role(name: str | None) -> Role | None:
    return _find_named(load_catalog().roles, name)


def faction_skill_pool() -> int:
    return load_catalog().faction_skill_pool


def characteristic_names() -> tuple[str, ...]:
    return load_catalog().characteristics


def all_skills() -> list[str]:
    return sorted(load_catalog().skills)


def skill_characteristic(skill: str) -> str | None:
    return load_catalog().skills.get(skill)


def get_specializations(skill: str) -> tuple[str, ...]:
    return load_catalog().specializations.get(skill, ())


def find_skill_for_specialization(specialization: str) -> str:
    catalog = load_catalog()
    matching = sorted(
        skill_name
        for skill_name, names in catalog.specializations.items()
        if specialization in names
    )
    if matching:
        return matching[0]

    if specialization.endswith(")") and " (" in specialization:
        _, _, rest = specialization.partition(" (")
        skill_name = rest[:-1]
        if skill_name in catalog.specializations:
            return skill_name
    return UNKNOWN_SKILL


def get_talent_description(name: str) -> str | None:
    return load_catalog().talents.get(name)


def get_weapon_template(name: str | None) -> WeaponTemplate | None:
    return _find_named(load_catalog().weapons, name)


def get_equipment_template(name: str | None) -> EquipmentTemplate | None:
    return _find_named(load_catalog().equipment, name)


def get_armour_template(name: str | None) -> ArmourTemplate | None:
    return _find_named(load_catalog().armour, name)


def get_weapon_modification(name: str | None) -> WeaponModification | None:
    return _find_named(load_catalog().modifications, name)


def get_weapons_by_category(category: str) -> list[WeaponTemplate]:
    return [item for item in load_catalog().weapons if item.category == category]


def get_equipment_by_category(category: str) -> list[EquipmentTemplate]:
    return [item for item in load_catalog().equipment if item.category == category]


def get_armour_by_category(category: str) -> list[ArmourTemplate]:
    return [item for item in load_catalog().armour if item.category == category]


def get_category_for_weapon(name: str) -> str:
    template = get_weapon_template(name)
    return template.category if template else DEFAULT_WEAPON_CATEGORY


def get_category_for_equipment(name: str) -> str:
    template = get_equipment_template(name)
    return template.category if template else DEFAULT_EQUIPMENT_CATEGORY


def get_category_for_armour(name: str) -> str:
    template = get_armour_template(name)
    return template.category if template else DEFAULT_ARMOUR_CATEGORY


def find_quality(name: str) -> str | None:
    return _match_name(load_catalog().qualities, name)


def find_flaw(name: str) -> str | None:
    return _match_name(load_catalog().flaws, name)


def find_trait(name: str) -> str | None:
    catalog = load_catalog()
    return _match_name(catalog.equipment_traits, name) or _match_name(catalog.weapon_traits, name)


def get_condition(name: str | None) -> ConditionDefinition | None:
    return _find_named(load_catalog().conditions, name)


def list_conditions() -> tuple[ConditionDefinition, ...]:
    return load_catalog().conditions


def critical_wounds_for(location: str) -> tuple[CriticalWoundDefinition, ...]:
    return load_catalog().critical_wounds.get(location.strip().lower(), ())


def get_critical_wound(location: str, name: str | None) -> CriticalWoundDefinition | None:
    return _find_named(critical_wounds_for(location), name)


def _read_json(json_dir: Path, file_name: str) -> dict[str, Any]:
    path = json_dir / file_name
    if not path.exists():
        logger.warning("Catalog file missing: %s", path)
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Catalog file unreadable: %s", path, exc_info=True)
        return {}
    return payload if isinstance(payload, dict) else {}


def _find_named(items, name: str | None):
    if not name:
        return None
    target = name.strip().lower()
    for item in items:
        if item.name.lower() == target:
            return item
    return None


def _match_name(names: tuple[str, ...], name: str) -> str | None:
    target = name.strip().lower()
    for candidate in names:
        if candidate.lower() == target:
            return candidate
    return None


def _dict_items(value: Any) -> list[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(item) for item in value)


def _safe_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _build_bonus(value: Any) -> CharacteristicBonus:
    if not isinstance(value, dict):
        return CharacteristicBonus(characteristic="", bonus=0)
    return CharacteristicBonus(
        characteristic=str(value.get("characteristic") or ""),
        bonus=_safe_int(value.get("bonus"), 5),
    )


def _build_tags(value: Any) -> tuple[TagSpec, ...]:
    if not isinstance(value, list):
        return ()
    tags = []
    for item in value:
        if isinstance(item, str):
            tags.append(parse_tag(item))
        elif isinstance(item, dict) and item.get("name"):
            tags.append(TagSpec(name=str(item["name"]), parameter=str(item.get("parameter") or "")))
    return tuple(tags)


def _build_origin(data: dict) -> Origin:
    return Origin(
        name=str(data.get("name") or ""),
        mandatory_bonus=_build_bonus(data.get("mandatoryBonus")),
        choice_bonus=tuple(_build_bonus(item) for item in _dict_items(data.get("choiceBonus"))),
        granted_equipment=_str_tuple(data.get("grantedEquipment")),
        description=str(data.get("description") or ""),
    )


def _build_faction(data: dict) -> Faction:
    return Faction(
        name=str(data.get("name") or ""),
        mandatory_bonus=_build_bonus(data.get("mandatoryBonus")),
        choice_bonus=tuple(_build_bonus(item) for item in _dict_items(data.get("choiceBonus"))),
        skill_advances=_str_tuple(data.get("skillAdvances")),
        influence_bonus=str(data.get("influenceBonus") or data.get("name") or ""),
        talents=_str_tuple(data.get("talents")),
        talent_choices=tuple(
            TalentChoice(name=str(item.get("name") or ""), talents=_str_tuple(item.get("talents")))
            for item in _dict_items(data.get("talentChoices"))
        ),
        equipment=_str_tuple(data.get("equipment")),
        solars=_safe_int(data.get("solars")),
        description=str(data.get("description") or ""),
    )


def _build_role(data: dict) -> Role:
    return Role(
        name=str(data.get("name") or ""),
        talent_choices=_str_tuple(data.get("talentChoices")),
        talent_count=_safe_int(data.get("talentCount")),
        skill_advances=_str_tuple(data.get("skillAdvances")),
        skill_advance_count=_safe_int(data.get("skillAdvanceCount")),
        specialization_advances=_str_tuple(data.get("specializationAdvances")),
        specialization_advance_count=_safe_int(data.get("specializationAdvanceCount")),
        weapon_choices=_choice_groups(data.get("weaponChoices")),
        equipment=_str_tuple(data.get("equipment")),
        equipment_choices=_choice_groups(data.get("equipmentChoices")),
        description=str(data.get("description") or ""),
    )


def _choice_groups(value: Any) -> tuple[tuple[str, ...], ...]:
    if not isinstance(value, list):
        return ()
    return tuple(_str_tuple(group) for group in value if isinstance(group, list))


def _build_weapon(data: dict) -> WeaponTemplate:
    return WeaponTemplate(
        name=str(data.get("name") or ""),
        category=str(data.get("category") or DEFAULT_WEAPON_CATEGORY),
        specialization=str(data.get("specialization") or "None"),
        damage=str(data.get("damage") or ""),
        range=str(data.get("range") or ""),
        magazine=_safe_int(data.get("magazine")),
        encumbrance=_safe_int(data.get("encumbrance")),
        cost=_safe_int(data.get("cost")),
        availability=str(data.get("availability") or "Common"),
        traits=_build_tags(data.get("traits")),
        description=str(data.get("description") or ""),
    )


def _build_equipment(data: dict) -> EquipmentTemplate:
    return EquipmentTemplate(
        name=str(data.get("name") or ""),
        category=str(data.get("category") or DEFAULT_EQUIPMENT_CATEGORY),
        description=str(data.get("description") or ""),
        encumbrance=_safe_int(data.get("encumbrance")),
        cost=_safe_int(data.get("cost")),
        availability=str(data.get("availability") or "Common"),
        qualities=_str_tuple(data.get("qualities")),
        flaws=_str_tuple(data.get("flaws")),
        traits=_build_tags(data.get("traits")),
    )


def _build_armour(data: dict) -> ArmourTemplate:
    return ArmourTemplate(
        name=str(data.get("name") or ""),
        category=str(data.get("category") or DEFAULT_ARMOUR_CATEGORY),
        description=str(data.get("description") or ""),
        locations=_str_tuple(data.get("locations")),
        armour_value=_safe_int(data.get("armourValue")),
        encumbrance=_safe_int(data.get("encumbrance")),
        cost=_safe_int(data.get("cost")),
        availability=str(data.get("availability") or "Common"),
        traits=_build_tags(data.get("traits")),
    )


def _build_critical_wounds(value: Any) -> dict[str, tuple[CriticalWoundDefinition, ...]]:
    if not isinstance(value, dict):
        return {}
    wounds: dict[str, tuple[CriticalWoundDefinition, ...]] = {}
    for location, entries in value.items():
        wounds[str(location).lower()] = tuple(
            CriticalWoundDefinition(
                location=str(location).lower(),
                name=str(item.get("name") or ""),
                description=str(item.get("description") or ""),
                treatment=str(item.get("treatment") or ""),
            )
            for item in _dict_items(entries)
        )
    return wounds
