from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rules.catalog import DEFAULT_EQUIPMENT_CATEGORY, DEFAULT_WEAPON_CATEGORY

CHARACTERISTIC_NAMES = (
    "Weapon Skill",
    "Ballistic Skill",
    "Strength",
    "Toughness",
    "Agility",
    "Intelligence",
    "Willpower",
    "Fellowship",
    "Perception",
)
DEFAULT_CHARACTERISTIC_BASE = 20
MIN_CHARACTERISTIC_BASE = 1
ADVANCE_VALUE = 5

# Flat integer fields kept for older sheets; never read by formulas.
LEGACY_CHARACTERISTIC_NAMES = CHARACTERISTIC_NAMES + ("Influence",)
LEGACY_CHARACTERISTIC_DEFAULT = 25

INJURY_LOCATIONS = ("head", "arm", "body", "leg")
INACTIVE_TREATMENTS = {"none", "none."}

CREATION_STAGES = ("Basic Info", "Characteristics", "Origin", "Faction", "Role", "Complete")
TOTAL_STAGES = len(CREATION_STAGES)

DEFAULT_FATE = 3
FIRST_SESSION = 1


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Characteristic:
    base: int = DEFAULT_CHARACTERISTIC_BASE
    advances: int = 0

    @property
    def derived_value(self) -> int:
        return self.base + ADVANCE_VALUE * self.advances


@dataclass
class ItemTag:
    name: str
    parameter: str = ""
    description: str = ""

    @property
    def display_name(self) -> str:
        return f"{self.name} ({self.parameter})" if self.parameter else self.name


@dataclass
class EquipmentItem:
    name: str
    id: str = field(default_factory=new_id)
    description: str = ""
    category: str = DEFAULT_EQUIPMENT_CATEGORY
    encumbrance: int = 0
    cost: int = 0
    availability: str = "Common"
    qualities: list[str] = field(default_factory=list)
    flaws: list[str] = field(default_factory=list)
    traits: list[ItemTag] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    armour_value: int = 0


@dataclass
class WeaponItem:
    name: str
    id: str = field(default_factory=new_id)
    description: str = ""
    category: str = ""
    specialization: str = "None"
    damage: str = ""
    range: str = ""
    magazine: int = 0
    encumbrance: int = 0
    cost: int = 0
    availability: str = "Common"
    traits: list[ItemTag] = field(default_factory=list)
    modifications: list[str] = field(default_factory=list)
    qualities: list[str] = field(default_factory=list)
    flaws: list[str] = field(default_factory=list)

    def migrate_category(self) -> None:
        if self.category:
            return
        lowered = self.name.lower()
        if any(word in lowered for word in ("grenade", "explosive", "mine")):
            self.category = "Grenades & Explosives"
        elif self.specialization in ("Pistol", "Long Gun", "Ordnance"):
            self.category = "Ranged"
        elif self.specialization in ("One-handed", "Two-handed", "Brawling"):
            self.category = "Melee"
        else:
            self.category = DEFAULT_WEAPON_CATEGORY


@dataclass
class Wound:
    name: str
    description: str = ""
    treatment: str = ""
    id: str = field(default_factory=new_id)

    @property
    def is_active(self) -> bool:
        return self.treatment.strip().lower() not in INACTIVE_TREATMENTS


@dataclass
class ConditionEntry:
    name: str
    description: str = ""
    id: str = field(default_factory=new_id)


@dataclass
class Reputation:
    faction: str
    individual: str = ""
    value: int = 0

    @property
    def display_name(self) -> str:
        return f"{self.individual} ({self.faction})" if self.individual else self.faction

    @property
    def key(self) -> str:
        return f"{self.faction}|{self.individual}"


@dataclass
class ChangeLogEntry:
    summary: str
    session: int = FIRST_SESSION
    timestamp: datetime = field(default_factory=utcnow)
    id: str = field(default_factory=new_id)


def default_characteristics() -> dict[str, Characteristic]:
    return {name: Characteristic() for name in CHARACTERISTIC_NAMES}


def default_legacy_characteristics() -> dict[str, int]:
    return {name: LEGACY_CHARACTERISTIC_DEFAULT for name in LEGACY_CHARACTERISTIC_NAMES}


@dataclass
class Character:
    id: str = field(default_factory=new_id)
    name: str = ""
    player: str = ""
    campaign: str = ""
    is_archived: bool = False
    creation_progress: int = 0

    homeworld: str = ""
    faction: str = ""
    role: str = ""
    selected_faction_talent_choice: str = ""

    background: str = ""
    short_term_goal: str = ""
    long_term_goal: str = ""
    description: str = ""
    notes: str = ""

    characteristics: dict[str, Characteristic] = field(default_factory=default_characteristics)
    legacy_characteristics: dict[str, int] = field(default_factory=default_legacy_characteristics)
    skill_advances: dict[str, int] = field(default_factory=dict)
    faction_skill_advances: dict[str, int] = field(default_factory=dict)
    skill_specializations: dict[str, dict[str, int]] = field(default_factory=dict)
    specialization_advances: dict[str, int] = field(default_factory=dict)
    talents: set[str] = field(default_factory=set)
    psychic_powers: list[str] = field(default_factory=list)

    equipment: list[EquipmentItem] = field(default_factory=list)
    weapons: list[WeaponItem] = field(default_factory=list)
    reputations: list[Reputation] = field(default_factory=list)

    head_injuries: list[Wound] = field(default_factory=list)
    arm_injuries: list[Wound] = field(default_factory=list)
    body_injuries: list[Wound] = field(default_factory=list)
    leg_injuries: list[Wound] = field(default_factory=list)
    conditions: list[ConditionEntry] = field(default_factory=list)

    wounds: int = 0
    max_wounds: int = 0
    corruption: int = 0
    critical_wounds: int = 0
    fate: int = DEFAULT_FATE
    spent_fate: int = 0
    solars: int = 0
    total_experience: int = 0
    spent_experience: int = 0

    applied_origin_bonuses: dict[str, bool] = field(default_factory=dict)
    applied_faction_bonuses: dict[str, bool] = field(default_factory=dict)

    current_session: int = FIRST_SESSION
    change_log: list[ChangeLogEntry] = field(default_factory=list)
    date_created: datetime = field(default_factory=utcnow)
    last_modified: datetime = field(default_factory=utcnow)

    @property
    def is_creation_complete(self) -> bool:
        return self.creation_progress >= TOTAL_STAGES

    @property
    def current_stage(self) -> str:
        index = min(max(self.creation_progress, 0), TOTAL_STAGES - 1)
        return CREATION_STAGES[index]

    def characteristic(self, name: str) -> Characteristic:
        return self.characteristics.get(name) or Characteristic()

    def injuries(self, location: str) -> list[Wound]:
        key = location.strip().lower()
        if key not in INJURY_LOCATIONS:
            return []
        return getattr(self, f"{key}_injuries")

    def sorted_talents(self) -> list[str]:
        return sorted(self.talents)

    def touch(self) -> None:
        self.last_modified = utcnow()


def set_characteristic(
    character: Character,
    name: str,
    *,
    base: int | None = None,
    advances: int | None = None,
) -> Characteristic:
    current = character.characteristic(name)
    updated = Characteristic(
        base=max(MIN_CHARACTERISTIC_BASE, current.base if base is None else int(base)),
        advances=max(0, current.advances if advances is None else int(advances)),
    )
    character.characteristics[name] = updated
    character.touch()
    return updated


def add_characteristic_bonus(character: Character, name: str, bonus: int) -> None:
    if not name or not bonus:
        return
    current = character.characteristic(name)
    set_characteristic(character, name, base=current.base + bonus)
