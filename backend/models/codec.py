from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from models import CharacterRecord
from rules.character import (
    FIRST_SESSION,
    INJURY_LOCATIONS,
    Character,
    ChangeLogEntry,
    Characteristic,
    ConditionEntry,
    EquipmentItem,
    ItemTag,
    Reputation,
    WeaponItem,
    Wound,
    default_characteristics,
    default_legacy_characteristics,
    new_id,
    utcnow,
)
from rules.items import parse_equipment_from_name, parse_weapon_from_name
from rules.specializations import migrate_from_legacy_specializations

logger = logging.getLogger(__name__)

SCALAR_TEXT_FIELDS = (
    "name",
    "player",
    "campaign",
    "homeworld",
    "faction",
    "role",
    "selected_faction_talent_choice",
    "background",
    "short_term_goal",
    "long_term_goal",
    "description",
    "notes",
)
SCALAR_INT_FIELDS = (
    "creation_progress",
    "wounds",
    "max_wounds",
    "corruption",
    "critical_wounds",
    "fate",
    "spent_fate",
    "solars",
    "total_experience",
    "spent_experience",
    "current_session",
)


def character_to_record(character: Character, record: CharacterRecord | None = None) -> CharacterRecord:
    record = record or CharacterRecord(id=character.id)
    for field_name in SCALAR_TEXT_FIELDS + SCALAR_INT_FIELDS:
        setattr(record, field_name, getattr(character, field_name))
    record.is_archived = character.is_archived
    payload = encode_collections(character)
    for key, value in payload.items():
        setattr(record, f"{key}_json", value)
    record.created_at = character.date_created
    record.updated_at = character.last_modified
    return record


def record_to_character(record: Any) -> Character:
    character = Character(id=str(getattr(record, "id", None) or new_id()))
    for field_name in SCALAR_TEXT_FIELDS:
        value = getattr(record, field_name, None)
        setattr(character, field_name, value if isinstance(value, str) else "")
    defaults = Character()
    for field_name in SCALAR_INT_FIELDS:
        setattr(
            character,
            field_name,
            _safe_int(getattr(record, field_name, None), getattr(defaults, field_name)),
        )
    character.current_session = max(FIRST_SESSION, character.current_session)
    character.is_archived = bool(getattr(record, "is_archived", False))

    decode_collections(
        character,
        {key: getattr(record, f"{key}_json", None) for key in COLLECTION_KEYS},
    )
    migrate_from_legacy_specializations(character)

    character.date_created = _as_datetime(getattr(record, "created_at", None))
    character.last_modified = _as_datetime(getattr(record, "updated_at", None))
    return character


def character_to_dict(character: Character) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": character.id, "is_archived": character.is_archived}
    for field_name in SCALAR_TEXT_FIELDS + SCALAR_INT_FIELDS:
        payload[field_name] = getattr(character, field_name)
    payload.update(encode_collections(character))
    payload["is_creation_complete"] = character.is_creation_complete
    payload["date_created"] = character.date_created.isoformat()
    payload["last_modified"] = character.last_modified.isoformat()
    return payload


COLLECTION_KEYS = (
    "characteristics",
    "legacy_characteristics",
    "skill_advances",
    "faction_skill_advances",
    "skill_specializations",
    "specialization_advances",
    "talents",
    "psychic_powers",
    "equipment",
    "weapons",
    "reputation",
    "injuries",
    "conditions",
    "applied_origin_bonuses",
    "applied_faction_bonuses",
    "change_log",
)


def encode_collections(character: Character) -> dict[str, Any]:
    return {
        "characteristics": encode_characteristics(character.characteristics),
        "legacy_characteristics": dict(character.legacy_characteristics),
        "skill_advances": dict(character.skill_advances),
        "faction_skill_advances": dict(character.faction_skill_advances),
        "skill_specializations": {
            skill: dict(names) for skill, names in character.skill_specializations.items()
        },
        "specialization_advances": dict(character.specialization_advances),
        "talents": sorted(character.talents),
        "psychic_powers": list(character.psychic_powers),
        "equipment": [encode_equipment(item) for item in character.equipment],
        "weapons": [encode_weapon(item) for item in character.weapons],
        "reputation": [
            {"faction": entry.faction, "individual": entry.individual, "value": entry.value}
            for entry in character.reputations
        ],
        "injuries": {
            location: [encode_wound(wound) for wound in character.injuries(location)]
            for location in INJURY_LOCATIONS
        },
        "conditions": [
            {"id": entry.id, "name": entry.name, "description": entry.description}
            for entry in character.conditions
        ],
        "applied_origin_bonuses": dict(character.applied_origin_bonuses),
        "applied_faction_bonuses": dict(character.applied_faction_bonuses),
        "change_log": [encode_log_entry(entry) for entry in character.change_log],
    }


def decode_collections(character: Character, payload: dict[str, Any]) -> None:
    characteristics = decode_characteristics(payload.get("characteristics"))
    character.characteristics = characteristics or default_characteristics()
    legacy = decode_int_map(payload.get("legacy_characteristics"))
    character.legacy_characteristics = {**default_legacy_characteristics(), **legacy}
    character.skill_advances = decode_int_map(payload.get("skill_advances"))
    character.faction_skill_advances = decode_int_map(payload.get("faction_skill_advances"))
    character.skill_specializations = decode_nested_int_map(payload.get("skill_specializations"))
    character.specialization_advances = decode_int_map(payload.get("specialization_advances"))
    character.talents = set(decode_str_list(payload.get("talents")))
    character.psychic_powers = decode_str_list(payload.get("psychic_powers"))
    character.equipment = decode_equipment_list(payload.get("equipment"))
    character.weapons = decode_weapon_list(payload.get("weapons"))
    character.reputations = decode_reputations(payload.get("reputation"))
    injuries = decode_injuries(payload.get("injuries"))
    for location in INJURY_LOCATIONS:
        setattr(character, f"{location}_injuries", injuries.get(location, []))
    character.conditions = decode_conditions(payload.get("conditions"))
    character.applied_origin_bonuses = decode_bool_map(payload.get("applied_origin_bonuses"))
    character.applied_faction_bonuses = decode_bool_map(payload.get("applied_faction_bonuses"))
    character.change_log = decode_change_log(payload.get("change_log"))


def encode_characteristics(characteristics: dict[str, Characteristic]) -> dict[str, dict[str, int]]:
    return {
        name: {"base": value.base, "advances": value.advances}
        for name, value in characteristics.items()
    }


def decode_characteristics(value: Any) -> dict[str, Characteristic]:
    data = _load(value, dict)
    decoded = {}
    for name, entry in data.items():
        if not isinstance(entry, dict):
            continue
        base = entry.get("base", entry.get("initialValue"))
        decoded[str(name)] = Characteristic(
            base=max(1, _safe_int(base, 20)),
            advances=max(0, _safe_int(entry.get("advances"), 0)),
        )
    return decoded


def encode_tags(tags: list[ItemTag]) -> list[dict[str, str]]:
    return [
        {"name": tag.name, "parameter": tag.parameter, "description": tag.description}
        for tag in tags
    ]


def decode_tags(value: Any) -> list[ItemTag]:
    tags = []
    for entry in _load(value, list):
        if isinstance(entry, str):
            tags.append(ItemTag(name=entry))
        elif isinstance(entry, dict) and entry.get("name"):
            tags.append(
                ItemTag(
                    name=str(entry["name"]),
                    parameter=str(entry.get("parameter") or ""),
                    description=str(entry.get("description") or entry.get("traitDescription") or ""),
                )
            )
    return tags


def encode_equipment(item: EquipmentItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "category": item.category,
        "encumbrance": item.encumbrance,
        "cost": item.cost,
        "availability": item.availability,
        "qualities": list(item.qualities),
        "flaws": list(item.flaws),
        "traits": encode_tags(item.traits),
        "locations": list(item.locations),
        "armour_value": item.armour_value,
    }


def decode_equipment_list(value: Any) -> list[EquipmentItem]:
    items = []
    for entry in _load(value, list):
        if isinstance(entry, str):
            items.append(parse_equipment_from_name(entry))
        elif isinstance(entry, dict) and entry.get("name"):
            items.append(
                EquipmentItem(
                    id=str(entry.get("id") or new_id()),
                    name=str(entry["name"]),
                    description=str(entry.get("description") or ""),
                    category=str(entry.get("category") or "Other"),
                    encumbrance=_safe_int(entry.get("encumbrance"), 0),
                    cost=_safe_int(entry.get("cost"), 0),
                    availability=str(entry.get("availability") or "Common"),
                    qualities=decode_str_list(entry.get("qualities")),
                    flaws=decode_str_list(entry.get("flaws")),
                    traits=decode_tags(entry.get("traits")),
                    locations=decode_str_list(entry.get("locations")),
                    armour_value=_safe_int(entry.get("armour_value"), 0),
                )
            )
    return items


def encode_weapon(item: WeaponItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "category": item.category,
        "specialization": item.specialization,
        "damage": item.damage,
        "range": item.range,
        "magazine": item.magazine,
        "encumbrance": item.encumbrance,
        "cost": item.cost,
        "availability": item.availability,
        "traits": encode_tags(item.traits),
        "modifications": list(item.modifications),
        "qualities": list(item.qualities),
        "flaws": list(item.flaws),
    }


def decode_weapon_list(value: Any) -> list[WeaponItem]:
    items = []
    for entry in _load(value, list):
        if isinstance(entry, str):
            items.append(parse_weapon_from_name(entry))
            continue
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        weapon = WeaponItem(
            id=str(entry.get("id") or new_id()),
            name=str(entry["name"]),
            description=str(entry.get("description") or ""),
            category=str(entry.get("category") or ""),
            specialization=str(entry.get("specialization") or "None"),
            damage=str(entry.get("damage") or ""),
            range=str(entry.get("range") or ""),
            magazine=_safe_int(entry.get("magazine"), 0),
            encumbrance=_safe_int(entry.get("encumbrance"), 0),
            cost=_safe_int(entry.get("cost"), 0),
            availability=str(entry.get("availability") or "Common"),
            traits=decode_tags(entry.get("traits")),
            modifications=decode_str_list(entry.get("modifications")),
            qualities=decode_str_list(entry.get("qualities")),
            flaws=decode_str_list(entry.get("flaws")),
        )
        weapon.migrate_category()
        items.append(weapon)
    return items


def encode_wound(wound: Wound) -> dict[str, str]:
    return {
        "id": wound.id,
        "name": wound.name,
        "description": wound.description,
        "treatment": wound.treatment,
    }


def decode_injuries(value: Any) -> dict[str, list[Wound]]:
    data = _load(value, dict)
    injuries: dict[str, list[Wound]] = {}
    for location in INJURY_LOCATIONS:
        wounds = []
        for entry in _load(data.get(location), list):
            if isinstance(entry, dict) and entry.get("name"):
                wounds.append(
                    Wound(
                        id=str(entry.get("id") or new_id()),
                        name=str(entry["name"]),
                        description=str(entry.get("description") or ""),
                        treatment=str(entry.get("treatment") or ""),
                    )
                )
        injuries[location] = wounds
    return injuries


def decode_conditions(value: Any) -> list[ConditionEntry]:
    conditions = []
    for entry in _load(value, list):
        if isinstance(entry, dict) and entry.get("name"):
            conditions.append(
                ConditionEntry(
                    id=str(entry.get("id") or new_id()),
                    name=str(entry["name"]),
                    description=str(entry.get("description") or ""),
                )
            )
    return conditions


def decode_reputations(value: Any) -> list[Reputation]:
    reputations: list[Reputation] = []
    seen: dict[tuple[str, str], Reputation] = {}
    for entry in _load(value, list):
        if not isinstance(entry, dict) or not entry.get("faction"):
            continue
        key = (str(entry["faction"]), str(entry.get("individual") or ""))
        if key in seen:
            seen[key].value = _safe_int(entry.get("value"), 0)
            continue
        reputation = Reputation(faction=key[0], individual=key[1], value=_safe_int(entry.get("value"), 0))
        seen[key] = reputation
        reputations.append(reputation)
    return reputations


def encode_log_entry(entry: ChangeLogEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "summary": entry.summary,
        "timestamp": entry.timestamp.isoformat(),
        "session": entry.session,
    }


def decode_change_log(value: Any) -> list[ChangeLogEntry]:
    entries = []
    for entry in _load(value, list):
        if not isinstance(entry, dict) or not entry.get("summary"):
            continue
        entries.append(
            ChangeLogEntry(
                id=str(entry.get("id") or new_id()),
                summary=str(entry["summary"]),
                timestamp=_as_datetime(entry.get("timestamp")),
                session=max(FIRST_SESSION, _safe_int(entry.get("session"), FIRST_SESSION)),
            )
        )
    return entries


def decode_int_map(value: Any) -> dict[str, int]:
    data = _load(value, dict)
    return {
        str(key): _safe_int(amount, 0)
        for key, amount in data.items()
        if isinstance(amount, (int, float, str))
    }


def decode_nested_int_map(value: Any) -> dict[str, dict[str, int]]:
    data = _load(value, dict)
    return {
        str(skill): {str(name): max(0, _safe_int(amount, 0)) for name, amount in names.items()}
        for skill, names in data.items()
        if isinstance(names, dict)
    }


def decode_bool_map(value: Any) -> dict[str, bool]:
    return {str(key): bool(flag) for key, flag in _load(value, dict).items()}


def decode_str_list(value: Any) -> list[str]:
    return [str(item) for item in _load(value, list) if item is not None]


def _load(value: Any, expected: type) -> Any:
    if isinstance(value, (str, bytes)):
        if not value:
            return expected()
        try:
            value = json.loads(value)
        except ValueError:
            logger.warning("Discarding undecodable %s payload", expected.__name__)
            return expected()
    return value if isinstance(value, expected) else expected()


def _safe_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value)
        except ValueError:
            return utcnow()
    if not isinstance(value, datetime):
        return utcnow()
    # Naive values are treated as UTC so log entries stay comparable.
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
