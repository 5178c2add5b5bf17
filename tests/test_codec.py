import json
from types import SimpleNamespace

from models.codec import (
    character_to_dict,
    character_to_record,
    decode_change_log,
    decode_characteristics,
    decode_equipment_list,
    decode_reputations,
    decode_weapon_list,
    encode_collections,
    record_to_character,
)
from rules.character import Character, ItemTag, WeaponItem, Wound, set_characteristic
from rules.build import apply_origin, find_choice_bonus
from rules.catalog import get_origin
from rules.changelog import append_log_entry
from rules.injuries import add_condition
from rules.reputation import set_individual_reputation


def _record(**values) -> SimpleNamespace:
    return SimpleNamespace(id="c-1", **values)


def test_undecodable_blobs_become_empty_defaults(caplog) -> None:
    character = record_to_character(
        _record(
            name="Vessa",
            fate="three",
            equipment_json="{broken",
            weapons_json={"not": "a list"},
            characteristics_json=["nope"],
            reputation_json=None,
            change_log_json="",
        )
    )

    assert character.name == "Vessa"
    assert character.fate == 3
    assert character.equipment == []
    assert character.weapons == []
    assert character.characteristic("Strength").base == 20
    assert character.reputations == []
    assert character.change_log == []
    assert "undecodable" in caplog.text


def test_round_trip_preserves_ids_and_fields() -> None:
    character = Character(name="Vessa", player="Mel", campaign="Hive Secundus", solars=250)
    origin = get_origin("Hive World")
    apply_origin(character, origin, find_choice_bonus(origin.choice_bonus, "Perception"))
    set_characteristic(character, "Strength", advances=2)
    character.weapons.append(
        WeaponItem(name="Lasgun", category="Ranged", traits=[ItemTag(name="Penetrating", parameter="2")])
    )
    character.body_injuries.append(Wound(name="Cracked Rib", treatment="Rest"))
    add_condition(character, "Blinded")
    set_individual_reputation(character, "Inquisition", "Lord Varn", 15)
    character.skill_specializations = {"Stealth": {"Hide": 1}}
    append_log_entry(character, "Character created")

    record = SimpleNamespace(**{f"{key}_json": value for key, value in encode_collections(character).items()})
    for key, value in character_to_dict(character).items():
        if not hasattr(record, f"{key}_json"):
            setattr(record, key, value)
    record.created_at = character.date_created
    record.updated_at = character.last_modified

    restored = record_to_character(record)

    assert restored.id == character.id
    assert restored.name == "Vessa"
    assert restored.solars == 250
    assert restored.characteristics == character.characteristics
    assert [item.id for item in restored.equipment] == [item.id for item in character.equipment]
    assert restored.equipment[0].flaws == ["Ugly"]
    assert restored.weapons[0].id == character.weapons[0].id
    assert restored.weapons[0].traits[0].display_name == "Penetrating (2)"
    assert restored.body_injuries[0].id == character.body_injuries[0].id
    assert restored.conditions[0].id == character.conditions[0].id
    assert restored.reputations == character.reputations
    assert restored.skill_specializations == {"Stealth": {"Hide": 1}}
    assert restored.change_log[0].id == character.change_log[0].id
    assert restored.applied_origin_bonuses == {"Hive World": True}
    assert restored.last_modified == character.last_modified
    assert encode_collections(restored) == encode_collections(character)


def test_legacy_string_inventories_are_upgraded() -> None:
    equipment = decode_equipment_list(json.dumps(["Writing Kit (Shoddy)", {"name": "Auspex"}]))
    weapons = decode_weapon_list(["Knife (Mono-edge)", {"name": "Frag Grenade", "specialization": "None"}])

    assert equipment[0].name == "Writing Kit"
    assert equipment[0].flaws == ["Shoddy"]
    assert equipment[1].id
    assert weapons[0].modifications == ["Mono-edge"]
    assert weapons[1].category == "Grenades & Explosives"


def test_legacy_specializations_migrate_on_load() -> None:
    character = record_to_character(_record(specialization_advances_json={"Human (Intuition)": 2}))
    assert character.skill_specializations == {"Intuition": {"Human": 2}}


def test_log_entry_without_session_defaults_to_first() -> None:
    entries = decode_change_log([{"summary": "Character created", "timestamp": "2025-01-05T10:00:00"}, {"id": "x"}])
    assert len(entries) == 1
    assert entries[0].session == 1
    assert entries[0].timestamp.year == 2025


def test_characteristics_accept_legacy_keys_and_clamp() -> None:
    decoded = decode_characteristics({"Strength": {"initialValue": 30, "advances": -2}, "Agility": {"base": 0}})
    assert decoded["Strength"].base == 30
    assert decoded["Strength"].advances == 0
    assert decoded["Agility"].base == 1


def test_duplicate_reputation_keys_collapse() -> None:
    decoded = decode_reputations(
        [
            {"faction": "Inquisition", "value": 10},
            {"faction": "Inquisition", "individual": "", "value": 40},
            {"faction": ""},
        ]
    )
    assert len(decoded) == 1
    assert decoded[0].value == 40


def test_character_to_record_copies_columns() -> None:
    character = Character(name="Vessa", current_session=4)
    set_individual_reputation(character, "Inquisition", "", 3)

    record = character_to_record(character)

    assert record.id == character.id
    assert record.name == "Vessa"
    assert record.current_session == 4
    assert record.reputation_json == [{"faction": "Inquisition", "individual": "", "value": 3}]
    assert set(record.injuries_json) == {"head", "arm", "body", "leg"}
