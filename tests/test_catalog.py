import json

from rules import catalog
from rules.catalog import (
    find_skill_for_specialization,
    get_armour_template,
    get_category_for_armour,
    get_category_for_equipment,
    get_category_for_weapon,
    get_condition,
    get_critical_wound,
    get_faction,
    get_origin,
    get_role,
    get_weapon_template,
    get_weapons_by_category,
    parse_tag,
)


def test_origin_lookup_is_case_insensitive() -> None:
    origin = get_origin("hive world")
    assert origin is not None
    assert origin.name == "Hive World"
    assert origin.mandatory_bonus.characteristic == "Agility"
    assert get_origin("Nowhere") is None
    assert get_origin(None) is None


def test_faction_and_role_tables_load() -> None:
    faction = get_faction("Astra Militarum")
    assert faction is not None
    assert faction.solars == 300
    assert "Drilled" in faction.talents
    assert catalog.faction_skill_pool() == 5

    role = get_role("Warrior")
    assert role is not None
    assert role.talent_count == 2
    assert len(role.weapon_choices) == 3


def test_template_lookup_and_category_fallbacks() -> None:
    template = get_weapon_template("LASGUN")
    assert template is not None
    assert template.name == "Lasgun"
    assert get_category_for_weapon("Lasgun") == "Ranged"
    assert get_category_for_weapon("Mystery Rod") == "Ranged"
    assert get_category_for_equipment("Writing Kit") == "Tools"
    assert get_category_for_equipment("Mystery Box") == "Other"
    assert get_category_for_armour("Mystery Plate") == "Basic"
    assert get_armour_template("Flak Armour") is not None
    assert all(item.category == "Melee" for item in get_weapons_by_category("Melee"))


def test_ambiguous_specialization_resolves_to_first_skill() -> None:
    assert find_skill_for_specialization("Human") == "Intuition"
    assert find_skill_for_specialization("Hide") == "Stealth"
    assert find_skill_for_specialization("Basket Weaving") == "Unknown"


def test_parse_tag_splits_parameter() -> None:
    spec = parse_tag("Penetrating (4)")
    assert spec.name == "Penetrating"
    assert spec.parameter == "4"
    assert spec.display_name == "Penetrating (4)"
    assert parse_tag("Loud").parameter == ""


def test_conditions_and_critical_wounds() -> None:
    condition = get_condition("blinded")
    assert condition is not None
    assert condition.description
    wound = get_critical_wound("Head", "Black Eye")
    assert wound is not None
    assert wound.treatment == "None."
    assert get_critical_wound("tail", "Black Eye") is None


def test_missing_catalog_dir_yields_empty_tables(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("IMPERIUM_CATALOG_DIR", str(tmp_path))
    catalog.reset_catalog()
    try:
        assert catalog.list_origins() == ()
        assert catalog.get_weapon_template("Lasgun") is None
        assert catalog.faction_skill_pool() == 5
    finally:
        monkeypatch.delenv("IMPERIUM_CATALOG_DIR")
        catalog.reset_catalog()


def test_malformed_catalog_file_is_ignored(monkeypatch, tmp_path) -> None:
    (tmp_path / "origins.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "roles.json").write_text(json.dumps({"roles": [{"name": "Warden"}]}), encoding="utf-8")
    monkeypatch.setenv("IMPERIUM_CATALOG_DIR", str(tmp_path))
    catalog.reset_catalog()
    try:
        assert catalog.list_origins() == ()
        role = catalog.get_role("Warden")
        assert role is not None
        assert role.talent_choices == ()
    finally:
        monkeypatch.delenv("IMPERIUM_CATALOG_DIR")
        catalog.reset_catalog()
