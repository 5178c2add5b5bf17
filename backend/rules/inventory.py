from __future__ import annotations

from rules.character import Character, EquipmentItem, WeaponItem
from rules.items import parse_equipment_from_name, parse_weapon_from_name


def add_equipment(character: Character, item: EquipmentItem) -> EquipmentItem:
    character.equipment.append(item)
    character.touch()
    return item


def add_weapon(character: Character, item: WeaponItem) -> WeaponItem:
    character.weapons.append(item)
    character.touch()
    return item


def add_equipment_by_name(character: Character, name: str) -> EquipmentItem:
    return add_equipment(character, parse_equipment_from_name(name))


def add_weapon_by_name(character: Character, name: str) -> WeaponItem:
    return add_weapon(character, parse_weapon_from_name(name))


def find_equipment(character: Character, item_id: str) -> EquipmentItem | None:
    return next((item for item in character.equipment if item.id == item_id), None)


def find_weapon(character: Character, item_id: str) -> WeaponItem | None:
    return next((item for item in character.weapons if item.id == item_id), None)


def remove_equipment(character: Character, item_id: str) -> bool:
    return _remove_by_id(character, character.equipment, item_id) is not None


def remove_weapon(character: Character, item_id: str) -> bool:
    return _remove_by_id(character, character.weapons, item_id) is not None


def replace_equipment(character: Character, item_id: str, replacement: EquipmentItem) -> bool:
    index = _remove_by_id(character, character.equipment, item_id)
    if index is None:
        return False
    character.equipment.insert(index, replacement)
    return True


def replace_weapon(character: Character, item_id: str, replacement: WeaponItem) -> bool:
    index = _remove_by_id(character, character.weapons, item_id)
    if index is None:
        return False
    character.weapons.insert(index, replacement)
    return True


def _remove_by_id(character: Character, items: list, item_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.id == item_id:
            del items[index]
            character.touch()
            return index
    return None
