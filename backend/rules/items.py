from __future__ import annotations

from rules.catalog import (
    ArmourTemplate,
    EquipmentTemplate,
    TagSpec,
    WeaponTemplate,
    find_flaw,
    find_quality,
    find_trait,
    get_armour_template,
    get_category_for_equipment,
    get_category_for_weapon,
    get_equipment_template,
    get_weapon_modification,
    get_weapon_template,
    parse_tag,
)
from rules.character import EquipmentItem, ItemTag, WeaponItem

def create_equipment(template: EquipmentTemplate) -> EquipmentItem:
    return EquipmentItem(
        name=template.name,
        description=template.description,
        category=template.category,
        encumbrance=template.encumbrance,
        cost=template.cost,
        availability=template.availability,
        qualities=list(template.qualities),
        flaws=list(template.flaws),
        traits=_tags(template.traits),
    )


def create_armour(template: ArmourTemplate) -> EquipmentItem:
    return EquipmentItem(
        name=template.name,
        description=template.description,
        category=template.category,
        encumbrance=template.encumbrance,
        cost=template.cost,
        availability=template.availability,
        traits=_tags(template.traits),
        locations=list(template.locations),
        armour_value=template.armour_value,
    )


def create_weapon(template: WeaponTemplate) -> WeaponItem:
    return WeaponItem(
        name=template.name,
        description=template.description,
        category=template.category,
        specialization=template.specialization,
        damage=template.damage,
        range=template.range,
        magazine=template.magazine,
        encumbrance=template.encumbrance,
        cost=template.cost,
        availability=template.availability,
        traits=_tags(template.traits),
    )


def split_item_name(text: str) -> tuple[str, list[str]]:
    """Return the base name and the parenthesised segments after it."""
    cleaned = text.strip()
    base, separator, rest = cleaned.partition(" (")
    if not separator:
        return cleaned, []
    segments = [segment.strip() for segment in _top_level_segments("(" + rest)]
    return base.strip(), [segment for segment in segments if segment]


def _top_level_segments(text: str) -> list[str]:
    # "(Penetrating (4))" is one segment; the inner parameter stays with its tag.
    segments = []
    depth = 0
    start = 0
    for index, char in enumerate(text):
        if char == "(":
            if depth == 0:
                start = index + 1
            depth += 1
        elif char == ")" and depth:
            depth -= 1
            if depth == 0:
                segments.append(text[start:index])
    return segments


def is_weapon_name(text: str) -> bool:
    if get_weapon_template(text):
        return True
    base, _ = split_item_name(text)
    return get_weapon_template(base) is not None


def parse_equipment_from_name(text: str) -> EquipmentItem:
    full = text.strip()
    template_item = _equipment_from_template(full)
    if template_item is not None:
        return template_item

    base, segments = split_item_name(full)
    item = _equipment_from_template(base)
    if item is None:
        item = EquipmentItem(name=base, category=get_category_for_equipment(base))
    apply_equipment_segments(item, segments)
    return item


def parse_weapon_from_name(text: str) -> WeaponItem:
    full = text.strip()
    template = get_weapon_template(full)
    if template is not None:
        return create_weapon(template)

    base, segments = split_item_name(full)
    template = get_weapon_template(base)
    if template is not None:
        item = create_weapon(template)
    else:
        item = WeaponItem(name=base, category=get_category_for_weapon(base))
    apply_weapon_segments(item, segments)
    return item


def parse_granted_item(text: str) -> EquipmentItem | WeaponItem:
    if is_weapon_name(text):
        return parse_weapon_from_name(text)
    return parse_equipment_from_name(text)


def apply_equipment_segments(item: EquipmentItem, segments: list[str]) -> None:
    unclassified = []
    for segment in segments:
        if not _attach_common_tag(item, segment):
            unclassified.append(segment)
    _keep_unclassified(item, unclassified)


def apply_weapon_segments(item: WeaponItem, segments: list[str]) -> None:
    unclassified = []
    for segment in segments:
        modification = get_weapon_modification(segment)
        if modification is not None:
            if modification.name not in item.modifications:
                item.modifications.append(modification.name)
            continue
        if not _attach_common_tag(item, segment):
            unclassified.append(segment)
    _keep_unclassified(item, unclassified)


def _attach_common_tag(item: EquipmentItem | WeaponItem, segment: str) -> bool:
    quality = find_quality(segment)
    if quality is not None:
        if quality not in item.qualities:
            item.qualities.append(quality)
        return True

    flaw = find_flaw(segment)
    if flaw is not None:
        if flaw not in item.flaws:
            item.flaws.append(flaw)
        return True

    spec = parse_tag(segment)
    trait_name = find_trait(spec.name)
    if trait_name is not None:
        if not any(
            tag.name.lower() == trait_name.lower() and tag.parameter == spec.parameter
            for tag in item.traits
        ):
            item.traits.append(ItemTag(name=trait_name, parameter=spec.parameter))
        return True
    return False


def _keep_unclassified(item: EquipmentItem | WeaponItem, segments: list[str]) -> None:
    for segment in segments:
        suffix = f" ({segment})"
        if suffix not in item.name:
            item.name = f"{item.name}{suffix}"


def _equipment_from_template(name: str) -> EquipmentItem | None:
    template = get_equipment_template(name)
    if template is not None:
        return create_equipment(template)
    armour = get_armour_template(name)
    if armour is not None:
        return create_armour(armour)
    return None


def _tags(specs: tuple[TagSpec, ...]) -> list[ItemTag]:
    return [ItemTag(name=spec.name, parameter=spec.parameter) for spec in specs]
