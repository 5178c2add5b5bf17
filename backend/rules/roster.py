from __future__ import annotations

from typing import Iterable

from rules.character import Character

STATUS_ACTIVE = "active"
STATUS_ARCHIVED = "archived"
STATUS_IN_CREATION = "in_creation"
STATUS_COMPLETE = "complete"
STATUSES = (STATUS_ACTIVE, STATUS_ARCHIVED, STATUS_IN_CREATION, STATUS_COMPLETE)


def sort_by_name(characters: Iterable[Character]) -> list[Character]:
    return sorted(characters, key=lambda character: character.name.lower())


def in_creation(characters: Iterable[Character]) -> list[Character]:
    return [character for character in characters if not character.is_creation_complete]


def completed(characters: Iterable[Character]) -> list[Character]:
    return [character for character in characters if character.is_creation_complete]


def active(characters: Iterable[Character]) -> list[Character]:
    return [
        character
        for character in characters
        if character.is_creation_complete and not character.is_archived
    ]


def archived(characters: Iterable[Character]) -> list[Character]:
    return [character for character in characters if character.is_archived]


def by_status(characters: Iterable[Character], status: str | None) -> list[Character]:
    selectors = {
        STATUS_ACTIVE: active,
        STATUS_ARCHIVED: archived,
        STATUS_IN_CREATION: in_creation,
        STATUS_COMPLETE: completed,
    }
    selector = selectors.get((status or "").strip().lower())
    return selector(characters) if selector else list(characters)


def campaigns(characters: Iterable[Character]) -> list[str]:
    return sorted({character.campaign for character in characters if character.campaign})


def by_campaign(characters: Iterable[Character], campaign: str) -> list[Character]:
    return [character for character in characters if character.campaign == campaign]


def search(characters: Iterable[Character], query: str | None) -> list[Character]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(characters)
    return [
        character
        for character in characters
        if any(
            needle in value.lower()
            for value in (
                character.name,
                character.player,
                character.campaign,
                character.faction,
                character.role,
            )
        )
    ]


def filter_by_faction(characters: Iterable[Character], faction: str | None) -> list[Character]:
    if not faction:
        return list(characters)
    return [character for character in characters if character.faction == faction]


def filter_by_role(characters: Iterable[Character], role: str | None) -> list[Character]:
    if not role:
        return list(characters)
    return [character for character in characters if character.role == role]


def counts(characters: Iterable[Character]) -> dict[str, int]:
    roster = list(characters)
    return {
        "total": len(roster),
        STATUS_ACTIVE: len(active(roster)),
        STATUS_ARCHIVED: len(archived(roster)),
        STATUS_IN_CREATION: len(in_creation(roster)),
        STATUS_COMPLETE: len(completed(roster)),
    }
