from __future__ import annotations

from rules.character import Character, Reputation


def find_reputation(character: Character, faction: str, individual: str = "") -> Reputation | None:
    for entry in character.reputations:
        if entry.faction == faction and entry.individual == individual:
            return entry
    return None


def get_faction_reputation(character: Character, faction: str) -> int:
    entry = find_reputation(character, faction)
    return entry.value if entry else 0


def get_individual_reputation(character: Character, faction: str, individual: str) -> int:
    entry = find_reputation(character, faction, individual)
    return entry.value if entry else 0


def set_faction_reputation(character: Character, faction: str, value: int) -> Reputation:
    return set_individual_reputation(character, faction, "", value)


def set_individual_reputation(
    character: Character, faction: str, individual: str, value: int
) -> Reputation:
    entry = find_reputation(character, faction, individual)
    if entry is None:
        entry = Reputation(faction=faction, individual=individual, value=int(value))
        character.reputations.append(entry)
    else:
        entry.value = int(value)
    character.touch()
    return entry


def adjust_reputation(
    character: Character, faction: str, delta: int, individual: str = ""
) -> Reputation:
    current = get_individual_reputation(character, faction, individual)
    return set_individual_reputation(character, faction, individual, current + int(delta))


def remove_individual_reputation(character: Character, faction: str, individual: str) -> bool:
    entry = find_reputation(character, faction, individual)
    if entry is None:
        return False
    character.reputations.remove(entry)
    character.touch()
    return True


def individual_reputations(character: Character, faction: str | None = None) -> list[Reputation]:
    return [
        entry
        for entry in character.reputations
        if entry.individual and (faction is None or entry.faction == faction)
    ]


def faction_reputations(character: Character) -> list[Reputation]:
    return [entry for entry in character.reputations if not entry.individual]
