from repository import CharacterRepository
from rules.character import Character


def test_save_then_get_round_trips(session_factory, record_store) -> None:
    repository = CharacterRepository(session_factory())
    character = Character(name="Vessa", solars=120)

    assert repository.add(character) is True
    assert set(record_store) == {character.id}

    loaded = repository.get(character.id)
    assert loaded is not None
    assert loaded.name == "Vessa"
    assert loaded.solars == 120


def test_save_updates_existing_record_in_place(session_factory, record_store) -> None:
    repository = CharacterRepository(session_factory())
    character = Character(name="Vessa")
    repository.save(character)
    record = record_store[character.id]

    character.name = "Vex"
    assert repository.save(character) is True

    assert record_store[character.id] is record
    assert record.name == "Vex"


def test_list_all_sorts_by_name(session_factory) -> None:
    repository = CharacterRepository(session_factory())
    for name in ("mira", "Abel", "Oskar"):
        repository.save(Character(name=name))

    assert [character.name for character in repository.list_all()] == ["Abel", "mira", "Oskar"]


def test_delete(session_factory, record_store) -> None:
    repository = CharacterRepository(session_factory())
    character = Character(name="Vessa")
    repository.save(character)

    assert repository.delete(character.id) is True
    assert record_store == {}
    assert repository.delete(character.id) is False
    assert repository.get(character.id) is None


def test_failures_are_logged_not_raised(session_factory, record_store, caplog) -> None:
    failing = CharacterRepository(session_factory({"commit", "query", "get"}))
    character = Character(name="Vessa")

    assert failing.save(character) is False
    assert failing.list_all() == []
    assert failing.get(character.id) is None
    assert record_store == {}
    assert session_factory.sessions[0].rollbacks == 1
    assert "Failed to save character" in caplog.text
    assert "Failed to load characters" in caplog.text


def test_delete_failure_rolls_back(session_factory, record_store) -> None:
    CharacterRepository(session_factory()).save(Character(id="c-1", name="Vessa"))
    failing = CharacterRepository(session_factory({"commit"}))

    assert failing.delete("c-1") is False
    assert set(record_store) == {"c-1"}
