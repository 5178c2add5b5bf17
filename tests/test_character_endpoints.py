from fastapi.testclient import TestClient

from app.main import app


def _client(monkeypatch, session_factory, fail_on=None) -> TestClient:
    monkeypatch.setattr("app.main.SessionLocal", session_factory(fail_on))
    return TestClient(app)


def _create(client, name="Vessa Dorn", **extra) -> dict:
    response = client.post("/characters", json={"name": name, **extra})
    assert response.status_code == 200
    return response.json()


def test_catalog_previews() -> None:
    client = TestClient(app)

    origins = client.get("/catalog/origins").json()
    factions = client.get("/catalog/factions").json()
    roles = client.get("/catalog/roles").json()

    assert {"Hive World", "Voidborn"} <= {origin["name"] for origin in origins}
    assert set(origins[0].keys()) >= {"name", "mandatory_bonus", "choice_bonus", "granted_equipment"}
    inquisition = next(faction for faction in factions if faction["name"] == "Inquisition")
    assert inquisition["solars"] == 400
    warrior = next(role for role in roles if role["name"] == "Warrior")
    assert warrior["talent_count"] == 2


def test_create_and_fetch_character(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    created = _create(client, player="Mel", campaign="Hive Secundus")

    response = client.get(f"/characters/{created['id']}")

    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Vessa Dorn"
    assert payload["current_stage"] == "Basic Info"
    assert payload["characteristics"]["Strength"] == {"base": 20, "advances": 0}
    assert payload["derived"]["max_wounds"] == 8


def test_unknown_character_is_404(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    assert client.get("/characters/missing").status_code == 404
    assert client.delete("/characters/missing").status_code == 404
    assert client.post("/characters/missing/archive").status_code == 404


def test_origin_applies_once(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]
    body = {"origin": "Hive World", "chosen_bonus": "Ballistic Skill"}

    response = client.post(f"/characters/{character_id}/origin", json=body)
    assert response.status_code == 200
    payload = response.json()
    assert payload["characteristics"]["Agility"]["base"] == 25
    assert payload["characteristics"]["Ballistic Skill"]["base"] == 25
    assert [item["name"] for item in payload["equipment"]] == ["Filtration Plugs"]

    again = client.post(f"/characters/{character_id}/origin", json=body)
    assert again.status_code == 409
    stored = client.get(f"/characters/{character_id}").json()
    assert stored["characteristics"]["Agility"]["base"] == 25
    assert len(stored["equipment"]) == 1


def test_origin_validation(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    missing = client.post(f"/characters/{character_id}/origin", json={"origin": "Atlantis"})
    invalid = client.post(
        f"/characters/{character_id}/origin", json={"origin": "Hive World", "chosen_bonus": "Strength"}
    )

    assert missing.status_code == 404
    assert invalid.status_code == 400


def test_faction_and_role_flow(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    bad = client.post(
        f"/characters/{character_id}/faction",
        json={"faction": "Inquisition", "chosen_bonus": "Toughness", "skill_points": {"Awareness": 9}},
    )
    assert bad.status_code == 400

    faction = client.post(
        f"/characters/{character_id}/faction",
        json={
            "faction": "Inquisition",
            "chosen_bonus": "Toughness",
            "skill_points": {"Awareness": 3, "Logic": 2},
        },
    )
    assert faction.status_code == 200
    payload = faction.json()
    assert payload["solars"] == 400
    assert payload["faction_skill_advances"] == {"Awareness": 3, "Logic": 2}
    assert payload["reputation"] == [{"faction": "Inquisition", "individual": "", "value": 1}]

    role = client.post(
        f"/characters/{character_id}/role",
        json={
            "role": "Savant",
            "talents": ["Data Delver", "Chirurgeon"],
            "skill_points": {"Logic": 2, "Tech": 1},
            "specialization_points": {"Tech": {"Engineering": 2}},
            "equipment": ["Auspex", "Multikey"],
        },
    )
    assert role.status_code == 200
    payload = role.json()
    assert payload["role"] == "Savant"
    assert payload["skill_specializations"] == {"Tech": {"Engineering": 2}}
    assert payload["visible_specializations"] == [{"name": "Engineering", "skill": "Tech", "advances": 2}]


def test_role_cannot_be_applied_twice(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]
    body = {
        "role": "Savant",
        "talents": ["Data Delver", "Chirurgeon"],
        "skill_points": {"Logic": 2, "Tech": 1},
        "specialization_points": {"Tech": {"Engineering": 2}},
        "equipment": ["Auspex", "Multikey"],
    }

    first = client.post(f"/characters/{character_id}/role", json=body)
    second = client.post(f"/characters/{character_id}/role", json=body)

    assert first.status_code == 200
    assert second.status_code == 409
    stored = client.get(f"/characters/{character_id}").json()
    assert stored["skill_advances"] == first.json()["skill_advances"]
    assert stored["skill_specializations"] == {"Tech": {"Engineering": 2}}
    assert len(stored["equipment"]) == len(first.json()["equipment"])


def test_complete_requires_choices(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    assert client.post(f"/characters/{character_id}/complete").status_code == 400

    assert client.post(
        f"/characters/{character_id}/origin", json={"origin": "Voidborn", "chosen_bonus": "Willpower"}
    ).status_code == 200
    assert client.post(
        f"/characters/{character_id}/faction",
        json={"faction": "Adeptus Mechanicus", "chosen_bonus": "Agility", "skill_points": {"Tech": 5}},
    ).status_code == 200
    assert client.post(
        f"/characters/{character_id}/role",
        json={
            "role": "Savant",
            "talents": ["Artistic", "Lawbringer"],
            "skill_points": {"Tech": 3},
            "specialization_points": {"Lore": {"Imperium": 2}},
            "equipment": ["Auto-quill", "Diagnostor"],
        },
    ).status_code == 200

    response = client.post(f"/characters/{character_id}/complete")
    assert response.status_code == 200
    payload = response.json()
    assert payload["is_creation_complete"] is True
    assert payload["wounds"] == payload["max_wounds"]
    assert payload["change_log"][-1]["summary"] == "Character created"


def test_stage_advance(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    assert client.post(f"/characters/{character_id}/stage", json={"stage": 0}).json()["creation_progress"] == 1
    assert client.post(f"/characters/{character_id}/stage", json={"stage": 2}).status_code == 400


def test_patch_logs_changes(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    response = client.patch(
        f"/characters/{character_id}",
        json={"name": "Vex", "wounds": 4, "add_talents": ["Drilled"], "add_equipment": ["Knife", "Knife"]},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["change_log"][-1]["summary"] == (
        "name Vessa Dorn→Vex, talent added: Drilled, equipment added: Knife, equipment added: Knife"
    )

    knife_id = payload["equipment"][0]["id"]
    response = client.patch(f"/characters/{character_id}", json={"remove_equipment": [knife_id]})
    assert response.json()["change_log"][-1]["summary"] == "equipment removed: Knife"
    assert len(response.json()["equipment"]) == 1

    response = client.patch(f"/characters/{character_id}", json={"wounds": 1, "corruption": 2})
    assert len(response.json()["change_log"]) == 2


def test_patch_only_touches_known_characteristics(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    response = client.patch(
        f"/characters/{character_id}",
        json={"characteristics": {"Luck": {"base": 40}, "Strength": {"base": -5}}},
    )

    assert response.status_code == 200
    characteristics = response.json()["characteristics"]
    assert "Luck" not in characteristics
    assert characteristics["Strength"]["base"] == 1


def test_patch_rejects_unknown_injury_location(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    response = client.patch(
        f"/characters/{character_id}", json={"add_injuries": [{"location": "tail", "name": "Docked"}]}
    )

    assert response.status_code == 400


def test_sessions_and_changelog(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    first = client.post(f"/characters/{character_id}/session/decrement").json()
    assert first == {"current_session": 1, "entry": None}

    bumped = client.post(f"/characters/{character_id}/session/increment").json()
    assert bumped["current_session"] == 2
    assert bumped["entry"]["summary"] == "Session incremented to 2"
    client.patch(f"/characters/{character_id}", json={"solars": 10})

    changelog = client.get(f"/characters/{character_id}/changelog").json()
    assert changelog["current_session"] == 2
    assert [group["session"] for group in changelog["sessions"]] == [2]
    assert [entry["summary"] for entry in changelog["sessions"][0]["entries"]] == [
        "solars 0→10",
        "Session incremented to 2",
    ]


def test_roster_filters(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory)
    kept = _create(client, name="Abel", campaign="Void Run")["id"]
    _create(client, name="Mira", campaign="Hive Secundus")
    client.post(f"/characters/{kept}/archive")

    archived = client.get("/characters", params={"status": "archived"}).json()
    assert [character["name"] for character in archived] == ["Abel"]
    searched = client.get("/characters", params={"query": "hive"}).json()
    assert [character["name"] for character in searched] == ["Mira"]
    campaigns = client.get("/campaigns").json()
    assert campaigns["campaigns"] == ["Hive Secundus", "Void Run"]
    assert campaigns["counts"]["archived"] == 1

    client.post(f"/characters/{kept}/unarchive")
    assert client.get("/characters", params={"status": "archived"}).json() == []


def test_delete_character(monkeypatch, session_factory, record_store) -> None:
    client = _client(monkeypatch, session_factory)
    character_id = _create(client)["id"]

    response = client.delete(f"/characters/{character_id}")

    assert response.status_code == 200
    assert record_store == {}


def test_save_failure_surfaces_as_500(monkeypatch, session_factory) -> None:
    client = _client(monkeypatch, session_factory, {"commit"})
    response = client.post("/characters", json={"name": "Vessa"})
    assert response.status_code == 500
