import logging
import os

from fastapi import Body, FastAPI, HTTPException
from pydantic import BaseModel, Field

from db import SessionLocal, check_db_connection
from models.codec import character_to_dict, encode_log_entry
from repository import CharacterRepository
from rules import roster
from rules.build import (
    advance_stage,
    allocate_characteristics,
    apply_faction,
    apply_origin,
    apply_role,
    can_complete_creation,
    complete_creation,
    find_choice_bonus,
    remaining_characteristic_points,
    validate_characteristic_allocation,
    validate_faction_choices,
    validate_origin_choice,
    validate_role_choices,
)
from rules.catalog import get_faction, get_origin, get_role, list_factions, list_origins, list_roles
from rules.changelog import (
    decrement_session,
    group_change_log,
    increment_session,
    save_with_change_tracking,
    take_snapshot,
)
from rules.character import CHARACTERISTIC_NAMES, INJURY_LOCATIONS, Character, set_characteristic
from rules.derived import (
    available_experience,
    available_fate,
    calculate_corruption_threshold,
    calculate_critical_wounds_threshold,
    calculate_max_wounds,
    count_active_critical_wounds,
)
from rules.injuries import add_condition, add_injury, remove_condition, remove_injury
from rules.inventory import add_equipment_by_name, add_weapon_by_name, remove_equipment, remove_weapon
from rules.reputation import remove_individual_reputation, set_individual_reputation
from rules.specializations import get_visible_specializations, set_specialization_advances

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="imperium-sheets API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


def _repository() -> CharacterRepository:
    return CharacterRepository(SessionLocal)


def _load_or_404(repository: CharacterRepository, character_id: str) -> Character:
    character = repository.get(character_id)
    if character is None:
        raise HTTPException(status_code=404, detail="Character not found")
    return character


def _save_or_500(repository: CharacterRepository, character: Character) -> None:
    if not repository.save(character):
        raise HTTPException(status_code=500, detail="Character could not be saved")


def _character_payload(character: Character) -> dict:
    payload = character_to_dict(character)
    payload["current_stage"] = character.current_stage
    payload["derived"] = {
        "max_wounds": calculate_max_wounds(character),
        "corruption_threshold": calculate_corruption_threshold(character),
        "critical_wounds_threshold": calculate_critical_wounds_threshold(character),
        "active_critical_wounds": count_active_critical_wounds(character),
        "available_experience": available_experience(character),
        "available_fate": available_fate(character),
    }
    payload["visible_specializations"] = [
        {"name": entry.name, "skill": entry.skill, "advances": entry.advances}
        for entry in get_visible_specializations(character)
    ]
    return payload


def _summary(character: Character) -> "CharacterSummary":
    return CharacterSummary(
        id=character.id,
        name=character.name,
        player=character.player,
        campaign=character.campaign,
        faction=character.faction,
        role=character.role,
        is_archived=character.is_archived,
        is_creation_complete=character.is_creation_complete,
        current_stage=character.current_stage,
    )


def _bonus_dict(bonus) -> dict | None:
    if bonus is None:
        return None
    return {"characteristic": bonus.characteristic, "bonus": bonus.bonus}


class CharacterCreate(BaseModel):
    name: str = ""
    player: str = ""
    campaign: str = ""


class CharacterSummary(BaseModel):
    id: str
    name: str
    player: str
    campaign: str
    faction: str
    role: str
    is_archived: bool
    is_creation_complete: bool
    current_stage: str


class OriginPreview(BaseModel):
    name: str
    description: str | None = None
    mandatory_bonus: dict | None = None
    choice_bonus: list[dict] = Field(default_factory=list)
    granted_equipment: list[str] = Field(default_factory=list)


class FactionPreview(BaseModel):
    name: str
    description: str | None = None
    mandatory_bonus: dict | None = None
    choice_bonus: list[dict] = Field(default_factory=list)
    skill_advances: list[str] = Field(default_factory=list)
    influence_bonus: str
    talents: list[str] = Field(default_factory=list)
    talent_choices: list[dict] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    solars: int = 0


class RolePreview(BaseModel):
    name: str
    description: str | None = None
    talent_choices: list[str] = Field(default_factory=list)
    talent_count: int = 0
    skill_advances: list[str] = Field(default_factory=list)
    skill_advance_count: int = 0
    specialization_advances: list[str] = Field(default_factory=list)
    specialization_advance_count: int = 0
    weapon_choices: list[list[str]] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)
    equipment_choices: list[list[str]] = Field(default_factory=list)


class CharacteristicAllocationRequest(BaseModel):
    allocation: dict[str, int]


class OriginRequest(BaseModel):
    origin: str
    chosen_bonus: str | None = None


class FactionRequest(BaseModel):
    faction: str
    chosen_bonus: str | None = None
    talent_group_index: int | None = None
    skill_points: dict[str, int] = Field(default_factory=dict)


class RoleRequest(BaseModel):
    role: str
    talents: list[str] = Field(default_factory=list)
    skill_points: dict[str, int] = Field(default_factory=dict)
    specialization_points: dict[str, dict[str, int]] = Field(default_factory=dict)
    weapons: list[str] = Field(default_factory=list)
    equipment: list[str] = Field(default_factory=list)


class StageRequest(BaseModel):
    stage: int


class CharacteristicPatch(BaseModel):
    base: int | None = None
    advances: int | None = None


class SpecializationPatch(BaseModel):
    skill: str
    name: str
    advances: int


class ReputationPatch(BaseModel):
    faction: str
    individual: str = ""
    value: int | None = None


class InjuryPatch(BaseModel):
    location: str
    name: str
    description: str | None = None
    treatment: str | None = None


class InjuryRemoval(BaseModel):
    location: str
    id: str


class CharacterPatch(BaseModel):
    name: str | None = None
    player: str | None = None
    campaign: str | None = None
    background: str | None = None
    short_term_goal: str | None = None
    long_term_goal: str | None = None
    description: str | None = None
    notes: str | None = None
    wounds: int | None = None
    corruption: int | None = None
    critical_wounds: int | None = None
    fate: int | None = None
    spent_fate: int | None = None
    solars: int | None = None
    total_experience: int | None = None
    spent_experience: int | None = None
    characteristics: dict[str, CharacteristicPatch] = Field(default_factory=dict)
    legacy_characteristics: dict[str, int] = Field(default_factory=dict)
    skill_advances: dict[str, int] = Field(default_factory=dict)
    specializations: list[SpecializationPatch] = Field(default_factory=list)
    add_talents: list[str] = Field(default_factory=list)
    remove_talents: list[str] = Field(default_factory=list)
    add_psychic_powers: list[str] = Field(default_factory=list)
    remove_psychic_powers: list[str] = Field(default_factory=list)
    add_equipment: list[str] = Field(default_factory=list)
    remove_equipment: list[str] = Field(default_factory=list)
    add_weapons: list[str] = Field(default_factory=list)
    remove_weapons: list[str] = Field(default_factory=list)
    reputation: list[ReputationPatch] = Field(default_factory=list)
    add_injuries: list[InjuryPatch] = Field(default_factory=list)
    remove_injuries: list[InjuryRemoval] = Field(default_factory=list)
    add_conditions: list[str] = Field(default_factory=list)
    remove_conditions: list[str] = Field(default_factory=list)


SCALAR_PATCH_FIELDS = (
    "name",
    "player",
    "campaign",
    "background",
    "short_term_goal",
    "long_term_goal",
    "description",
    "notes",
    "wounds",
    "corruption",
    "critical_wounds",
    "fate",
    "spent_fate",
    "solars",
    "total_experience",
    "spent_experience",
)


@app.get("/health")
def health() -> dict:
    try:
        check_db_connection()
    except Exception as exc:
        logger.warning("Health check failed: %s", exc)
        raise HTTPException(status_code=503, detail="Database unavailable") from exc
    return {"status": "ok"}


@app.get("/catalog/origins", response_model=list[OriginPreview])
def list_origin_previews() -> list[OriginPreview]:
    return [
        OriginPreview(
            name=origin.name,
            description=origin.description or None,
            mandatory_bonus=_bonus_dict(origin.mandatory_bonus),
            choice_bonus=[_bonus_dict(bonus) for bonus in origin.choice_bonus],
            granted_equipment=list(origin.granted_equipment),
        )
        for origin in list_origins()
    ]


@app.get("/catalog/factions", response_model=list[FactionPreview])
def list_faction_previews() -> list[FactionPreview]:
    return [
        FactionPreview(
            name=faction.name,
            description=faction.description or None,
            mandatory_bonus=_bonus_dict(faction.mandatory_bonus),
            choice_bonus=[_bonus_dict(bonus) for bonus in faction.choice_bonus],
            skill_advances=list(faction.skill_advances),
            influence_bonus=faction.influence_bonus,
            talents=list(faction.talents),
            talent_choices=[
                {"name": choice.name, "talents": list(choice.talents)}
                for choice in faction.talent_choices
            ],
            equipment=list(faction.equipment),
            solars=faction.solars,
        )
        for faction in list_factions()
    ]


@app.get("/catalog/roles", response_model=list[RolePreview])
def list_role_previews() -> list[RolePreview]:
    return [
        RolePreview(
            name=role.name,
            description=role.description or None,
            talent_choices=list(role.talent_choices),
            talent_count=role.talent_count,
            skill_advances=list(role.skill_advances),
            skill_advance_count=role.skill_advance_count,
            specialization_advances=list(role.specialization_advances),
            specialization_advance_count=role.specialization_advance_count,
            weapon_choices=[list(group) for group in role.weapon_choices],
            equipment=list(role.equipment),
            equipment_choices=[list(group) for group in role.equipment_choices],
        )
        for role in list_roles()
    ]


@app.get("/characters", response_model=list[CharacterSummary])
def list_characters(
    query: str | None = None,
    campaign: str | None = None,
    faction: str | None = None,
    role: str | None = None,
    status: str | None = None,
) -> list[CharacterSummary]:
    characters = _repository().list_all()
    characters = roster.search(characters, query)
    if campaign:
        characters = roster.by_campaign(characters, campaign)
    characters = roster.filter_by_faction(characters, faction)
    characters = roster.filter_by_role(characters, role)
    characters = roster.by_status(characters, status)
    return [_summary(character) for character in characters]


@app.get("/campaigns")
def list_campaigns() -> dict:
    characters = _repository().list_all()
    return {"campaigns": roster.campaigns(characters), "counts": roster.counts(characters)}


@app.post("/characters")
def create_character(payload: CharacterCreate | None = Body(default=None)) -> dict:
    data = payload or CharacterCreate()
    character = Character(name=data.name.strip(), player=data.player, campaign=data.campaign)
    repository = _repository()
    _save_or_500(repository, character)
    logger.info("Created character %s", character.id)
    return _character_payload(character)


@app.get("/characters/{character_id}")
def get_character(character_id: str) -> dict:
    return _character_payload(_load_or_404(_repository(), character_id))


@app.delete("/characters/{character_id}")
def delete_character(character_id: str) -> dict:
    if not _repository().delete(character_id):
        raise HTTPException(status_code=404, detail="Character not found")
    return {"deleted": character_id}


@app.post("/characters/{character_id}/characteristics")
def allocate_characteristics_endpoint(
    character_id: str, payload: CharacteristicAllocationRequest
) -> dict:
    problems = validate_characteristic_allocation(payload.allocation)
    if problems:
        raise HTTPException(status_code=400, detail=problems)
    repository = _repository()
    character = _load_or_404(repository, character_id)
    allocate_characteristics(character, payload.allocation)
    _save_or_500(repository, character)
    result = _character_payload(character)
    result["remaining_points"] = remaining_characteristic_points(payload.allocation)
    return result


@app.post("/characters/{character_id}/origin")
def apply_origin_endpoint(character_id: str, payload: OriginRequest) -> dict:
    origin = get_origin(payload.origin)
    if origin is None:
        raise HTTPException(status_code=404, detail="Origin not found")
    problems = validate_origin_choice(origin, payload.chosen_bonus)
    if problems:
        raise HTTPException(status_code=400, detail=problems)
    repository = _repository()
    character = _load_or_404(repository, character_id)
    chosen = find_choice_bonus(origin.choice_bonus, payload.chosen_bonus)
    if not apply_origin(character, origin, chosen):
        raise HTTPException(status_code=409, detail="Origin already applied")
    _save_or_500(repository, character)
    return _character_payload(character)


@app.post("/characters/{character_id}/faction")
def apply_faction_endpoint(character_id: str, payload: FactionRequest) -> dict:
    faction = get_faction(payload.faction)
    if faction is None:
        raise HTTPException(status_code=404, detail="Faction not found")
    problems = validate_faction_choices(
        faction, payload.chosen_bonus, payload.talent_group_index, payload.skill_points
    )
    if problems:
        raise HTTPException(status_code=400, detail=problems)
    repository = _repository()
    character = _load_or_404(repository, character_id)
    applied = apply_faction(
        character,
        faction,
        find_choice_bonus(faction.choice_bonus, payload.chosen_bonus),
        payload.talent_group_index,
        payload.skill_points,
    )
    if not applied:
        raise HTTPException(status_code=409, detail="Faction already applied")
    _save_or_500(repository, character)
    return _character_payload(character)


@app.post("/characters/{character_id}/role")
def apply_role_endpoint(character_id: str, payload: RoleRequest) -> dict:
    role = get_role(payload.role)
    if role is None:
        raise HTTPException(status_code=404, detail="Role not found")
    problems = validate_role_choices(
        role,
        payload.talents,
        payload.skill_points,
        payload.specialization_points,
        payload.weapons,
        payload.equipment,
    )
    if problems:
        raise HTTPException(status_code=400, detail=problems)
    repository = _repository()
    character = _load_or_404(repository, character_id)
    if character.role:
        raise HTTPException(status_code=409, detail="Role already applied")
    apply_role(
        character,
        role,
        payload.talents,
        payload.skill_points,
        payload.specialization_points,
        payload.weapons,
        payload.equipment,
    )
    _save_or_500(repository, character)
    return _character_payload(character)


@app.post("/characters/{character_id}/stage")
def advance_stage_endpoint(character_id: str, payload: StageRequest) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    if not advance_stage(character, payload.stage):
        raise HTTPException(status_code=400, detail="Stage requirements not met")
    _save_or_500(repository, character)
    return _character_payload(character)


@app.post("/characters/{character_id}/complete")
def complete_character(character_id: str) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    if not can_complete_creation(character):
        raise HTTPException(
            status_code=400,
            detail="Name, origin, faction and role are required to complete creation",
        )
    complete_creation(character)
    _save_or_500(repository, character)
    logger.info("Completed creation for character %s", character.id)
    return _character_payload(character)


@app.patch("/characters/{character_id}")
def update_character(character_id: str, payload: CharacterPatch) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    snapshot = take_snapshot(character)
    _apply_patch(character, payload)
    character.touch()
    if not save_with_change_tracking(repository, character, snapshot):
        raise HTTPException(status_code=500, detail="Character could not be saved")
    return _character_payload(character)


def _apply_patch(character: Character, payload: CharacterPatch) -> None:
    for field_name in SCALAR_PATCH_FIELDS:
        value = getattr(payload, field_name)
        if value is not None:
            setattr(character, field_name, value)

    for name, patch in payload.characteristics.items():
        if name not in CHARACTERISTIC_NAMES:
            continue
        set_characteristic(character, name, base=patch.base, advances=patch.advances)
    character.legacy_characteristics.update(payload.legacy_characteristics)
    for skill, advances in payload.skill_advances.items():
        if advances > 0:
            character.skill_advances[skill] = advances
        else:
            character.skill_advances.pop(skill, None)
    for entry in payload.specializations:
        set_specialization_advances(character, entry.name, entry.skill, entry.advances)

    character.talents.update(payload.add_talents)
    character.talents.difference_update(payload.remove_talents)
    for power in payload.add_psychic_powers:
        if power not in character.psychic_powers:
            character.psychic_powers.append(power)
    character.psychic_powers = [
        power for power in character.psychic_powers if power not in payload.remove_psychic_powers
    ]

    for item_id in payload.remove_equipment:
        remove_equipment(character, item_id)
    for name in payload.add_equipment:
        add_equipment_by_name(character, name)
    for item_id in payload.remove_weapons:
        remove_weapon(character, item_id)
    for name in payload.add_weapons:
        add_weapon_by_name(character, name)

    for entry in payload.reputation:
        if entry.value is None:
            remove_individual_reputation(character, entry.faction, entry.individual)
        else:
            set_individual_reputation(character, entry.faction, entry.individual, entry.value)

    for removal in payload.remove_injuries:
        remove_injury(character, removal.location, removal.id)
    for injury in payload.add_injuries:
        if injury.location not in INJURY_LOCATIONS:
            raise HTTPException(status_code=400, detail=f"Unknown injury location: {injury.location}")
        add_injury(character, injury.location, injury.name, injury.description, injury.treatment)
    for condition_id in payload.remove_conditions:
        remove_condition(character, condition_id)
    for name in payload.add_conditions:
        add_condition(character, name)


@app.post("/characters/{character_id}/archive")
def archive_character(character_id: str) -> dict:
    return _set_archived(character_id, True)


@app.post("/characters/{character_id}/unarchive")
def unarchive_character(character_id: str) -> dict:
    return _set_archived(character_id, False)


def _set_archived(character_id: str, archived: bool) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    character.is_archived = archived
    character.touch()
    _save_or_500(repository, character)
    return _summary(character).model_dump()


@app.post("/characters/{character_id}/session/increment")
def increment_session_endpoint(character_id: str) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    entry = increment_session(character)
    _save_or_500(repository, character)
    return {"current_session": character.current_session, "entry": encode_log_entry(entry)}


@app.post("/characters/{character_id}/session/decrement")
def decrement_session_endpoint(character_id: str) -> dict:
    repository = _repository()
    character = _load_or_404(repository, character_id)
    entry = decrement_session(character)
    if entry is not None:
        _save_or_500(repository, character)
    return {
        "current_session": character.current_session,
        "entry": encode_log_entry(entry) if entry is not None else None,
    }


@app.get("/characters/{character_id}/changelog")
def get_changelog(character_id: str) -> dict:
    character = _load_or_404(_repository(), character_id)
    return {
        "current_session": character.current_session,
        "sessions": [
            {"session": session, "entries": [encode_log_entry(entry) for entry in entries]}
            for session, entries in group_change_log(character)
        ],
    }
