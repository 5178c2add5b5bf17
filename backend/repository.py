from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import CharacterRecord
from models.codec import character_to_record, record_to_character
from rules.character import Character
from rules.roster import sort_by_name

logger = logging.getLogger(__name__)


class CharacterRepository:
    """Persists characters as rows of the characters table.

    Every operation swallows database failures after logging them so callers
    only ever see a boolean, ``None`` or an empty list.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def list_all(self) -> list[Character]:
        try:
            with self._session_factory() as session:
                records = session.query(CharacterRecord).order_by(CharacterRecord.name).all()
                characters = [record_to_character(record) for record in records]
        except SQLAlchemyError:
            logger.exception("Failed to load characters")
            return []
        return sort_by_name(characters)

    def get(self, character_id: str) -> Character | None:
        try:
            with self._session_factory() as session:
                record = session.get(CharacterRecord, character_id)
                return record_to_character(record) if record is not None else None
        except SQLAlchemyError:
            logger.exception("Failed to load character %s", character_id)
            return None

    def add(self, character: Character) -> bool:
        return self.save(character)

    def save(self, character: Character) -> bool:
        with self._session_factory() as session:
            try:
                record = session.get(CharacterRecord, character.id)
                if record is None:
                    session.add(character_to_record(character))
                else:
                    character_to_record(character, record)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.exception("Failed to save character %s", character.id)
                return False
        logger.debug("Saved character %s", character.id)
        return True

    def delete(self, character_id: str) -> bool:
        with self._session_factory() as session:
            try:
                record = session.get(CharacterRecord, character_id)
                if record is None:
                    return False
                session.delete(record)
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.exception("Failed to delete character %s", character_id)
                return False
        logger.info("Deleted character %s", character_id)
        return True
