"""
Blocklist Service.

Maintains the single record of forbidden substrings checked by comment
moderation. Entries are stored lowercase and without duplicates.
"""

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from core.database import Database
from core.exceptions import NotFoundError, UpstreamError
from core.logging_config import get_logger
from core.models import SINGLETON_ID, Blocklist
from core.validation import validate_blocklist_word

logger = get_logger(__name__)


def dedupe(words: List[str]) -> List[str]:
    """Lowercase and drop repeats, keeping first-seen order"""
    seen = set()
    unique = []
    for word in words:
        word = word.lower()
        if word not in seen:
            seen.add(word)
            unique.append(word)
    return unique


class BlocklistService:
    """Service for the forbidden-substring list"""

    def __init__(self, database: Database):
        self.database = database

    async def _load(self, session: AsyncSession) -> Optional[Blocklist]:
        return await session.get(Blocklist, SINGLETON_ID)

    async def list_words(self) -> List[str]:
        try:
            async with self.database.session() as session:
                record = await self._load(session)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load blocklist: {e}")
            raise UpstreamError("database", str(e)) from e

        return list(record.words) if record else []

    async def add_word(self, word: str) -> List[str]:
        word = validate_blocklist_word(word)

        try:
            async with self.database.session() as session:
                record = await self._load(session)
                if record is None:
                    record = Blocklist(id=SINGLETON_ID, words=[])

                # JSON columns only persist on reassignment
                record.words = dedupe(list(record.words) + [word])
                session.add(record)
                await session.commit()
                words = list(record.words)
        except SQLAlchemyError as e:
            logger.error(f"Failed to add blocklist word: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Blocklist word added ({len(words)} entries)")
        return words

    async def replace_word(self, old_word: str, new_word: str) -> List[str]:
        old_word = validate_blocklist_word(old_word, "oldWord")
        new_word = validate_blocklist_word(new_word, "newWord")

        try:
            async with self.database.session() as session:
                record = await self._load(session)
                if record is None:
                    raise NotFoundError("Blocklist")

                record.words = dedupe(
                    [new_word if entry.lower() == old_word else entry for entry in record.words]
                )
                session.add(record)
                await session.commit()
                words = list(record.words)
        except SQLAlchemyError as e:
            logger.error(f"Failed to replace blocklist word: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Blocklist word replaced ({len(words)} entries)")
        return words

    async def remove_word(self, word: str) -> List[str]:
        word = validate_blocklist_word(word)

        try:
            async with self.database.session() as session:
                record = await self._load(session)
                if record is None:
                    raise NotFoundError("Blocklist")

                record.words = [entry for entry in record.words if entry.lower() != word]
                session.add(record)
                await session.commit()
                words = list(record.words)
        except SQLAlchemyError as e:
            logger.error(f"Failed to remove blocklist word: {e}")
            raise UpstreamError("database", str(e)) from e

        logger.info(f"Blocklist word removed ({len(words)} entries)")
        return words

    async def find_match(self, text: str) -> Optional[str]:
        """First blocklist entry contained in the text, case-insensitively"""
        lowered = text.lower()
        for word in await self.list_words():
            if word and word.lower() in lowered:
                return word
        return None
