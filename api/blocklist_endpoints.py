"""
Blocklist Endpoints.

Read access to the forbidden-substring list is public; changing it requires a
session cookie. Every endpoint answers with the full, updated list.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends

from core.auth import SessionSubject
from core.logging_config import get_logger, log_function_call
from core.models import CamelModel
from services.blocklist_service import BlocklistService
from .dependencies import get_blocklist_service, require_admin

logger = get_logger(__name__)
router = APIRouter(prefix="/blocklist", tags=["Blocklist"])


class WordRequest(CamelModel):
    word: Optional[str] = None


class ReplaceWordRequest(CamelModel):
    old_word: Optional[str] = None
    new_word: Optional[str] = None


class WordsResponse(CamelModel):
    words: List[str]


@router.get("", response_model=WordsResponse)
async def list_words(blocklist: BlocklistService = Depends(get_blocklist_service)):
    return WordsResponse(words=await blocklist.list_words())


@router.post("", response_model=WordsResponse)
@log_function_call(logger)
async def add_word(
    body: WordRequest,
    subject: SessionSubject = Depends(require_admin),
    blocklist: BlocklistService = Depends(get_blocklist_service),
):
    return WordsResponse(words=await blocklist.add_word(body.word))


@router.put("", response_model=WordsResponse)
@log_function_call(logger)
async def replace_word(
    body: ReplaceWordRequest,
    subject: SessionSubject = Depends(require_admin),
    blocklist: BlocklistService = Depends(get_blocklist_service),
):
    return WordsResponse(
        words=await blocklist.replace_word(body.old_word, body.new_word)
    )


@router.delete("/{word}", response_model=WordsResponse)
@log_function_call(logger)
async def remove_word(
    word: str,
    subject: SessionSubject = Depends(require_admin),
    blocklist: BlocklistService = Depends(get_blocklist_service),
):
    return WordsResponse(words=await blocklist.remove_word(word))
