from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Protocol

from src.domain.errors import (
    DuplicateSubmission,
    EmptyWord,
    LettersUnavailable,
    NonAlphabetic,
    NotInDictionary,
    WordTooLong,
)
from src.domain.models import Submission, SubmissionResult, utc_now
from src.games.letter_pool.letters import PUZZLE_LENGTH
from src.games.letter_pool.oracle import CompletionOracle
from src.games.letter_pool.session import PuzzleSession
from src.utils.text import is_alphabetic, normalize_word

logger = logging.getLogger(__name__)


class Dictionary(Protocol):
    def is_word(self, w: str) -> bool:
        ...


class WordJudge:
    """
    Validates submissions against a session and applies accepted ones.

    Checks run in a fixed order and all of them happen before anything on
    the session changes, so a rejected word leaves the session untouched.
    Callers must hold the session's lock around submit(); availability is
    checked and consumed in the same call.
    """

    def __init__(
        self,
        *,
        wordlist: Dictionary,
        oracle: CompletionOracle,
        max_length: int = PUZZLE_LENGTH,
    ) -> None:
        self._wordlist = wordlist
        self._oracle = oracle
        self._max_length = max_length

    def check_shape(self, raw_word: str) -> str:
        word = normalize_word(raw_word)
        if not word:
            raise EmptyWord()
        if len(word) > self._max_length:
            raise WordTooLong()
        if not is_alphabetic(word):
            raise NonAlphabetic()
        return word

    def submit(self, session: PuzzleSession, raw_word: str, *, now: datetime | None = None) -> SubmissionResult:
        word = self.check_shape(raw_word)

        if session.has_word(word):
            raise DuplicateSubmission()
        if not self._wordlist.is_word(word):
            raise NotInDictionary()
        if not session.remaining.contains(word):
            raise LettersUnavailable()

        submission = Submission(
            id=uuid.uuid4().hex,
            word=word,
            score=len(word),
            submitted_at=now or utc_now(),
        )
        session.add_submission(submission)
        session.remaining.consume(word)

        is_complete = self._oracle.is_complete(session.remaining)
        if is_complete:
            session.deactivate()
            logger.info("Puzzle %s complete after %s (total=%s)", session.id, word, session.total_score)

        return SubmissionResult(
            word=word,
            score=submission.score,
            total_score=session.total_score,
            remaining_letters=str(session.remaining),
            is_complete=is_complete,
            submission_id=submission.id,
            puzzle_string=session.puzzle_string,
        )
