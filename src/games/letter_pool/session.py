from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from src.domain.models import PuzzleState, Submission, utc_now
from src.games.letter_pool.letters import LetterMultiset


@dataclass
class PuzzleSession:
    """
    One puzzle owned by one session key.

    Lifecycle: Active -> Inactive, never back. The pool string is fixed at
    creation; `remaining` shrinks as submissions are accepted and
    `submissions` is append-only. `version` is bumped by the store on every
    write so stale copies can be detected.
    """

    id: str
    session_key: str
    puzzle_string: str
    remaining: LetterMultiset
    is_active: bool
    created_at: datetime
    submissions: list[Submission] = field(default_factory=list)
    version: int = 0

    @classmethod
    def new(cls, *, session_key: str, puzzle_string: str, now: datetime | None = None) -> "PuzzleSession":
        return cls(
            id=uuid.uuid4().hex,
            session_key=session_key,
            puzzle_string=puzzle_string,
            remaining=LetterMultiset(puzzle_string),
            is_active=True,
            created_at=now or utc_now(),
        )

    @property
    def total_score(self) -> int:
        return sum(s.score for s in self.submissions)

    def has_word(self, word: str) -> bool:
        return any(s.word == word for s in self.submissions)

    def add_submission(self, submission: Submission) -> None:
        self.submissions.append(submission)

    def deactivate(self) -> None:
        self.is_active = False

    def to_state(self) -> PuzzleState:
        return PuzzleState(
            session_id=self.id,
            puzzle_string=self.puzzle_string,
            remaining_letters=str(self.remaining),
            total_score=self.total_score,
            is_active=self.is_active,
            created_at=self.created_at,
            submissions=tuple(self.submissions),
        )
