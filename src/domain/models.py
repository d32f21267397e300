from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Submission:
    id: str
    word: str
    score: int
    submitted_at: datetime


@dataclass(frozen=True)
class LeaderboardEntry:
    word: str
    score: int
    created_at: datetime


@dataclass(frozen=True)
class SubmissionResult:
    word: str
    score: int
    total_score: int
    remaining_letters: str
    is_complete: bool
    submission_id: str
    puzzle_string: str


@dataclass(frozen=True)
class PuzzleState:
    session_id: str
    puzzle_string: str
    remaining_letters: str
    total_score: int
    is_active: bool
    created_at: datetime
    submissions: tuple[Submission, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EndGameResult:
    remaining_words: list[str]
    total_score: int
