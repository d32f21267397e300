from __future__ import annotations

import asyncio
import logging
import weakref

from src.db.repo.sessions_repo import SessionsRepository
from src.domain.errors import ConcurrencyConflict, NoActivePuzzle
from src.domain.models import EndGameResult, LeaderboardEntry, PuzzleState, SubmissionResult
from src.games.letter_pool.judge import WordJudge
from src.games.letter_pool.letters import LetterPool
from src.games.letter_pool.oracle import WITNESS_LIMIT, CompletionOracle
from src.games.letter_pool.session import PuzzleSession
from src.services.leaderboard_service import LeaderboardService
from src.services.wordlist import WordList

logger = logging.getLogger(__name__)

MAX_CONFLICT_RETRIES = 3


class PuzzleService:
    """
    Letter-pool puzzle, one per session key.

    Rules:
      - a 14-letter pool (3 vowels + 11 common letters, shuffled)
      - each accepted word consumes its letters and scores 1 point per letter
      - a word may be used once per puzzle
      - the puzzle ends when no dictionary word can be spelled from what's
        left, or when the player ends it

    Concurrency:
      - one asyncio.Lock per session key serializes load -> check -> consume -> save
      - the sessions repo rejects stale versions; those are retried with a
        fresh load, up to MAX_CONFLICT_RETRIES
    """

    def __init__(
        self,
        *,
        sessions_repo: SessionsRepository,
        leaderboard: LeaderboardService,
        wordlist: WordList,
        pool: LetterPool | None = None,
        witness_limit: int = WITNESS_LIMIT,
    ) -> None:
        self._sessions_repo = sessions_repo
        self._leaderboard = leaderboard
        self._wordlist = wordlist
        self._pool = pool or LetterPool()
        self._judge = WordJudge(
            wordlist=wordlist,
            oracle=CompletionOracle(wordlist, limit=witness_limit),
            max_length=self._pool.length,
        )

        # Entries vanish once no coroutine holds or waits on the lock.
        self._session_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    # -------------------------
    # Locks
    # -------------------------

    def _lock_for_session(self, session_key: str) -> asyncio.Lock:
        lock = self._session_locks.get(session_key)
        if lock is None:
            lock = self._session_locks[session_key] = asyncio.Lock()
        return lock

    # -------------------------
    # Session helpers
    # -------------------------

    async def _active_session(self, session_key: str) -> PuzzleSession:
        session = await self._sessions_repo.get_current(session_key)
        if not session or not session.is_active:
            raise NoActivePuzzle()
        return session

    # -------------------------
    # Public API
    # -------------------------

    async def create_puzzle(self, session_key: str) -> PuzzleState:
        """
        Start a puzzle, or return the one already running for this key.
        """
        async with self._lock_for_session(session_key):
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                current = await self._sessions_repo.get_current(session_key)
                if current and current.is_active:
                    return current.to_state()

                session = PuzzleSession.new(session_key=session_key, puzzle_string=self._pool.generate())
                try:
                    await self._sessions_repo.insert_session(session)
                except ConcurrencyConflict:
                    logger.warning("Create conflict for %s (attempt %s/%s)", session_key, attempt, MAX_CONFLICT_RETRIES)
                    continue

                logger.info("New puzzle %s for %s: %s", session.id, session_key, session.puzzle_string)
                return session.to_state()

        raise ConcurrencyConflict(f"Could not create puzzle for {session_key}")

    async def submit_word(self, session_key: str, word: str) -> SubmissionResult:
        async with self._lock_for_session(session_key):
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                session = await self._active_session(session_key)
                result = self._judge.submit(session, word)

                try:
                    await self._sessions_repo.save_submission(session, session.submissions[-1])
                except ConcurrencyConflict:
                    logger.warning("Submit conflict for %s (attempt %s/%s)", session_key, attempt, MAX_CONFLICT_RETRIES)
                    continue
                break
            else:
                raise ConcurrencyConflict(f"Could not save submission for {session_key}")

        logger.info(
            "Accepted %s (+%s) for %s; remaining=%s complete=%s",
            result.word,
            result.score,
            session_key,
            result.remaining_letters,
            result.is_complete,
        )

        try:
            await self._leaderboard.record(result.word, result.score)
        except ConcurrencyConflict:
            logger.exception("Failed recording %s on the leaderboard", result.word)

        return result

    async def get_puzzle_state(self, session_key: str, *, include_finished: bool = False) -> PuzzleState:
        session = await self._sessions_repo.get_current(session_key)
        if not session or (not session.is_active and not include_finished):
            raise NoActivePuzzle()
        return session.to_state()

    async def end_game(self, session_key: str) -> EndGameResult:
        """
        Finish the puzzle and list every word that could still have been made.
        """
        async with self._lock_for_session(session_key):
            for attempt in range(1, MAX_CONFLICT_RETRIES + 1):
                session = await self._active_session(session_key)
                session.deactivate()
                try:
                    await self._sessions_repo.save_status(session)
                except ConcurrencyConflict:
                    logger.warning("End-game conflict for %s (attempt %s/%s)", session_key, attempt, MAX_CONFLICT_RETRIES)
                    continue
                break
            else:
                raise ConcurrencyConflict(f"Could not end puzzle for {session_key}")

        remaining_words = self._wordlist.remaining_words(session.remaining)
        logger.info(
            "Puzzle %s ended by %s: total=%s, %s word(s) left",
            session.id,
            session_key,
            session.total_score,
            len(remaining_words),
        )
        return EndGameResult(remaining_words=remaining_words, total_score=session.total_score)

    async def get_leaderboard(self) -> list[LeaderboardEntry]:
        return await self._leaderboard.get_top()
