import itertools

import pytest
import pytest_asyncio

from src.db.connection import Database
from src.db.migrations import run_migrations
from src.db.repo.leaderboard_repo import LeaderboardRepository
from src.db.repo.sessions_repo import SessionsRepository
from src.games.letter_pool.letters import LetterPool
from src.services.leaderboard_service import LeaderboardService
from src.services.puzzle_service import PuzzleService
from src.services.wordlist import WordList

# 14 letters: C A T S H E D R I N O L M U
POOL = "CATSHEDRINOLMU"

WORDS = [
    "A", "I", "AT", "CAT", "ACT", "TEA", "EAT", "SEA", "THE", "HEN", "TEN", "NET",
    "SET", "RED", "SHED", "CHAIR", "MOUTH", "LION", "SOLID", "HUMOR", "TIRED",
    "ZOO", "QUIZ", "CATCH",
]


class FixedPool(LetterPool):
    """Hands out the given pool strings in order, cycling."""

    def __init__(self, *pools: str) -> None:
        super().__init__(length=len(pools[0]))
        self._pools = itertools.cycle(pools)

    def generate(self) -> str:
        return next(self._pools)


@pytest.fixture
def wordlist():
    return WordList.from_words(WORDS)


@pytest_asyncio.fixture
async def db(tmp_path):
    database = Database(tmp_path / "puzzle.sqlite")
    await database.connect()
    await run_migrations(database)
    yield database
    await database.close()


@pytest.fixture
def sessions_repo(db):
    return SessionsRepository(db)


@pytest.fixture
def leaderboard_repo(db):
    return LeaderboardRepository(db)


@pytest.fixture
def leaderboard(leaderboard_repo):
    return LeaderboardService(leaderboard_repo=leaderboard_repo)


@pytest.fixture
def make_service(sessions_repo, leaderboard, wordlist):
    def factory(*pools: str, words: WordList | None = None) -> PuzzleService:
        return PuzzleService(
            sessions_repo=sessions_repo,
            leaderboard=leaderboard,
            wordlist=words or wordlist,
            pool=FixedPool(*(pools or (POOL,))),
        )

    return factory
