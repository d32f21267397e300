from __future__ import annotations

import asyncio

from src.config.settings import Settings
from src.logging.setup import setup_logging

from src.db.connection import Database
from src.db.migrations import run_migrations

from src.db.repo.leaderboard_repo import LeaderboardRepository
from src.db.repo.sessions_repo import SessionsRepository

from src.services.leaderboard_service import LeaderboardService
from src.services.puzzle_service import PuzzleService
from src.services.wordlist import WordList

from src.platforms.discord.bot import build_discord_bot


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings)

    # --- DB ---
    db = Database(settings.db_path)
    await db.connect()
    await run_migrations(db)

    # --- Load word list once ---
    wordlist = WordList.load_from_txt(settings.words_path)

    # --- Repositories ---
    sessions_repo = SessionsRepository(db)
    leaderboard_repo = LeaderboardRepository(db)

    # --- Services ---
    leaderboard = LeaderboardService(leaderboard_repo=leaderboard_repo)
    puzzles = PuzzleService(
        sessions_repo=sessions_repo,
        leaderboard=leaderboard,
        wordlist=wordlist,
    )

    # --- DI container ---
    services = {
        "db": db,
        "wordlist": wordlist,
        "leaderboard": leaderboard,
        "puzzles": puzzles,
        "puzzle_channel_id": settings.puzzle_channel_id,
    }

    # --- Discord bot ---
    discord_bot = build_discord_bot(settings=settings, services=services)

    try:
        await discord_bot.start(settings.discord_token)
    finally:
        await db.close()


if __name__ == "__main__":
    asyncio.run(main())
