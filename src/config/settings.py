from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    """
    Global application settings loaded from environment variables.

    This class should remain dependency-free and side-effect free
    except for loading environment variables.
    """

    # Environment
    env: str
    log_level: str

    # Discord
    discord_token: str
    discord_guild_id: int | None
    puzzle_channel_id: int  # 0 = allowed everywhere

    # Data
    db_path: Path
    words_path: Path

    @classmethod
    def load(cls) -> "Settings":
        # Load .env for local development (noop when the env is already set)
        load_dotenv()

        discord_token = os.getenv("DISCORD_TOKEN")
        if not discord_token:
            raise RuntimeError("DISCORD_TOKEN is required")

        discord_guild_id_raw = os.getenv("DISCORD_GUILD_ID")

        return cls(
            env=os.getenv("ENV", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            discord_token=discord_token,
            discord_guild_id=int(discord_guild_id_raw) if discord_guild_id_raw else None,
            puzzle_channel_id=int(os.getenv("PUZZLE_CHANNEL_ID", "0") or 0),
            db_path=Path(os.getenv("DB_PATH", "./data/puzzle.sqlite")),
            words_path=Path(os.getenv("WORDS_PATH", "src/assets/words_en.txt")),
        )
