"""Runtime configuration, read from environment variables."""

import os


class Settings:
    DATABASE_URL = os.environ.get("DATABASE_URL") or "sqlite:///./scrabble.db"
    DATABASE_ECHO = os.environ.get("DATABASE_ECHO", "0") == "1"
    # Turn timer (seconds). Only these durations can be picked when creating a game.
    TURN_DURATION_SECONDS = int(os.environ.get("TURN_DURATION_SECONDS", "300"))
    ALLOWED_TURN_DURATIONS = (180, 300)
    # Private games: how long the join code stays valid after creation
    JOIN_CODE_TTL_MINUTES = int(os.environ.get("JOIN_CODE_TTL_MINUTES", "60"))
    # Matchmaking: delay between the two lookups for an opponent, and age at which requests are purged
    MATCHMAKING_RETRY_DELAY_SEC = float(
        os.environ.get("MATCHMAKING_RETRY_DELAY_SEC", "1.5")
    )
    MATCHMAKING_STALE_AFTER_SEC = int(
        os.environ.get("MATCHMAKING_STALE_AFTER_SEC", "300")
    )
    DICTIONARY_API_URL = (
        os.environ.get("DICTIONARY_API_URL")
        or "https://api.dictionaryapi.dev/api/v2/entries/en"
    )
    DICTIONARY_CACHE_TTL_SEC = int(os.environ.get("DICTIONARY_CACHE_TTL_SEC", "86400"))
    DICTIONARY_TIMEOUT_SEC = float(os.environ.get("DICTIONARY_TIMEOUT_SEC", "3"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


settings = Settings()
