"""
Word validity lookup against an online dictionary.

* HTTP 200 for GET {api_url}/{word} means the word exists, anything else means it does not.
* Answers are cached (per lower-cased word) for a day.
* If the dictionary cannot be reached, fall back to the shape check only (logged as degraded, not cached).
"""

import logging
import time
from typing import Callable, Optional

import requests

from src.core.config import settings
from src.scrabble.moves import is_valid_word_shape

logger = logging.getLogger(__name__)


class DictionaryValidator:
    def __init__(
        self,
        api_url: str = settings.DICTIONARY_API_URL,
        cache_ttl_seconds: float = settings.DICTIONARY_CACHE_TTL_SEC,
        timeout_seconds: float = settings.DICTIONARY_TIMEOUT_SEC,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.cache_ttl_seconds = cache_ttl_seconds
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()
        self._clock = clock
        self._cache: dict[str, tuple[bool, float]] = {}

    def is_real_word(self, word: str) -> bool:
        if not is_valid_word_shape(word.upper()):
            return False

        key = word.lower()
        cached = self._cached(key)
        if cached is not None:
            return cached

        try:
            response = self.session.get(
                f"{self.api_url}/{key}",
                headers={"Accept": "application/json"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.warning(
                "Dictionary lookup for %r failed (%s). Degraded to shape-only validation.",
                word,
                exc,
            )
            return True

        if response.status_code >= 500:
            logger.warning(
                "Dictionary service answered %s for %r. Degraded to shape-only validation.",
                response.status_code,
                word,
            )
            return True

        is_valid = response.status_code == 200
        self._remember(key, is_valid)
        return is_valid

    def invalid_words(self, words: list[str]) -> list[str]:
        """The words (in order, without duplicates) that are not in the dictionary."""
        rejected: list[str] = []
        for word in dict.fromkeys(words):
            if not self.is_real_word(word):
                rejected.append(word)
        return rejected

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(self, key: str) -> Optional[bool]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        is_valid, stored_at = entry
        if self._clock() - stored_at >= self.cache_ttl_seconds:
            del self._cache[key]
            return None
        return is_valid

    def _remember(self, key: str, is_valid: bool) -> None:
        """Store an answer. Expired answers for other words are dropped at the same time."""
        now = self._clock()
        self._cache = {
            word: entry
            for word, entry in self._cache.items()
            if now - entry[1] < self.cache_ttl_seconds
        }
        self._cache[key] = (is_valid, now)
