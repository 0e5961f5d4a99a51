"""
Change notification for game documents.

Subscribers register per game ID and get the stored GameModel after every committed write.
Both players subscribe to their game, so neither needs to be told about the other's actions directly.
"""

import logging
from collections import defaultdict
from typing import Callable
from uuid import UUID

from src.core.models import GameModel

logger = logging.getLogger(__name__)

Listener = Callable[[UUID, GameModel], None]
Unsubscribe = Callable[[], None]


class GameNotifier:
    def __init__(self) -> None:
        self._listeners: dict[UUID, list[Listener]] = defaultdict(list)

    def subscribe(self, game_id: UUID, listener: Listener) -> Unsubscribe:
        """Returns a function that removes the listener again (calling it twice is harmless)."""
        self._listeners[game_id].append(listener)

        def _unsubscribe() -> None:
            listeners = self._listeners.get(game_id, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(game_id, None)

        return _unsubscribe

    def publish(self, game_id: UUID, game: GameModel) -> None:
        """
        Deliver to every listener of this game.
        A failing listener is logged and skipped: the write it reports on is already committed.
        """
        for listener in list(self._listeners.get(game_id, [])):
            try:
                listener(game_id, game)
            except Exception:
                logger.exception("Listener for game %s failed", game_id)

    def listener_count(self, game_id: UUID) -> int:
        return len(self._listeners.get(game_id, []))
