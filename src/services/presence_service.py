"""
Online / in-game / offline status of users.

Best effort only: a failed presence write is logged and otherwise ignored, so it never blocks a game transition.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from src.core.models import PresenceModel
from src.core.shared_types import PresenceStatus
from src.db.repository import PresenceRepository

logger = logging.getLogger(__name__)

LOOKING_FOR_GAME_WINDOW = timedelta(minutes=1)
ONLINE_WINDOW = timedelta(minutes=5)


class PresenceService:
    def __init__(
        self,
        repository: PresenceRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.repo = repository
        self._clock = clock

    def set_online(self, user_id: str, display_name: str) -> None:
        now = self._clock()
        self._save(
            PresenceModel(
                user_id=user_id,
                display_name=display_name,
                status=PresenceStatus.ONLINE,
                looking_for_game=False,
                updated_at=now,
                last_seen=now,
            )
        )

    def set_looking_for_game(self, user_id: str, looking: bool) -> None:
        presence = self._current(user_id)
        presence.status = PresenceStatus.ONLINE
        presence.looking_for_game = looking
        presence.updated_at = self._clock()
        self._save(presence)

    def set_in_game(self, user_id: str, game_id: str) -> None:
        presence = self._current(user_id)
        presence.status = PresenceStatus.IN_GAME
        presence.current_game_id = game_id
        presence.looking_for_game = False
        presence.updated_at = self._clock()
        self._save(presence)

    def set_offline(self, user_id: str) -> None:
        now = self._clock()
        presence = self._current(user_id)
        presence.status = PresenceStatus.OFFLINE
        presence.looking_for_game = False
        presence.current_game_id = None
        presence.last_seen = now
        presence.updated_at = now
        self._save(presence)

    def get_presence(self, user_id: str) -> Optional[PresenceModel]:
        return self.repo.get_presence(user_id)

    def get_users_looking_for_game(
        self, exclude_user_id: str, within: timedelta = LOOKING_FOR_GAME_WINDOW
    ) -> list[PresenceModel]:
        """Online users flagged as looking for a game and seen recently, except the asking user."""
        cutoff = self._clock() - within
        return [
            presence
            for presence in self.repo.list_looking_for_game(updated_after=cutoff)
            if presence.user_id != exclude_user_id
            and presence.status == PresenceStatus.ONLINE
        ]

    def get_online_users(self, within: timedelta = ONLINE_WINDOW) -> list[PresenceModel]:
        """Users with status online whose presence was updated recently (in a game does not count)."""
        return self.repo.list_online(updated_after=self._clock() - within)

    def remove_presence(self, user_id: str) -> None:
        """Forget the user entirely, e.g. when the account goes away."""
        try:
            self.repo.delete_presence(user_id)
        except SQLAlchemyError:
            logger.exception("Could not remove presence of user %s", user_id)

    def _current(self, user_id: str) -> PresenceModel:
        """Stored presence, or a fresh record if the user was never seen (or it cannot be read)."""
        try:
            presence = self.repo.get_presence(user_id)
        except SQLAlchemyError:
            logger.exception("Could not read presence of user %s", user_id)
            presence = None
        if presence is not None:
            return presence
        return PresenceModel(
            user_id=user_id,
            display_name="",
            status=PresenceStatus.ONLINE,
            looking_for_game=False,
            updated_at=self._clock(),
        )

    def _save(self, presence: PresenceModel) -> None:
        try:
            self.repo.save_presence(presence)
        except SQLAlchemyError:
            logger.exception("Could not update presence of user %s", presence.user_id)
