"""Aggregated per-user statistics, computed from the finished games a player took part in."""

from dataclasses import dataclass

from src.api.models import StatsRequest, UserStatsResponse
from src.core.models import GameModel
from src.core.shared_types import Status
from src.db.repository import GameRepository


@dataclass
class UserStats:
    player_id: str
    games_played: int = 0
    games_won: int = 0
    total_score: int = 0
    highest_word_score: int = 0

    @property
    def win_rate(self) -> float:
        """Percentage of played games that were won."""
        if not self.games_played:
            return 0.0
        return round(100 * self.games_won / self.games_played, 1)

    @property
    def average_score(self) -> float:
        if not self.games_played:
            return 0.0
        return round(self.total_score / self.games_played, 1)

    def add_game(self, game: GameModel) -> None:
        seat = next(seat for seat in game.seats if seat.player_id == self.player_id)
        self.games_played += 1
        self.total_score += seat.score
        self.highest_word_score = max(self.highest_word_score, seat.highest_word_score)
        if game.winner_id == self.player_id:
            self.games_won += 1


class StatsService:
    def __init__(self, repository: GameRepository) -> None:
        self.repo = repository

    def get_user_stats(self, request: StatsRequest) -> UserStatsResponse:
        """
        Only finished games that had an opponent count (a cancelled game never started).
        Scores are the points collected by words, without the end-of-game tile adjustment.
        """
        stats = UserStats(player_id=request.player_id)
        for _, game in self.repo.list_player_games(request.player_id, status=Status.FINISHED):
            if game.seats[1].player_id is None:
                continue
            stats.add_game(game)

        return UserStatsResponse(
            player_id=stats.player_id,
            games_played=stats.games_played,
            games_won=stats.games_won,
            total_score=stats.total_score,
            highest_word_score=stats.highest_word_score,
            win_rate=stats.win_rate,
            average_score=stats.average_score,
        )
