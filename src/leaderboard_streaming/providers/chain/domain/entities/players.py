from dataclasses import dataclass, field
from decimal import Decimal

from leaderboard_streaming.providers.chain.domain.value_objects.amounts import (
    ZERO,
    add_amounts,
    amount_to_str,
)


@dataclass
class PlayerStats:
    """
    Aggregate stats for one account, e.g.
    {
        'address': '0x70997970C51812dc3A010C7d01b50e0d17dc79C8',
        'wins': 3,
        'totalGtWon': '600',
        'matchesPlayed': 5
    }
    """
    address: str
    wins: int = 0
    total_gt_won: Decimal = field(default=ZERO)
    matches_played: int = 0

    def record_win(self, payout: Decimal) -> None:
        # the addition is the only step that can fail, so it goes first
        self.total_gt_won = add_amounts(self.total_gt_won, payout)
        self.wins += 1
        self.matches_played += 1

    def record_played(self) -> None:
        self.matches_played += 1

    def to_dict(self) -> dict:
        """Convert PlayerStats to the camelCase shape the frontend expects."""
        return {
            'address': self.address,
            'wins': self.wins,
            'totalGtWon': amount_to_str(self.total_gt_won),
            'matchesPlayed': self.matches_played,
        }
