from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from leaderboard_streaming.providers.chain.domain.value_objects.amounts import amount_to_str
from leaderboard_streaming.providers.chain.domain.value_objects.match_enums import MatchStatus


@dataclass
class MatchRecord:
    match_id: str               # 0x-prefixed bytes32, lowercase
    player1: str
    player2: str
    stake: Decimal
    timestamp: datetime         # when we observed the creation, not chain time
    status: MatchStatus = MatchStatus.CREATED
    start_time: Optional[datetime] = None
    player1_staked: bool = False
    player2_staked: bool = False
    winner: Optional[str] = None

    def is_participant(self, address: str) -> bool:
        return address in (self.player1, self.player2)

    def opponent_of(self, address: str) -> str:
        return self.player2 if address == self.player1 else self.player1

    def mark_staked(self, player: str, now: datetime) -> bool:
        """
        Flag `player` as staked. Once both flags are set the match moves to
        STAKED. Returns True if the match became STAKED on this call.
        """
        if player == self.player1:
            self.player1_staked = True
        if player == self.player2:
            self.player2_staked = True

        if (self.status == MatchStatus.CREATED
                and self.player1_staked and self.player2_staked):
            self.status = MatchStatus.STAKED
            self.start_time = now
            return True
        return False

    def to_dict(self) -> Dict:
        return {
            'match_id': self.match_id,
            'player1': self.player1,
            'player2': self.player2,
            'stake': amount_to_str(self.stake),
            # numeric, as the contract's enum: 0 created .. 3 refunded
            'status': int(self.status),
            'timestamp': self.timestamp.isoformat(),
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'player1Staked': self.player1_staked,
            'player2Staked': self.player2_staked,
            'winner': self.winner,
        }
