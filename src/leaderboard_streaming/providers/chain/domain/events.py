from dataclasses import dataclass
from decimal import Decimal
from typing import Hashable, Optional, Tuple, Union


@dataclass(frozen=True)
class ChainEvent:
    """
    Base for every event observed on the GT contracts.
    The log position fields are optional so events can be built by hand
    (tests, replays) without a transaction behind them.
    """
    tx_hash: Optional[str] = None
    log_index: Optional[int] = None
    block_number: Optional[int] = None

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def event_key(self) -> Optional[Tuple[Hashable, ...]]:
        """
        Stable identity used to drop re-delivered events.
        (tx_hash, log_index) when the log position is known, otherwise
        whatever the event itself makes unique.
        """
        if self.tx_hash is not None and self.log_index is not None:
            return (self.tx_hash, self.log_index)
        return self._semantic_key()

    def _semantic_key(self) -> Optional[Tuple[Hashable, ...]]:
        return None


@dataclass(frozen=True)
class Purchase(ChainEvent):
    """Fired by the TokenStore when a player buys GT with USDT."""
    buyer: str = ""
    usdt_amount: Decimal = Decimal(0)
    gt_out: Decimal = Decimal(0)

    def __repr__(self) -> str:
        return f"Purchase(buyer={self.buyer}, usdt={self.usdt_amount}, gt={self.gt_out})"


@dataclass(frozen=True)
class MatchCreated(ChainEvent):
    match_id: str = ""
    player1: str = ""
    player2: str = ""
    stake: Decimal = Decimal(0)

    def _semantic_key(self):
        return (self.kind, self.match_id)

    def __repr__(self) -> str:
        return f"MatchCreated(match={self.match_id}, {self.player1} vs {self.player2}, stake={self.stake})"


@dataclass(frozen=True)
class Staked(ChainEvent):
    match_id: str = ""
    player: str = ""
    amount: Decimal = Decimal(0)

    def _semantic_key(self):
        # each participant stakes at most once per match
        return (self.kind, self.match_id, self.player)

    def __repr__(self) -> str:
        return f"Staked(match={self.match_id}, player={self.player}, amount={self.amount})"


@dataclass(frozen=True)
class Settled(ChainEvent):
    match_id: str = ""
    winner: str = ""
    payout: Decimal = Decimal(0)

    def _semantic_key(self):
        return (self.kind, self.match_id)

    def __repr__(self) -> str:
        return f"Settled(match={self.match_id}, winner={self.winner}, payout={self.payout})"


@dataclass(frozen=True)
class Refunded(ChainEvent):
    match_id: str = ""
    player1: str = ""
    player2: str = ""
    amount: Decimal = Decimal(0)

    def _semantic_key(self):
        return (self.kind, self.match_id)

    def __repr__(self) -> str:
        return f"Refunded(match={self.match_id}, {self.player1} & {self.player2}, amount={self.amount})"


# Closed set of events the projector understands
GameEvent = Union[Purchase, MatchCreated, Staked, Settled, Refunded]
