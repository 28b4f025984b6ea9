import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from leaderboard_streaming.providers.chain.domain.events import (
    ChainEvent,
    Purchase,
    MatchCreated,
    Staked,
    Settled,
    Refunded,
)
from leaderboard_streaming.providers.chain.domain.entities.matches import MatchRecord
from leaderboard_streaming.providers.chain.domain.value_objects.match_enums import MatchStatus
from leaderboard_streaming.providers.chain.infra.repo.projection_store import ProjectionStore

logger = logging.getLogger(__name__)

# amount fields per event type, checked before an event touches the store
AMOUNT_FIELDS = {
    Purchase: ("usdt_amount", "gt_out"),
    MatchCreated: ("stake",),
    Staked: ("amount",),
    Settled: ("payout",),
    Refunded: ("amount",),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeaderboardProjector:
    """
    Folds GT contract events into the ProjectionStore.

    Match status only ever moves forward:
        CREATED -> STAKED (both players staked) -> SETTLED | REFUNDED
    Events that would break that (unknown match, outsider, terminal match)
    are dropped with a warning instead of raising.
    """
    def __init__(
        self,
        store: ProjectionStore,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.clock = clock or _utcnow

    def project(self, evt: ChainEvent) -> bool:
        """
        Apply one event atomically. Returns True if the store changed.
        Re-delivered events (same event_key) are ignored.
        """
        key = evt.event_key
        with self.store.transaction():
            if self.store.has_processed(key):
                logger.debug(f"Skipping duplicate {evt.kind} event {key}")
                return False
            if not self._amounts_are_valid(evt):
                return False

            applied = self._apply(evt)
            if applied:
                self.store.mark_processed(key)
            return applied

    def _amounts_are_valid(self, evt: ChainEvent) -> bool:
        """
        Every amount must be an exact, finite, non-negative number before
        anything is written. Floats are refused since they'd drift.
        """
        for name in AMOUNT_FIELDS.get(type(evt), ()):
            value = getattr(evt, name)
            if (isinstance(value, bool) or not isinstance(value, (Decimal, int))
                    or not Decimal(value).is_finite() or value < 0):
                logger.warning(f"Dropping {evt.kind} with malformed {name}: {value!r}")
                return False
        return True

    def _apply(self, evt: ChainEvent) -> bool:
        """
        Route to the handler for this event type.
        """
        if isinstance(evt, Purchase):
            return self._apply_purchase(evt)
        elif isinstance(evt, MatchCreated):
            return self._apply_match_created(evt)
        elif isinstance(evt, Staked):
            return self._apply_staked(evt)
        elif isinstance(evt, Settled):
            return self._apply_settled(evt)
        elif isinstance(evt, Refunded):
            return self._apply_refunded(evt)
        raise TypeError(f"Unsupported event type: {type(evt).__name__}")

    def _apply_purchase(self, evt: Purchase) -> bool:
        logger.info(f"New Purchase: {evt.buyer} bought {evt.gt_out} GT with {evt.usdt_amount} USDT")
        # balances are read live from the token contract, we only track the player
        self.store.get_or_create_player(evt.buyer)
        return True

    def _apply_match_created(self, evt: MatchCreated) -> bool:
        logger.info(
            f"Match Created: {evt.player1} vs {evt.player2} "
            f"with stake {evt.stake} GT (ID: {evt.match_id})"
        )
        if self.store.match_for_update(evt.match_id) is not None:
            logger.warning(f"Match {evt.match_id} already exists, ignoring duplicate MatchCreated")
            return False

        self.store.get_or_create_player(evt.player1)
        self.store.get_or_create_player(evt.player2)
        self.store.upsert_match(
            MatchRecord(
                match_id=evt.match_id,
                player1=evt.player1,
                player2=evt.player2,
                stake=evt.stake,
                timestamp=self.clock(),
            )
        )
        return True

    def _apply_staked(self, evt: Staked) -> bool:
        logger.info(f"New Stake: {evt.player} staked {evt.amount} GT for match {evt.match_id}")
        match = self._open_match(evt)
        if match is None:
            return False
        if not match.is_participant(evt.player):
            logger.warning(f"{evt.player} staked on match {evt.match_id} but is not one of its players")
            return False

        self.store.get_or_create_player(evt.player)
        if match.mark_staked(evt.player, self.clock()):
            logger.info(f"Match {evt.match_id} fully staked, game on")
        return True

    def _apply_settled(self, evt: Settled) -> bool:
        logger.info(f"Match Settled: {evt.winner} won {evt.payout} GT in match {evt.match_id}")
        match = self._open_match(evt)
        if match is None:
            return False
        if not match.is_participant(evt.winner):
            logger.warning(f"Winner {evt.winner} is not a player in match {evt.match_id}")
            return False
        if match.status != MatchStatus.STAKED:
            logger.debug(f"Match {evt.match_id} settled from {match.status.name}")

        match.status = MatchStatus.SETTLED
        match.winner = evt.winner

        self.store.get_or_create_player(evt.winner).record_win(evt.payout)
        loser = match.opponent_of(evt.winner)
        if loser != evt.winner:
            self.store.get_or_create_player(loser).record_played()
        return True

    def _apply_refunded(self, evt: Refunded) -> bool:
        logger.info(
            f"Match Refunded: {evt.player1} and {evt.player2} were refunded "
            f"{evt.amount} GT each for match {evt.match_id}"
        )
        match = self._open_match(evt)
        if match is None:
            return False
        if match.status != MatchStatus.STAKED:
            logger.debug(f"Match {evt.match_id} refunded from {match.status.name}")

        match.status = MatchStatus.REFUNDED
        # the match record is the source of truth for who played
        self.store.get_or_create_player(match.player1).record_played()
        if match.player2 != match.player1:
            self.store.get_or_create_player(match.player2).record_played()
        return True

    def _open_match(self, evt) -> Optional[MatchRecord]:
        """Live match for `evt`, or None (logged) if it's unknown or already closed."""
        match = self.store.match_for_update(evt.match_id)
        if match is None:
            logger.warning(f"Dropping {evt.kind} for unknown match {evt.match_id}")
            return None
        if match.status.is_terminal:
            logger.warning(
                f"Dropping {evt.kind} for match {evt.match_id}, already {match.status.name}"
            )
            return None
        return match
