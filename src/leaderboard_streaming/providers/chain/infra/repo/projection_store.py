import threading
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Hashable, Iterator, List, Optional, Set

from leaderboard_streaming.providers.chain.domain.entities.players import PlayerStats
from leaderboard_streaming.providers.chain.domain.entities.matches import MatchRecord


class ProjectionStore:
    """
    In-memory read model of on-chain game activity.

    Holds player address -> PlayerStats and match id -> MatchRecord, plus the
    keys of every event already applied. Lives as long as the hosting
    service; nothing is persisted across restarts.

    The applied-event keys are never evicted, so that set grows by one
    entry per applied event for the life of the process. Evicting a key
    would let a re-delivered log be counted twice.

    Writers wrap each event application in `transaction()`. Read methods
    take the same lock and hand out copies, so a reader never sees a match
    halfway through an update.
    """
    def __init__(self):
        self._lock = threading.RLock()
        # dicts keep insertion order, which the listings rely on for ties
        self._players: Dict[str, PlayerStats] = {}
        self._matches: Dict[str, MatchRecord] = {}
        self._processed: Set[Hashable] = set()

    @contextmanager
    def transaction(self) -> Iterator["ProjectionStore"]:
        with self._lock:
            yield self

    # ------------------------------------------------------------------
    # Writes (reducer only)
    # ------------------------------------------------------------------

    def get_or_create_player(self, address: str) -> PlayerStats:
        """
        Return the live record for `address`, inserting a zeroed one if needed.
        The record is mutable; callers must hold `transaction()`.
        """
        with self._lock:
            player = self._players.get(address)
            if player is None:
                player = PlayerStats(address=address)
                self._players[address] = player
            return player

    def upsert_match(self, record: MatchRecord) -> None:
        with self._lock:
            self._matches[record.match_id] = record

    def match_for_update(self, match_id: str) -> Optional[MatchRecord]:
        """Live (mutable) match record; callers must hold `transaction()`."""
        with self._lock:
            return self._matches.get(match_id)

    def has_processed(self, key: Optional[Hashable]) -> bool:
        if key is None:
            return False
        with self._lock:
            return key in self._processed

    def mark_processed(self, key: Optional[Hashable]) -> None:
        if key is None:
            return
        with self._lock:
            self._processed.add(key)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_player(self, address: str) -> Optional[PlayerStats]:
        with self._lock:
            player = self._players.get(address)
            return replace(player) if player else None

    def get_match(self, match_id: str) -> Optional[MatchRecord]:
        with self._lock:
            match = self._matches.get(match_id)
            return replace(match) if match else None

    def top_players(self, n: int) -> List[PlayerStats]:
        """Players by total GT won, highest first. Ties keep insertion order."""
        if n <= 0:
            return []
        with self._lock:
            snapshot = [replace(p) for p in self._players.values()]
        # sorted() is stable, and reverse=True preserves the order of equal keys
        ranked = sorted(snapshot, key=lambda p: p.total_gt_won, reverse=True)
        return ranked[:n]

    def recent_matches(self, n: int) -> List[MatchRecord]:
        """Matches by observation time, newest first."""
        if n <= 0:
            return []
        with self._lock:
            snapshot = [replace(m) for m in self._matches.values()]
        ranked = sorted(snapshot, key=lambda m: m.timestamp, reverse=True)
        return ranked[:n]

    @property
    def player_count(self) -> int:
        with self._lock:
            return len(self._players)

    @property
    def match_count(self) -> int:
        with self._lock:
            return len(self._matches)
