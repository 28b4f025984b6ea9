# tests/conftest.py

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from leaderboard_streaming.providers.chain.domain.events import (
    MatchCreated,
    Staked,
    Settled,
    Refunded,
)
from leaderboard_streaming.providers.chain.infra.repo.projection_store import ProjectionStore
from leaderboard_streaming.providers.chain.services.queries.leaderboard_projector import LeaderboardProjector

# hardhat localnet accounts #1-#3
ALICE = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
BOB = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
CAROL = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"

MATCH_ID = "0x" + "01".rjust(64, "0")
WEI = 10 ** 18


def match_id(n: int) -> str:
    return "0x" + format(n, "x").rjust(64, "0")


class FakeClock:
    """Deterministic clock, one second per call."""
    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


@pytest.fixture
def store():
    return ProjectionStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def projector(store, clock):
    return LeaderboardProjector(store, clock=clock)


@pytest.fixture
def staked_match(projector):
    """
    Returns a function that creates match `mid` between p1 and p2 and
    stakes both sides, leaving it in STAKED.
    """
    def _staked_match(mid: str = MATCH_ID, p1: str = ALICE, p2: str = BOB, stake=Decimal(100)):
        projector.project(MatchCreated(match_id=mid, player1=p1, player2=p2, stake=stake))
        projector.project(Staked(match_id=mid, player=p1, amount=stake))
        projector.project(Staked(match_id=mid, player=p2, amount=stake))
    return _staked_match


@pytest.fixture
def settled_match(projector, staked_match):
    def _settled_match(mid: str, winner: str, loser: str, payout) -> None:
        staked_match(mid, winner, loser)
        projector.project(Settled(match_id=mid, winner=winner, payout=Decimal(payout)))
    return _settled_match


@pytest.fixture
def refunded_match(projector, staked_match):
    def _refunded_match(mid: str, p1: str, p2: str) -> None:
        staked_match(mid, p1, p2)
        projector.project(Refunded(match_id=mid, player1=p1, player2=p2, amount=Decimal(100)))
    return _refunded_match
