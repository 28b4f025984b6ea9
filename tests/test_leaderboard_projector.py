# tests/test_leaderboard_projector.py

import logging
import random
import threading
from decimal import Decimal

import pytest

from leaderboard_streaming.providers.chain.domain.events import (
    ChainEvent,
    Purchase,
    MatchCreated,
    Staked,
    Settled,
    Refunded,
)
from leaderboard_streaming.providers.chain.domain.value_objects.match_enums import MatchStatus

from conftest import ALICE, BOB, CAROL, MATCH_ID, match_id


def test_purchase_creates_player_only(projector, store):
    assert projector.project(Purchase(buyer=ALICE, usdt_amount=Decimal(10), gt_out=Decimal(10)))

    player = store.get_player(ALICE)
    assert player.wins == 0
    assert player.matches_played == 0
    assert store.match_count == 0


def test_match_created_registers_match_and_players(projector, store):
    projector.project(MatchCreated(match_id=MATCH_ID, player1=ALICE, player2=BOB, stake=Decimal(100)))

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.CREATED
    assert match.stake == Decimal(100)
    assert match.player1_staked is False
    assert match.player2_staked is False
    assert match.winner is None
    assert match.start_time is None
    assert store.get_player(ALICE) is not None
    assert store.get_player(BOB) is not None


def test_single_stake_keeps_match_created(projector, store):
    projector.project(MatchCreated(match_id=MATCH_ID, player1=ALICE, player2=BOB, stake=Decimal(100)))
    projector.project(Staked(match_id=MATCH_ID, player=BOB, amount=Decimal(100)))

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.CREATED
    assert match.player1_staked is False
    assert match.player2_staked is True


def test_both_stakes_move_match_to_staked(store, staked_match, clock):
    staked_match()

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.STAKED
    assert match.player1_staked and match.player2_staked
    assert match.start_time is not None
    assert match.start_time > match.timestamp


def test_settled_credits_winner_and_counts_loser(projector, store, staked_match):
    staked_match()
    projector.project(Settled(match_id=MATCH_ID, winner=ALICE, payout=Decimal(200)))

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.SETTLED
    assert match.winner == ALICE

    alice = store.get_player(ALICE)
    assert alice.wins == 1
    assert alice.matches_played == 1
    assert alice.total_gt_won == Decimal(200)

    bob = store.get_player(BOB)
    assert bob.wins == 0
    assert bob.matches_played == 1
    assert bob.total_gt_won == Decimal(0)


def test_payouts_accumulate_without_drift(projector, store, staked_match):
    for n in range(1, 11):
        staked_match(match_id(n))
        projector.project(Settled(match_id=match_id(n), winner=ALICE, payout=Decimal("0.1")))

    alice = store.get_player(ALICE)
    assert alice.total_gt_won == Decimal("1")
    assert alice.to_dict()["totalGtWon"] == "1.0"
    assert alice.wins == 10


def test_refunded_counts_both_players(projector, store, staked_match):
    staked_match()
    projector.project(Refunded(match_id=MATCH_ID, player1=ALICE, player2=BOB, amount=Decimal(100)))

    assert store.get_match(MATCH_ID).status == MatchStatus.REFUNDED
    for address in (ALICE, BOB):
        player = store.get_player(address)
        assert player.matches_played == 1
        assert player.wins == 0
        assert player.total_gt_won == Decimal(0)


def test_unknown_match_is_dropped(projector, store, caplog):
    unknown = "0x" + "deadbeef" * 8
    with caplog.at_level(logging.WARNING):
        assert not projector.project(Staked(match_id=unknown, player=ALICE, amount=Decimal(1)))
        assert not projector.project(Settled(match_id=unknown, winner=ALICE, payout=Decimal(2)))
        assert not projector.project(Refunded(match_id=unknown, player1=ALICE, player2=BOB, amount=Decimal(1)))

    assert store.player_count == 0
    assert store.match_count == 0
    assert "unknown match" in caplog.text


@pytest.mark.parametrize("payout", [0.1, "12", Decimal("NaN"), Decimal(-1), True, None])
def test_malformed_payout_leaves_state_untouched(projector, store, staked_match, caplog, payout):
    staked_match()

    with caplog.at_level(logging.WARNING):
        assert not projector.project(Settled(tx_hash="0x1", log_index=0, match_id=MATCH_ID,
                                             winner=ALICE, payout=payout))
    assert "malformed payout" in caplog.text

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.STAKED
    assert match.winner is None
    alice = store.get_player(ALICE)
    assert alice.wins == 0
    assert alice.matches_played == 0
    assert alice.total_gt_won == Decimal(0)

    # the bad log isn't remembered, a well-formed settlement still lands
    assert projector.project(Settled(tx_hash="0x2", log_index=0, match_id=MATCH_ID,
                                     winner=ALICE, payout=Decimal(200)))
    assert store.get_player(ALICE).wins == 1
    assert store.get_player(ALICE).total_gt_won == Decimal(200)


def test_malformed_stake_amounts_are_dropped(projector, store):
    assert not projector.project(MatchCreated(match_id=MATCH_ID, player1=ALICE, player2=BOB, stake=1.5))
    assert not projector.project(Purchase(buyer=ALICE, usdt_amount=Decimal(1), gt_out="10"))
    assert store.match_count == 0
    assert store.player_count == 0


def test_readers_never_see_half_applied_events(projector, store, staked_match):
    """
    A writer thread settles matches while the main thread keeps reading;
    every snapshot must show either all or none of an event's effects.
    """
    total = 200
    errors = []
    done = threading.Event()

    def writer():
        try:
            for n in range(1, total + 1):
                staked_match(match_id(n))
                projector.project(Settled(match_id=match_id(n), winner=ALICE, payout=Decimal(2)))
        except Exception as e:
            errors.append(e)
        finally:
            done.set()

    thread = threading.Thread(target=writer)
    thread.start()
    while not done.is_set():
        players = {p.address: p for p in store.top_players(10)}
        for player in players.values():
            assert player.matches_played >= player.wins
            assert player.total_gt_won == Decimal(2) * player.wins
        if ALICE in players and BOB in players:
            assert players[ALICE].wins == players[BOB].matches_played
        for match in store.recent_matches(total):
            if match.status == MatchStatus.SETTLED:
                assert match.winner == ALICE
            else:
                assert match.winner is None
    thread.join()

    assert errors == []
    assert store.get_player(ALICE).wins == total
    assert store.get_player(BOB).matches_played == total


def test_full_match_scenario(projector, store):
    mid = "0x01"
    projector.project(MatchCreated(match_id=mid, player1=ALICE, player2=BOB, stake=Decimal(100)))
    projector.project(Staked(match_id=mid, player=ALICE, amount=Decimal(100)))
    projector.project(Staked(match_id=mid, player=BOB, amount=Decimal(100)))
    projector.project(Settled(match_id=mid, winner=ALICE, payout=Decimal(200)))

    match = store.get_match(mid)
    assert match.status == MatchStatus.SETTLED
    assert match.winner == ALICE

    alice = store.get_player(ALICE).to_dict()
    assert alice["wins"] == 1
    assert alice["totalGtWon"] == "200"

    bob = store.get_player(BOB)
    assert bob.matches_played == 1
    assert bob.wins == 0


def test_redelivered_log_is_not_double_counted(projector, store, staked_match):
    staked_match()
    settled = Settled(tx_hash="0xabc", log_index=4, match_id=MATCH_ID, winner=ALICE, payout=Decimal(200))

    assert projector.project(settled)
    assert not projector.project(settled)

    alice = store.get_player(ALICE)
    assert alice.wins == 1
    assert alice.total_gt_won == Decimal(200)


def test_events_without_log_position_dedupe_on_content(projector, store):
    created = MatchCreated(match_id=MATCH_ID, player1=ALICE, player2=BOB, stake=Decimal(100))
    stake = Staked(match_id=MATCH_ID, player=ALICE, amount=Decimal(100))

    assert projector.project(created)
    assert not projector.project(created)
    assert projector.project(stake)
    assert not projector.project(stake)
    assert store.get_match(MATCH_ID).status == MatchStatus.CREATED


def test_second_match_created_for_same_id_is_ignored(projector, store):
    projector.project(MatchCreated(tx_hash="0x1", log_index=0, match_id=MATCH_ID,
                                   player1=ALICE, player2=BOB, stake=Decimal(100)))
    projector.project(MatchCreated(tx_hash="0x2", log_index=0, match_id=MATCH_ID,
                                   player1=CAROL, player2=BOB, stake=Decimal(5)))

    match = store.get_match(MATCH_ID)
    assert match.player1 == ALICE
    assert match.stake == Decimal(100)
    assert store.get_player(CAROL) is None


def test_stake_from_outsider_is_ignored(projector, store):
    projector.project(MatchCreated(match_id=MATCH_ID, player1=ALICE, player2=BOB, stake=Decimal(100)))

    assert not projector.project(Staked(match_id=MATCH_ID, player=CAROL, amount=Decimal(100)))
    assert store.get_player(CAROL) is None
    assert store.get_match(MATCH_ID).player1_staked is False


def test_settled_winner_must_be_a_player(projector, store, staked_match):
    staked_match()

    assert not projector.project(Settled(match_id=MATCH_ID, winner=CAROL, payout=Decimal(200)))
    assert store.get_match(MATCH_ID).status == MatchStatus.STAKED
    assert store.get_player(CAROL) is None


def test_terminal_matches_do_not_change(projector, store, staked_match):
    staked_match()
    projector.project(Settled(tx_hash="0x1", log_index=0, match_id=MATCH_ID, winner=ALICE, payout=Decimal(200)))

    # a different settlement or a late refund can't reopen the match
    assert not projector.project(Settled(tx_hash="0x2", log_index=0, match_id=MATCH_ID, winner=BOB, payout=Decimal(200)))
    assert not projector.project(Refunded(tx_hash="0x3", log_index=0, match_id=MATCH_ID,
                                          player1=ALICE, player2=BOB, amount=Decimal(100)))

    match = store.get_match(MATCH_ID)
    assert match.status == MatchStatus.SETTLED
    assert match.winner == ALICE
    assert store.get_player(BOB).matches_played == 1
    assert store.get_player(BOB).wins == 0


def test_unsupported_event_type_raises(projector):
    with pytest.raises(TypeError):
        projector.project(ChainEvent(tx_hash="0x1", log_index=0))


@pytest.mark.parametrize("seed", range(5))
def test_matches_played_never_below_wins(projector, store, seed):
    """
    Random interleavings of valid and invalid events keep
    matches_played >= wins for every player after every event.
    """
    rng = random.Random(seed)
    players = [ALICE, BOB, CAROL]
    ids = [match_id(n) for n in range(1, 6)]

    for i in range(300):
        mid = rng.choice(ids)
        a, b = rng.sample(players, 2)
        evt = rng.choice([
            MatchCreated(match_id=mid, player1=a, player2=b, stake=Decimal(1)),
            Staked(tx_hash=f"0x{i}", log_index=0, match_id=mid, player=a, amount=Decimal(1)),
            Settled(tx_hash=f"0x{i}", log_index=0, match_id=mid, winner=a, payout=Decimal("0.5")),
            Refunded(tx_hash=f"0x{i}", log_index=0, match_id=mid, player1=a, player2=b, amount=Decimal(1)),
            Purchase(buyer=a, usdt_amount=Decimal(1), gt_out=Decimal(1)),
        ])
        projector.project(evt)

        for player in store.top_players(len(players)):
            assert player.matches_played >= player.wins
