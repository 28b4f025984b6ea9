import string
from typing import Any, Mapping, Optional

from web3 import Web3

from leaderboard_streaming.constants import DEFAULT_USDT_DECIMALS, GT_DECIMALS
from leaderboard_streaming.providers.chain.domain.events import (
    GameEvent,
    Purchase,
    MatchCreated,
    Staked,
    Settled,
    Refunded,
)
from leaderboard_streaming.providers.chain.domain.value_objects.amounts import to_token_amount


class EventDecodeError(ValueError):
    """A log whose payload can't be turned into a domain event."""


def _address(args: Mapping[str, Any], name: str) -> str:
    value = args.get(name)
    if not isinstance(value, str) or not Web3.is_address(value):
        raise EventDecodeError(f"Invalid address for '{name}': {value!r}")
    return Web3.to_checksum_address(value)


def _amount(args: Mapping[str, Any], name: str, decimals: int = GT_DECIMALS):
    try:
        return to_token_amount(args.get(name), decimals)
    except ValueError as e:
        raise EventDecodeError(f"Invalid amount for '{name}': {e}") from e


def _match_id(args: Mapping[str, Any], name: str = "matchId") -> str:
    value = args.get(name)
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise EventDecodeError(f"matchId must be 32 bytes, got {len(value)}")
        return "0x" + bytes(value).hex()
    if isinstance(value, str):
        hex_part = value[2:] if value.lower().startswith("0x") else value
        if not hex_part or any(c not in string.hexdigits for c in hex_part):
            raise EventDecodeError(f"matchId is not hex: {value!r}")
        if len(hex_part) > 64:
            raise EventDecodeError(f"matchId longer than 32 bytes: {value!r}")
        return "0x" + hex_part.lower().rjust(64, "0")
    raise EventDecodeError(f"Invalid matchId: {value!r}")


def _tx_hash(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value).lower()
    return text if text.startswith("0x") else "0x" + text


def decode_log(log: Mapping[str, Any], usdt_decimals: int = DEFAULT_USDT_DECIMALS) -> GameEvent:
    """
    Convert a web3 decoded log (the AttributeDicts `get_logs` returns) into
    a domain event. Raises EventDecodeError if any field is malformed.
    """
    name = log.get("event")
    args = log.get("args")
    if not isinstance(args, Mapping):
        raise EventDecodeError(f"Log for '{name}' has no decoded args")

    position = dict(
        tx_hash=_tx_hash(log.get("transactionHash")),
        log_index=log.get("logIndex"),
        block_number=log.get("blockNumber"),
    )

    if name == "Purchase":
        return Purchase(
            **position,
            buyer=_address(args, "buyer"),
            usdt_amount=_amount(args, "usdtAmount", usdt_decimals),
            gt_out=_amount(args, "gtOut"),
        )
    elif name == "MatchCreated":
        return MatchCreated(
            **position,
            match_id=_match_id(args),
            player1=_address(args, "player1"),
            player2=_address(args, "player2"),
            stake=_amount(args, "stake"),
        )
    elif name == "Staked":
        return Staked(
            **position,
            match_id=_match_id(args),
            player=_address(args, "player"),
            amount=_amount(args, "amount"),
        )
    elif name == "Settled":
        return Settled(
            **position,
            match_id=_match_id(args),
            winner=_address(args, "winner"),
            payout=_amount(args, "payout"),
        )
    elif name == "Refunded":
        return Refunded(
            **position,
            match_id=_match_id(args),
            player1=_address(args, "player1"),
            player2=_address(args, "player2"),
            amount=_amount(args, "amount"),
        )
    raise EventDecodeError(f"Unknown event type: {name!r}")
