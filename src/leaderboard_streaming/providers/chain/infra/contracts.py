# Directory: src/leaderboard_streaming/providers/chain/infra/contracts.py
# Minimal event-only ABIs; compiled artifacts aren't needed to tail events.
from typing import Dict, List

from web3 import AsyncWeb3, AsyncHTTPProvider

from leaderboard_streaming.config.settings import Settings


def _event_abi(name: str, inputs: List[tuple]) -> dict:
    return {
        "anonymous": False,
        "name": name,
        "type": "event",
        "inputs": [
            {"indexed": indexed, "internalType": typ, "name": arg, "type": typ}
            for arg, typ, indexed in inputs
        ],
    }


PLAY_GAME_ABI = [
    _event_abi("MatchCreated", [
        ("matchId", "bytes32", True),
        ("player1", "address", False),
        ("player2", "address", False),
        ("stake", "uint256", False),
    ]),
    _event_abi("Staked", [
        ("matchId", "bytes32", True),
        ("player", "address", False),
        ("amount", "uint256", False),
    ]),
    _event_abi("Settled", [
        ("matchId", "bytes32", True),
        ("winner", "address", False),
        ("payout", "uint256", False),
    ]),
    _event_abi("Refunded", [
        ("matchId", "bytes32", True),
        ("player1", "address", False),
        ("player2", "address", False),
        ("amount", "uint256", False),
    ]),
]

TOKEN_STORE_ABI = [
    _event_abi("Purchase", [
        ("buyer", "address", True),
        ("usdtAmount", "uint256", False),
        ("gtOut", "uint256", False),
    ]),
]

# contract name -> event names we tail on it
WATCHED_EVENTS: Dict[str, List[str]] = {
    "TokenStore": ["Purchase"],
    "PlayGame": ["MatchCreated", "Staked", "Settled", "Refunded"],
}


def build_web3(settings: Settings) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(settings.rpc_url))


def build_contracts(w3: AsyncWeb3, settings: Settings) -> dict:
    """Contract handles keyed by the names used in WATCHED_EVENTS."""
    return {
        "TokenStore": w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(settings.token_store_contract),
            abi=TOKEN_STORE_ABI,
        ),
        "PlayGame": w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(settings.play_game_contract),
            abi=PLAY_GAME_ABI,
        ),
    }
