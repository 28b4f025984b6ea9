import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from leaderboard_streaming.constants import (
    DEFAULT_RPC_URL,
    DEFAULT_PLAY_GAME_CONTRACT,
    DEFAULT_TOKEN_STORE_CONTRACT,
    DEFAULT_LEADERBOARD_PORT,
    DEFAULT_LEADERBOARD_LIMIT,
    DEFAULT_MATCHES_LIMIT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_MAX_BLOCK_RANGE,
    DEFAULT_USDT_DECIMALS,
)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """
    Service configuration. Reads from environment variables if set,
    otherwise uses the localnet defaults.
    """
    rpc_url: str = DEFAULT_RPC_URL
    play_game_contract: str = DEFAULT_PLAY_GAME_CONTRACT
    token_store_contract: str = DEFAULT_TOKEN_STORE_CONTRACT
    port: int = DEFAULT_LEADERBOARD_PORT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    start_block: int = 0
    max_block_range: int = DEFAULT_MAX_BLOCK_RANGE
    usdt_decimals: int = DEFAULT_USDT_DECIMALS
    leaderboard_limit: int = DEFAULT_LEADERBOARD_LIMIT
    matches_limit: int = DEFAULT_MATCHES_LIMIT
    listener_enabled: bool = True

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {self.poll_interval}")
        if self.start_block < 0:
            raise ValueError(f"start_block must be >= 0, got {self.start_block}")
        if self.max_block_range < 1:
            raise ValueError(f"max_block_range must be >= 1, got {self.max_block_range}")
        if self.usdt_decimals < 0:
            raise ValueError(f"usdt_decimals must be >= 0, got {self.usdt_decimals}")

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        dotenv_path: Optional[str] = ".env",
    ) -> "Settings":
        """
        Build settings from the environment. When `environ` is not given,
        the .env file (if any) is loaded into os.environ first.
        """
        if environ is None:
            if dotenv_path:
                load_dotenv(dotenv_path)
            environ = os.environ

        def get(key: str, default):
            raw = environ.get(key)
            if raw is None or raw == "":
                return default
            return raw

        try:
            return cls(
                rpc_url=get("RPC_URL", DEFAULT_RPC_URL),
                play_game_contract=get("PLAY_GAME_CONTRACT", DEFAULT_PLAY_GAME_CONTRACT),
                token_store_contract=get("TOKEN_STORE_CONTRACT", DEFAULT_TOKEN_STORE_CONTRACT),
                port=int(get("LEADERBOARD_PORT", DEFAULT_LEADERBOARD_PORT)),
                poll_interval=float(get("POLL_INTERVAL", DEFAULT_POLL_INTERVAL)),
                start_block=int(get("START_BLOCK", 0)),
                max_block_range=int(get("MAX_BLOCK_RANGE", DEFAULT_MAX_BLOCK_RANGE)),
                usdt_decimals=int(get("USDT_DECIMALS", DEFAULT_USDT_DECIMALS)),
                leaderboard_limit=int(get("LEADERBOARD_LIMIT", DEFAULT_LEADERBOARD_LIMIT)),
                matches_limit=int(get("MATCHES_LIMIT", DEFAULT_MATCHES_LIMIT)),
                listener_enabled=_parse_bool(str(get("LISTENER_ENABLED", "true"))),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid leaderboard configuration: {e}") from e
