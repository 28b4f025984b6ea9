# Directory: src/leaderboard_streaming/providers/chain/services/chain_listener.py
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional

from leaderboard_streaming.config.settings import Settings
from leaderboard_streaming.providers.chain.infra.contracts import (
    WATCHED_EVENTS,
    build_contracts,
    build_web3,
)
from leaderboard_streaming.providers.chain.infra.decoding import EventDecodeError, decode_log
from leaderboard_streaming.providers.chain.services.queries.leaderboard_projector import LeaderboardProjector

logger = logging.getLogger(__name__)

BlockNumberFunc = Callable[[], Awaitable[int]]
# (contract name, event name, from_block, to_block) -> decoded logs
FetchLogsFunc = Callable[[str, str, int, int], Awaitable[List[Mapping[str, Any]]]]


def _log_position(log: Mapping[str, Any]):
    return (log.get("blockNumber") or 0, log.get("logIndex") or 0)


class ChainEventListener:
    def __init__(
        self,
        projector: LeaderboardProjector,
        settings: Optional[Settings] = None,
        # optional params
        w3=None,
        contracts: Optional[Dict[str, Any]] = None,
        get_block_number: Optional[BlockNumberFunc] = None,
        fetch_logs_func: Optional[FetchLogsFunc] = None,  # Depends on the source (node, mock, etc.)
    ):
        """
        Tails the TokenStore and PlayGame contracts by polling `get_logs`
        over block windows and feeds every decoded event to the projector.
        """
        self.settings = settings or Settings()
        self.projector = projector

        self.w3 = w3
        self.contracts = contracts
        if get_block_number is None or fetch_logs_func is None:
            self.w3 = self.w3 or build_web3(self.settings)
            self.contracts = self.contracts or build_contracts(self.w3, self.settings)

        self.get_block_number = get_block_number or self._get_block_number
        self.fetch_logs_func = fetch_logs_func or self._fetch_logs

        # first block not yet processed
        self.next_block = self.settings.start_block
        self.finished = False

    async def _get_block_number(self) -> int:
        return await self.w3.eth.block_number

    async def _fetch_logs(self, contract_name: str, event_name: str, from_block: int, to_block: int):
        event = getattr(self.contracts[contract_name].events, event_name)
        return await event.get_logs(from_block=from_block, to_block=to_block)

    async def run(self, interval: Optional[float] = None):
        """
        Poll until stop() is called. A failed poll is logged and retried
        from the same block on the next tick.
        """
        interval = interval or self.settings.poll_interval
        logger.info(
            f"Starting chain listener at block {self.next_block} "
            f"(PlayGame={self.settings.play_game_contract}, TokenStore={self.settings.token_store_contract})"
        )

        while not self.finished:
            try:
                applied = await self.poll_once()
                if applied:
                    store = self.projector.store
                    logger.info(
                        f"Applied {applied} events, tracking {store.player_count} players "
                        f"and {store.match_count} matches"
                    )
            except Exception as e:
                logger.error(f"Error polling events from block {self.next_block}: {e}", exc_info=True)

            if not self.finished:
                await asyncio.sleep(interval)

        logger.info("Chain listener stopped.")

    def stop(self):
        self.finished = True

    async def poll_once(self) -> int:
        """
        Process every block from next_block up to the chain head, in windows
        of at most max_block_range blocks. Returns the number of events applied.
        """
        latest = await self.get_block_number()
        applied = 0

        while self.next_block <= latest:
            to_block = min(self.next_block + self.settings.max_block_range - 1, latest)
            logs = await self._fetch_window(self.next_block, to_block)
            for log in sorted(logs, key=_log_position):
                if self.process_log(log):
                    applied += 1
            # only advance once the whole window is applied
            self.next_block = to_block + 1

        return applied

    async def _fetch_window(self, from_block: int, to_block: int) -> List[Mapping[str, Any]]:
        logs: List[Mapping[str, Any]] = []
        for contract_name, event_names in WATCHED_EVENTS.items():
            for event_name in event_names:
                batch = await self.fetch_logs_func(contract_name, event_name, from_block, to_block)
                logs.extend(batch or [])
        logger.debug(f"Fetched {len(logs)} logs for blocks {from_block}-{to_block}")
        return logs

    def process_log(self, log: Mapping[str, Any]) -> bool:
        """Decode and apply a single log. Malformed logs are dropped."""
        try:
            evt = decode_log(log, usdt_decimals=self.settings.usdt_decimals)
        except EventDecodeError as e:
            logger.warning(
                f"Dropping malformed {log.get('event')} log "
                f"(tx={log.get('transactionHash')}, index={log.get('logIndex')}): {e}"
            )
            return False
        return self.projector.project(evt)
