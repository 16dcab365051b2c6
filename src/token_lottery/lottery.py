from __future__ import annotations

import enum
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

from .aggregate import BalanceProvider, WeightAggregator, load_participants
from .config import Settings
from .draw import LotteryEngine
from .errors import InvalidRequestError
from .models import Holder, Participant, Pool, TrackedToken
from .project_constants import TRACKED_TOKENS
from .rng import RandomSource, SeededRandom, seed_from_blockhash
from .rpc import RpcClient
from .verify import build_draw_record

log = logging.getLogger(__name__)


class LotteryState(str, enum.Enum):
    EMPTY = "empty"
    AGGREGATED = "aggregated"
    SAMPLING = "sampling"
    COMPLETED = "completed"


class Lottery:
    """
    One promotional draw: aggregate holder weights once, then draw once.

    EMPTY -> AGGREGATED -> SAMPLING -> COMPLETED. COMPLETED is terminal.
    """

    def __init__(
        self,
        tokens: Sequence[TrackedToken],
        provider: BalanceProvider,
        max_workers: int = 1,
        strategy: str = "linear",
    ) -> None:
        self.aggregator = WeightAggregator(provider, tokens, max_workers=max_workers)
        self.strategy = strategy
        self.state = LotteryState.EMPTY
        self._pool: Optional[Pool] = None
        self._winners: Optional[Tuple[Holder, ...]] = None

    def _require(self, expected: LotteryState, action: str) -> None:
        if self.state is not expected:
            raise InvalidRequestError(
                f"Cannot {action} in state {self.state.value!r} (requires {expected.value!r})."
            )

    @property
    def pool(self) -> Pool:
        if self._pool is None:
            raise InvalidRequestError("Pool is not aggregated yet.")
        return self._pool

    @property
    def winners(self) -> Tuple[Holder, ...]:
        self._require(LotteryState.COMPLETED, "read winners")
        return self._winners or ()

    def initialize(self, participants: Sequence[Participant]) -> Pool:
        self._require(LotteryState.EMPTY, "initialize")
        log.info("Aggregating %d participants...", len(participants))
        # A failed aggregation leaves no partial pool behind.
        self._pool = self.aggregator.aggregate(participants)
        self.state = LotteryState.AGGREGATED
        return self._pool

    def select_winners(self, k: int, rng: RandomSource) -> Tuple[Holder, ...]:
        self._require(LotteryState.AGGREGATED, "select winners")
        engine = LotteryEngine(self.pool, strategy=self.strategy)
        self.state = LotteryState.SAMPLING
        try:
            winners = engine.select_winners(k, rng)
        except Exception:
            self.state = LotteryState.AGGREGATED
            raise
        self._winners = winners
        self.state = LotteryState.COMPLETED
        log.info("Selected %d winner(s).", len(winners))
        return winners

    def holder_stats(self) -> List[Dict[str, Any]]:
        return self.pool.snapshot()


def run_draw(
    participants: Union[str, Sequence[Participant]],
    k: int,
    settings: Optional[Settings] = None,
    block_number: Optional[int] = None,
    tokens: Sequence[TrackedToken] = TRACKED_TOKENS,
    strategy: str = "linear",
    transport: Optional[httpx.BaseTransport] = None,
) -> Tuple[Tuple[Holder, ...], Dict[str, Any]]:
    """
    Run one draw against the chain and return (winners, draw record).

    participants is either a sequence or a path to a participants file.
    The seed is the sha256 of the hash of `block_number` (latest block when
    omitted), so anyone can re-derive it.
    """
    if settings is None:
        settings = Settings.from_env()
    if isinstance(participants, str):
        participants = load_participants(participants)

    with RpcClient(settings.rpc_url, timeout_s=settings.timeout_s, transport=transport) as rpc:
        if block_number is None:
            block_number = rpc.get_block_number()
        blockhash = rpc.get_block_hash(block_number)
        seed, seed_hash_hex = seed_from_blockhash(blockhash)
        log.info("Seed block      : %d", block_number)
        log.info("Seed (blockhash): %s", blockhash)

        lottery = Lottery(tokens, rpc, max_workers=settings.max_workers, strategy=strategy)
        pool = lottery.initialize(participants)

    winners = lottery.select_winners(k, SeededRandom(seed))
    record = build_draw_record(
        pool,
        winners,
        k,
        seed,
        strategy=strategy,
        seed_source={
            "seed_block_number": block_number,
            "seed_blockhash": blockhash,
            "seed_hash_hex": seed_hash_hex,
        },
    )
    return winners, record
