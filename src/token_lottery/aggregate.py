from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from decimal import Decimal
from typing import Dict, List, Protocol, Sequence, Tuple

from .errors import BalanceFetchError, InvalidRequestError
from .models import Holder, Participant, Pool, TrackedToken

log = logging.getLogger(__name__)


class BalanceProvider(Protocol):
    def balance_of(self, address: str, contract_address: str) -> int: ...


def normalize_balance(raw: int, decimals: int) -> Decimal:
    """Exact raw / 10**decimals."""
    return Decimal(raw).scaleb(-decimals)


class WeightAggregator:
    def __init__(
        self,
        provider: BalanceProvider,
        tokens: Sequence[TrackedToken],
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise InvalidRequestError(f"max_workers must be >= 1, got {max_workers}")
        self.provider = provider
        self.tokens = tuple(tokens)
        self.max_workers = max_workers

    def fetch_balance(self, participant: Participant, token: TrackedToken) -> Decimal:
        try:
            raw = self.provider.balance_of(participant.address, token.contract_address)
        except BalanceFetchError:
            raise
        except Exception as e:
            raise BalanceFetchError(participant.address, token.symbol, str(e)) from e

        if isinstance(raw, bool) or not isinstance(raw, int):
            raise BalanceFetchError(
                participant.address, token.symbol, f"non-integer raw balance {raw!r}"
            )
        if raw < 0:
            raise BalanceFetchError(
                participant.address, token.symbol, f"negative raw balance {raw}"
            )

        amount = normalize_balance(raw, token.decimals)
        log.debug("%s %s: raw=%d normalized=%s", participant.address, token.symbol, raw, amount)
        return amount

    def aggregate(self, participants: Sequence[Participant]) -> Pool:
        seen = set()
        for p in participants:
            if p.address in seen:
                raise InvalidRequestError(f"Duplicate participant address: {p.address}")
            seen.add(p.address)

        if self.max_workers == 1:
            holders = [self._aggregate_one(p) for p in participants]
        else:
            holders = self._aggregate_concurrent(participants)

        pool = Pool(tuple(holders))
        log.info("Holders aggregated: %d", len(pool))
        log.info("Pool weight       : %s", pool.pool_weight)
        return pool

    def _aggregate_one(self, participant: Participant) -> Holder:
        balances = [
            (token.symbol, self.fetch_balance(participant, token)) for token in self.tokens
        ]
        return Holder.from_balances(participant, balances)

    def _aggregate_concurrent(self, participants: Sequence[Participant]) -> List[Holder]:
        slots: Dict[Tuple[int, int], Decimal] = {}
        executor = ThreadPoolExecutor(max_workers=self.max_workers)
        try:
            futures = {
                executor.submit(self.fetch_balance, p, token): (i, j)
                for i, p in enumerate(participants)
                for j, token in enumerate(self.tokens)
            }
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in done:
                exc = fut.exception()
                if exc is not None:
                    raise exc
            for fut, key in futures.items():
                slots[key] = fut.result()
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        holders: List[Holder] = []
        for i, p in enumerate(participants):
            balances = [(token.symbol, slots[(i, j)]) for j, token in enumerate(self.tokens)]
            holders.append(Holder.from_balances(p, balances))
        return holders


def load_participants(path: str) -> List[Participant]:
    """
    One participant per line: `address[,name]`.
    Blank lines and `#` comments are skipped; name defaults to the address.
    """
    out: List[Participant] = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            entry = line.strip()
            if not entry or entry.startswith("#"):
                continue
            address, _, name = entry.partition(",")
            address = address.strip()
            name = name.strip() or address
            out.append(Participant(address=address, name=name))
    return out
