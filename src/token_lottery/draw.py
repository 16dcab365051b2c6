from __future__ import annotations

import logging
from fractions import Fraction
from typing import List, Optional, Sequence, Set, Tuple

from .errors import InvalidRequestError, ZeroWeightPoolError
from .models import Holder, Pool
from .rng import RandomSource

log = logging.getLogger(__name__)

STRATEGIES = ("linear", "fenwick")


class FenwickTree:
    """Binary indexed tree over weights: prefix sums and cumulative search in O(log n)."""

    def __init__(self, weights: Sequence[Fraction]) -> None:
        self._n = len(weights)
        self._tree: List[Fraction] = [Fraction(0)] * (self._n + 1)
        for i, w in enumerate(weights):
            self.add(i, w)

    def __len__(self) -> int:
        return self._n

    def add(self, index: int, delta: Fraction) -> None:
        i = index + 1
        while i <= self._n:
            self._tree[i] += delta
            i += i & -i

    def prefix_sum(self, count: int) -> Fraction:
        """Sum of the first `count` weights."""
        total = Fraction(0)
        i = count
        while i > 0:
            total += self._tree[i]
            i -= i & -i
        return total

    def find(self, r: Fraction) -> int:
        """
        Index of the first item whose cumulative weight exceeds r.
        Returns len(self) when r is not below the total.
        """
        pos = 0
        rem = r
        step = 1
        while step * 2 <= self._n:
            step *= 2
        while step:
            nxt = pos + step
            if nxt <= self._n and self._tree[nxt] <= rem:
                pos = nxt
                rem -= self._tree[nxt]
            step //= 2
        return pos


def _check_count(k: int, pool: Pool) -> int:
    if isinstance(k, bool) or not isinstance(k, int):
        raise InvalidRequestError(f"Winner count must be an integer, got {k!r}")
    if k < 0:
        raise InvalidRequestError(f"Winner count must be non-negative, got {k}")
    return min(k, len(pool))


class LotteryEngine:
    """
    Weighted sampling without replacement over an immutable Pool.

    Every draw samples against the weight still in the pool (the original
    total minus the weights already drawn), so each draw is proportional to
    the remaining holders' weights. The exclusion set lives only for the
    duration of one selection run.

    Sampling runs on exact rational weights built from the holders' decimal
    balances: a whale and a 1-wei holder keep their true ratio, and both
    strategies pick the same holder for the same uniform.
    """

    def __init__(self, pool: Pool, strategy: str = "linear") -> None:
        if strategy not in STRATEGIES:
            raise InvalidRequestError(
                f"Unknown strategy {strategy!r}; expected one of {', '.join(STRATEGIES)}"
            )
        self.pool = pool
        self.strategy = strategy
        self._weights = [h.exact_weight for h in pool.holders]
        self._total = sum(self._weights, Fraction(0))

    def select_winners(self, k: int, rng: RandomSource) -> Tuple[Holder, ...]:
        n = _check_count(k, self.pool)
        if n == 0:
            return ()
        if self._total <= 0:
            raise ZeroWeightPoolError(
                f"Cannot draw {k} weighted winner(s): all {len(self.pool)} holders have zero weight."
            )
        if self.strategy == "fenwick":
            winners = self._draw_fenwick(n, rng)
        else:
            winners = self._draw_linear(n, rng)

        for rank, w in enumerate(winners, start=1):
            log.debug("Winner %d: %s (%s)", rank, w.name, w.address)
        return tuple(winners)

    def select_winners_uniform_fallback(self, k: int, rng: RandomSource) -> Tuple[Holder, ...]:
        """Like select_winners, but a zero-weight pool is drawn uniformly instead of failing."""
        n = _check_count(k, self.pool)
        if n == 0 or self._total > 0:
            return self.select_winners(k, rng)

        log.warning("Pool weight is zero; falling back to uniform selection.")
        remaining = list(self.pool.holders)
        winners: List[Holder] = []
        while len(winners) < n:
            idx = min(int(rng.next_uniform() * len(remaining)), len(remaining) - 1)
            winners.append(remaining.pop(idx))
        return tuple(winners)

    def _draw_linear(self, n: int, rng: RandomSource) -> List[Holder]:
        holders = self.pool.holders
        weights = self._weights
        drawn: Set[int] = set()
        winners: List[Holder] = []
        remaining_weight = self._total

        while len(winners) < n and remaining_weight > 0:
            r = Fraction(rng.next_uniform()) * remaining_weight
            cumulative = Fraction(0)
            chosen: Optional[int] = None
            for i, w in enumerate(weights):
                if i in drawn or w <= 0:
                    continue
                cumulative += w
                if cumulative > r:
                    chosen = i
                    break
            if chosen is None:
                raise RuntimeError("No eligible holder left to draw (unexpected).")

            drawn.add(chosen)
            winners.append(holders[chosen])
            remaining_weight -= weights[chosen]

        self._exhaust_zero_weight(winners, drawn, n)
        return winners

    def _draw_fenwick(self, n: int, rng: RandomSource) -> List[Holder]:
        holders = self.pool.holders
        weights = list(self._weights)
        tree = FenwickTree(weights)
        drawn: Set[int] = set()
        winners: List[Holder] = []
        remaining_weight = self._total

        while len(winners) < n and remaining_weight > 0:
            r = Fraction(rng.next_uniform()) * remaining_weight
            idx = tree.find(r)
            if idx >= len(weights) or weights[idx] <= 0:
                raise RuntimeError("Cumulative search left the live weights (unexpected).")

            tree.add(idx, -weights[idx])
            remaining_weight -= weights[idx]
            weights[idx] = Fraction(0)
            drawn.add(idx)
            winners.append(holders[idx])

        self._exhaust_zero_weight(winners, drawn, n)
        return winners

    def _exhaust_zero_weight(self, winners: List[Holder], drawn: Set[int], n: int) -> None:
        # Zero-weight holders are only reached once all weight is drawn; take them in pool order.
        for i, h in enumerate(self.pool.holders):
            if len(winners) >= n:
                break
            if i not in drawn:
                drawn.add(i)
                winners.append(h)


def draw_winners(
    pool: Pool, k: int, rng: RandomSource, strategy: str = "linear"
) -> Tuple[Holder, ...]:
    return LotteryEngine(pool, strategy=strategy).select_winners(k, rng)
