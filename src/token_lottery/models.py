from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidRequestError, ZeroWeightPoolError


@dataclass(frozen=True)
class TrackedToken:
    symbol: str
    contract_address: str
    decimals: int

    def __post_init__(self) -> None:
        if isinstance(self.decimals, bool) or not isinstance(self.decimals, int):
            raise InvalidRequestError(
                f"Token {self.symbol}: decimals must be an integer, got {self.decimals!r}"
            )
        if self.decimals < 0:
            raise InvalidRequestError(
                f"Token {self.symbol}: decimals must be non-negative, got {self.decimals}"
            )


@dataclass(frozen=True)
class Participant:
    address: str
    name: str


@dataclass(frozen=True)
class Holder:
    """
    A participant annotated with its normalized balances.

    balances keeps (symbol, amount) pairs in tracked-token order so reports
    are stable. total_weight is the sum of those amounts.
    """

    address: str
    name: str
    balances: Tuple[Tuple[str, Decimal], ...]
    total_weight: float

    @classmethod
    def from_balances(
        cls, participant: Participant, balances: List[Tuple[str, Decimal]]
    ) -> "Holder":
        total = sum((amount for _, amount in balances), Decimal(0))
        return cls(
            address=participant.address,
            name=participant.name,
            balances=tuple(balances),
            total_weight=float(total),
        )

    @property
    def exact_weight(self) -> Fraction:
        """total_weight without float rounding."""
        return sum((Fraction(amount) for _, amount in self.balances), Fraction(0))

    def balance(self, symbol: str) -> Decimal:
        for sym, amount in self.balances:
            if sym == symbol:
                return amount
        raise KeyError(symbol)


@dataclass(frozen=True)
class Pool:
    holders: Tuple[Holder, ...]
    pool_weight: float = field(init=False)

    def __post_init__(self) -> None:
        seen = set()
        for h in self.holders:
            if h.address in seen:
                raise InvalidRequestError(f"Duplicate holder address: {h.address}")
            seen.add(h.address)
        object.__setattr__(
            self, "pool_weight", math.fsum(h.total_weight for h in self.holders)
        )

    def __len__(self) -> int:
        return len(self.holders)

    def win_probability(self, holder: Holder) -> float:
        """Single-draw probability of `holder` winning."""
        if self.pool_weight <= 0:
            raise ZeroWeightPoolError("Win probability is undefined for a zero-weight pool.")
        return holder.total_weight / self.pool_weight

    def snapshot(self) -> List[Dict[str, Any]]:
        out: List[Dict[str, Any]] = []
        for h in self.holders:
            prob: Optional[float] = None
            if self.pool_weight > 0:
                prob = self.win_probability(h)
            out.append(
                {
                    "address": h.address,
                    "name": h.name,
                    "balances": {sym: str(amount) for sym, amount in h.balances},
                    "total_weight": h.total_weight,
                    "win_probability": prob,
                }
            )
        return out
