from __future__ import annotations

from decimal import Decimal
from typing import Dict, Tuple

import pytest

from token_lottery.models import Holder, Participant, Pool, TrackedToken

USDC = TrackedToken("USDC", "0xusdc", 6)
WBTC = TrackedToken("WBTC", "0xwbtc", 8)
WETH = TrackedToken("WETH", "0xweth", 18)


class FakeBalanceProvider:
    """Serves raw balances from a dict; unknown pairs raise KeyError."""

    def __init__(self, balances: Dict[Tuple[str, str], object]) -> None:
        self.balances = balances
        self.calls = []

    def balance_of(self, address: str, contract_address: str):
        self.calls.append((address, contract_address))
        return self.balances[(address, contract_address)]


class ScriptedRandom:
    """Replays a fixed list of uniforms."""

    def __init__(self, values):
        self.values = list(values)

    def next_uniform(self) -> float:
        return self.values.pop(0)


def make_pool(*weights: float) -> Pool:
    holders = tuple(
        Holder(
            address=f"0x{i:040x}",
            name=f"holder-{i}",
            balances=(("USDC", Decimal(str(w))),),
            total_weight=float(w),
        )
        for i, w in enumerate(weights)
    )
    return Pool(holders)


@pytest.fixture
def tokens():
    return (USDC, WBTC, WETH)


@pytest.fixture
def alice_bob():
    return (
        Participant("0xA", "Alice"),
        Participant("0xB", "Bob"),
    )


@pytest.fixture
def example_provider():
    return FakeBalanceProvider(
        {
            ("0xA", "0xusdc"): 5_000_000,
            ("0xA", "0xwbtc"): 0,
            ("0xA", "0xweth"): 0,
            ("0xB", "0xusdc"): 0,
            ("0xB", "0xwbtc"): 100_000_000,
            ("0xB", "0xweth"): 0,
        }
    )
