from __future__ import annotations

import hashlib
import random
from typing import Protocol, Tuple

from .errors import InvalidRequestError


class RandomSource(Protocol):
    def next_uniform(self) -> float:
        """Returns a float in [0, 1)."""
        ...


class SeededRandom:
    """Independent, seedable uniform source. Never touches the global `random` state."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self._rng = random.Random(seed)

    def next_uniform(self) -> float:
        return self._rng.random()


def seed_from_blockhash(blockhash: str) -> Tuple[int, str]:
    """
    Derive a public seed from a block hash.
    Anyone holding the same hash recomputes the same seed.
    """
    blockhash = blockhash.strip()
    if not blockhash:
        raise InvalidRequestError("Block hash must be non-empty.")
    seed_hash_hex = hashlib.sha256(blockhash.encode("utf-8")).hexdigest()
    return int(seed_hash_hex, 16), seed_hash_hex
