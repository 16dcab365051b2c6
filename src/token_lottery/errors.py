from __future__ import annotations


class LotteryError(Exception):
    """Base class for lottery failures."""

    retryable = False


class BalanceFetchError(LotteryError):
    """The balance provider failed or returned an invalid raw balance."""

    retryable = True

    def __init__(self, address: str, symbol: str, reason: str) -> None:
        super().__init__(f"Balance fetch failed for {address} ({symbol}): {reason}")
        self.address = address
        self.symbol = symbol
        self.reason = reason


class ZeroWeightPoolError(LotteryError):
    """Weighted selection requested over a pool whose total weight is zero."""


class InvalidRequestError(LotteryError, ValueError):
    pass


class VerificationError(LotteryError):
    pass


class RpcError(LotteryError):
    retryable = True
