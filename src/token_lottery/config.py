from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .errors import InvalidRequestError
from .project_constants import DEFAULT_RPC_URL


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    timeout_s: float = 60.0
    max_workers: int = 4

    @staticmethod
    def from_env(rpc_url_override: str | None = None) -> "Settings":
        load_dotenv()

        # An explicit URL wins over RPC_URL, which wins over the public default.
        rpc_url = rpc_url_override or os.getenv("RPC_URL", "").strip() or DEFAULT_RPC_URL

        raw_timeout = os.getenv("RPC_TIMEOUT_S", "").strip()
        raw_workers = os.getenv("LOTTERY_MAX_WORKERS", "").strip()
        try:
            timeout_s = float(raw_timeout) if raw_timeout else 60.0
            max_workers = int(raw_workers) if raw_workers else 4
        except ValueError as e:
            raise InvalidRequestError(f"Invalid lottery settings in environment: {e}") from e

        if timeout_s <= 0:
            raise InvalidRequestError(f"RPC_TIMEOUT_S must be positive, got {timeout_s}")
        if max_workers < 1:
            raise InvalidRequestError(f"LOTTERY_MAX_WORKERS must be >= 1, got {max_workers}")

        return Settings(rpc_url=rpc_url, timeout_s=timeout_s, max_workers=max_workers)
