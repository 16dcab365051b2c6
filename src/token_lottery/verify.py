from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from .draw import draw_winners
from .errors import VerificationError
from .models import Holder, Participant, Pool
from .project_constants import TOOL_NAME, TOOL_VERSION
from .rng import SeededRandom, seed_from_blockhash


def build_draw_record(
    pool: Pool,
    winners: Sequence[Holder],
    k: int,
    seed: int,
    strategy: str = "linear",
    seed_source: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Everything needed for anyone to re-run the draw."""
    metadata: Dict[str, Any] = {
        "tool": TOOL_NAME,
        "version": TOOL_VERSION,
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "seed": str(seed),  # big int; store as string for safety
        "winner_count": k,
        "strategy": strategy,
        "pool_weight": pool.pool_weight,
    }
    if seed_source:
        metadata.update(seed_source)
    return {
        "metadata": metadata,
        # Pool order is part of the draw; keep it.
        "holders": pool.snapshot(),
        "winners": [{"address": w.address, "name": w.name} for w in winners],
    }


def verify_draw(record: Dict[str, Any]) -> Dict[str, Any]:
    meta = record["metadata"]
    seed = int(meta["seed"])
    k = int(meta["winner_count"])
    strategy = meta.get("strategy", "linear")

    if "seed_blockhash" in meta:
        derived, _ = seed_from_blockhash(meta["seed_blockhash"])
        if derived != seed:
            raise VerificationError(
                f"Seed mismatch: record={seed} derived from block hash={derived}"
            )

    holders = []
    for entry in record["holders"]:
        balances = [(sym, Decimal(amount)) for sym, amount in entry["balances"].items()]
        holders.append(
            Holder.from_balances(Participant(entry["address"], entry["name"]), balances)
        )
    pool = Pool(tuple(holders))

    if pool.pool_weight != float(meta["pool_weight"]):
        raise VerificationError(
            f"Pool weight mismatch: record={meta['pool_weight']} recomputed={pool.pool_weight}"
        )

    winners = draw_winners(pool, k, SeededRandom(seed), strategy=strategy)
    expected = [w["address"] for w in record["winners"]]
    recomputed = [w.address for w in winners]
    if recomputed != expected:
        raise VerificationError(f"Winner mismatch: record={expected} recomputed={recomputed}")

    return {
        "ok": True,
        "seed": seed,
        "winners": recomputed,
        "pool_weight": pool.pool_weight,
    }
