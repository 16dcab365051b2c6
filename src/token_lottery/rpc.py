from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from .errors import RpcError
from .project_constants import BALANCE_OF_SELECTOR, DECIMALS_SELECTOR


def encode_address_arg(address: str) -> str:
    """ABI-encode an address as a 32-byte word (hex, no 0x prefix)."""
    body = address.lower()
    if body.startswith("0x"):
        body = body[2:]
    if len(body) != 40:
        raise ValueError(f"Not a 20-byte hex address: {address}")
    int(body, 16)
    return body.rjust(64, "0")


class RpcClient:
    """Minimal EVM JSON-RPC client. Satisfies the BalanceProvider protocol."""

    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _post(self, method: str, params: List[Any]) -> Dict[str, Any]:
        payload = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": method,
            "params": params,
        }
        resp = self.client.post(self.rpc_url, json=payload)
        resp.raise_for_status()
        data = resp.json()
        if "error" in data:
            raise RpcError(f"RPC error: {data['error']}")
        return data

    def _eth_call(self, to: str, data: str) -> int:
        result = self._post("eth_call", [{"to": to, "data": data}, "latest"]).get("result")
        if not isinstance(result, str) or not result.startswith("0x"):
            raise RpcError(f"eth_call to {to} returned {result!r}")
        # Empty return data means no contract code at `to`.
        if result == "0x":
            raise RpcError(f"eth_call to {to} returned no data")
        return int(result, 16)

    def balance_of(self, address: str, contract_address: str) -> int:
        """ERC-20 balanceOf(address), raw units."""
        return self._eth_call(contract_address, BALANCE_OF_SELECTOR + encode_address_arg(address))

    def decimals(self, contract_address: str) -> int:
        return self._eth_call(contract_address, DECIMALS_SELECTOR)

    def get_block_number(self) -> int:
        data = self._post("eth_blockNumber", [])
        return int(data["result"], 16)

    def get_block_hash(self, number: int) -> str:
        data = self._post("eth_getBlockByNumber", [hex(number), False])
        result = data.get("result")
        if not result or "hash" not in result:
            raise RpcError(f"Block {number}: eth_getBlockByNumber returned no hash.")
        return result["hash"]
