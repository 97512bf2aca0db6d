from __future__ import annotations

import itertools
from typing import Any, Dict, Optional

import httpx

from .errors import NetworkError, RelayTimeout, RpcError


def _int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


class RpcClient:
    """Minimal EVM JSON-RPC client.

    Only the handful of ``eth_*`` methods the relay, the supply report and the
    health check need. Anything with the same method names can stand in for it.
    """

    def __init__(self, rpc_url: str, timeout_s: float = 30.0) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s)
        self._ids = itertools.count(1)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _post(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except httpx.TimeoutException as e:
            raise RelayTimeout(f"RPC timeout calling {method}: {e}")
        except httpx.HTTPError as e:
            raise NetworkError(f"Network error calling {method}: {e}")
        except ValueError as e:
            raise NetworkError(f"RPC returned non-JSON body for {method}: {e}")

        if "error" in data and data["error"]:
            err = data["error"]
            raise RpcError(err.get("code"), err.get("message", ""), err.get("data"))
        return data.get("result")

    def chain_id(self) -> int:
        return _int(self._post("eth_chainId", []))

    def get_balance(self, address: str, block: str = "latest") -> int:
        return _int(self._post("eth_getBalance", [address, block]))

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return _int(self._post("eth_getTransactionCount", [address, block]))

    def gas_price(self) -> int:
        return _int(self._post("eth_gasPrice", []))

    def max_priority_fee(self) -> int:
        return _int(self._post("eth_maxPriorityFeePerGas", []))

    def base_fee(self) -> Optional[int]:
        """Latest block's base fee, or None on pre-London chains."""
        block = self._post("eth_getBlockByNumber", ["latest", False]) or {}
        fee = block.get("baseFeePerGas")
        return _int(fee) if fee is not None else None

    def call(self, to: str, data: str, sender: Optional[str] = None) -> str:
        """eth_call against latest state. Reverts surface as RpcError."""
        tx: Dict[str, Any] = {"to": to, "data": data}
        if sender:
            tx["from"] = sender
        return self._post("eth_call", [tx, "latest"])

    def estimate_gas(self, to: str, data: str, sender: str) -> int:
        return _int(
            self._post("eth_estimateGas", [{"from": sender, "to": to, "data": data}])
        )

    def send_raw_transaction(self, raw_tx: str) -> str:
        return self._post("eth_sendRawTransaction", [raw_tx])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        receipt = self._post("eth_getTransactionReceipt", [tx_hash])
        if not receipt:
            return None
        return {
            "transactionHash": receipt.get("transactionHash", tx_hash),
            "blockNumber": _int(receipt["blockNumber"]),
            "gasUsed": _int(receipt["gasUsed"]),
            "status": _int(receipt.get("status", "0x1")),
        }
