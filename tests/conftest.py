"""Shared fixtures: an in-process stand-in for the EVM JSON-RPC node."""

from typing import Any, Dict, Iterable, List, Optional

import pytest
from eth_abi import encode as abi_encode

from based_bingo.config import Settings
from based_bingo.errors import RpcError
from based_bingo.relay import selector

OWNER_KEY = "0x" + "11" * 32
GAME = "0x4CE879376Dc50aBB1Eb8F236B76e8e5a724780Be"
PLAYER = "0xABC0000000000000000000000000000000000123"
TX_HASH = "0x" + "ab" * 32


def sel(signature: str) -> str:
    return selector(signature).hex()


class FakeChain:
    """
    Records every RPC the relay makes.

    ``ok`` lists awardWins signatures whose preflight succeeds; everything else
    reverts. ``ok_from_pass`` delays success to a later preflight pass.
    ``call_error`` replaces the revert with a node error. ``owner_raw`` is
    returned verbatim from owner().
    """

    def __init__(
        self,
        ok: Iterable[str] = (),
        ok_from_pass: int = 1,
        candidates_per_pass: Optional[int] = None,
        owner: Optional[str] = None,
        oracle: Optional[bool] = None,
        receipt_status: int = 1,
        send_error: Optional[RpcError] = None,
        estimate_error: Optional[RpcError] = None,
        uint_results: Optional[Dict[str, int]] = None,
        call_error: Optional[RpcError] = None,
        owner_raw: Optional[str] = None,
    ) -> None:
        self.ok = {sel(s) for s in ok}
        self.ok_from_pass = ok_from_pass
        self.candidates_per_pass = candidates_per_pass
        self.owner = owner
        self.oracle = oracle
        self.receipt_status = receipt_status
        self.send_error = send_error
        self.estimate_error = estimate_error
        self.uint_results = uint_results or {}
        self.call_error = call_error
        self.owner_raw = owner_raw
        self.preflights: List[str] = []
        self.reads: List[str] = []
        self.estimates: List[str] = []
        self.sent: List[str] = []
        self.rpc_count = 0

    def _uint(self, value: int) -> str:
        return "0x" + abi_encode(["uint256"], [value]).hex()

    def call(self, to: str, data: str, sender: Optional[str] = None) -> str:
        self.rpc_count += 1
        s = data[2:10]
        if s == sel("owner()"):
            self.reads.append("owner")
            if self.owner_raw is not None:
                return self.owner_raw
            if self.owner is None:
                raise RpcError(3, "execution reverted")
            return "0x" + abi_encode(["address"], [self.owner]).hex()
        if s in (sel("oracles(address)"), sel("isOracle(address)")):
            self.reads.append("oracle")
            if self.oracle is None:
                raise RpcError(3, "execution reverted")
            return "0x" + abi_encode(["bool"], [self.oracle]).hex()
        for signature, value in self.uint_results.items():
            if s == sel(signature):
                self.reads.append(signature)
                return self._uint(value)

        self.preflights.append(s)
        if self.call_error is not None:
            raise self.call_error
        current_pass = 1
        if self.candidates_per_pass:
            current_pass = (len(self.preflights) - 1) // self.candidates_per_pass + 1
        if s in self.ok and current_pass >= self.ok_from_pass:
            return "0x"
        raise RpcError(3, "execution reverted: Not authorized")

    def chain_id(self) -> int:
        self.rpc_count += 1
        return 8453

    def get_balance(self, address: str, block: str = "latest") -> int:
        self.rpc_count += 1
        return 5 * 10**17

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        self.rpc_count += 1
        return 7

    def gas_price(self) -> int:
        return 1_000_000

    def max_priority_fee(self) -> int:
        return 1_000

    def base_fee(self) -> int:
        self.rpc_count += 1
        return 1_000_000

    def estimate_gas(self, to: str, data: str, sender: str) -> int:
        self.rpc_count += 1
        self.estimates.append(data)
        if self.estimate_error is not None:
            raise self.estimate_error
        return 50_000

    def send_raw_transaction(self, raw_tx: str) -> str:
        self.rpc_count += 1
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_tx)
        return TX_HASH

    def get_transaction_receipt(self, tx_hash: str) -> Dict[str, Any]:
        self.rpc_count += 1
        return {
            "transactionHash": tx_hash,
            "blockNumber": 123,
            "gasUsed": 48_000,
            "status": self.receipt_status,
        }

    def close(self) -> None:
        pass


@pytest.fixture
def settings():
    return Settings(
        rpc_url="http://localhost:8545",
        game_address=GAME,
        owner_private_key=OWNER_KEY,
    )


@pytest.fixture
def unsigned_settings():
    return Settings(rpc_url="http://localhost:8545", game_address=GAME)


@pytest.fixture
def sleeps():
    return []
