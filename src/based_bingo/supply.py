from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, Sequence

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_utils import keccak, to_checksum_address

from .errors import ContractReadError
from .project_constants import NETWORK_NAME, NON_CIRCULATING_ADDRESSES


def _read_uint(
    chain: Any,
    token: str,
    signature: str,
    types: Sequence[str] = (),
    args: Sequence[Any] = (),
) -> int:
    data = keccak(text=signature)[:4] + abi_encode(list(types), list(args))
    raw = chain.call(token, "0x" + data.hex())
    try:
        (value,) = abi_decode(["uint256"], bytes.fromhex(raw[2:]))
    except (DecodingError, ValueError, TypeError):
        raise ContractReadError(
            f"{signature} on {token} returned undecodable data", raw=raw
        )
    return int(value)


def format_units(raw_amount: int, decimals: int) -> str:
    value = Decimal(raw_amount) / (Decimal(10) ** decimals)
    return format(value.normalize(), "f") if value else "0"


def total_supply(chain: Any, token: str) -> Dict[str, Any]:
    decimals = _read_uint(chain, token, "decimals()")
    supply = _read_uint(chain, token, "totalSupply()")
    return {
        "token_address": token,
        "network": NETWORK_NAME,
        "decimals": decimals,
        "total_supply": str(supply),
        "total_supply_formatted": format_units(supply, decimals),
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }


def circulating_supply(
    chain: Any,
    token: str,
    non_circulating: Iterable[str] = NON_CIRCULATING_ADDRESSES,
) -> Dict[str, Any]:
    """Total supply minus balances held by team, game contract and burn address."""
    non_circulating = list(non_circulating)
    report = total_supply(chain, token)
    decimals = report["decimals"]
    supply = int(report["total_supply"])

    held = 0
    for addr in non_circulating:
        held += _read_uint(
            chain, token, "balanceOf(address)", ["address"], [to_checksum_address(addr)]
        )
    circulating = max(0, supply - held)

    report.update(
        circulating_supply=str(circulating),
        circulating_supply_formatted=format_units(circulating, decimals),
        non_circulating_addresses=non_circulating,
    )
    return report
