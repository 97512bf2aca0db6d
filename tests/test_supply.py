"""Tests for supply reporting — based_bingo/supply.py."""

import pytest

from based_bingo.errors import ContractReadError
from based_bingo.supply import circulating_supply, format_units, total_supply

from conftest import FakeChain

TOKEN = "0xd5D90dF16CA7b11Ad852e3Bf93c0b9b774CEc047"


def test_format_units():
    assert format_units(1_500_000, 6) == "1.5"
    assert format_units(0, 18) == "0"
    assert format_units(10**21, 18) == "1000"


def test_total_supply():
    chain = FakeChain(uint_results={"decimals()": 6, "totalSupply()": 2_500_000})
    report = total_supply(chain, TOKEN)
    assert report["decimals"] == 6
    assert report["total_supply"] == "2500000"
    assert report["total_supply_formatted"] == "2.5"


def test_circulating_floors_at_zero():
    chain = FakeChain(
        uint_results={"decimals()": 0, "totalSupply()": 10, "balanceOf(address)": 5}
    )
    report = circulating_supply(chain, TOKEN, non_circulating=["0x" + "1" * 40] * 3)
    assert report["circulating_supply"] == "0"
    assert len(report["non_circulating_addresses"]) == 3


def test_empty_return_is_a_read_error():
    class NoCode(FakeChain):
        def call(self, to, data, sender=None):
            self.rpc_count += 1
            return "0x"

    with pytest.raises(ContractReadError) as exc:
        total_supply(NoCode(), TOKEN)
    assert exc.value.status_code == 502
    assert exc.value.diagnostics["raw"] == "0x"
