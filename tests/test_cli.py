"""Tests for argument parsing — based_bingo/cli.py."""

import pytest

from based_bingo.cli import build_parser, cmd_award

from conftest import PLAYER


def test_award_arguments():
    args = build_parser().parse_args(
        ["award", "--address", PLAYER, "--win-type", "Line Bingo!", "--win-type", "LINE", "--game-id", "42", "--dry-run"]
    )
    assert args.win_type == ["Line Bingo!", "LINE"]
    assert args.game_id == 42
    assert args.dry_run
    assert args.func is cmd_award


def test_subcommand_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_invalid_address_exits_before_network(monkeypatch, capsys):
    monkeypatch.delenv("OWNER_PRIVATE_KEY", raising=False)
    args = build_parser().parse_args(
        ["--rpc-url", "http://127.0.0.1:9", "award", "--address", "nope", "--win-type", "LINE"]
    )
    assert cmd_award(args) == 1
    assert "ValidationError" in capsys.readouterr().out
