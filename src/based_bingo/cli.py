from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
from typing import Any, Dict, List

from .card import display_labels, render_card, reward_for
from .challenges import current_challenge, week_key, week_number
from .config import Settings
from .errors import RelayError
from .game import GameSession
from .relay import AwardRequest, RewardRelay
from .rpc import RpcClient
from .supply import circulating_supply, total_supply


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _settings(args: argparse.Namespace) -> Settings:
    return Settings.from_env(rpc_url_override=args.rpc_url, timeout_override=args.timeout)


def _print_json(obj: Dict[str, Any]) -> None:
    print(json.dumps(obj, indent=2, default=str))


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .api import create_app

    app = create_app(_settings(args))
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def cmd_award(args: argparse.Namespace) -> int:
    settings = _settings(args)
    log = logging.getLogger("award")

    rpc = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
    try:
        relay = RewardRelay(settings, rpc)
        try:
            request = relay.build_request(args.address, args.win_type, args.game_id)
            result = relay.award(request, dry_run=args.dry_run)
        except RelayError as e:
            log.error("%s: %s", type(e).__name__, e.message)
            _print_json(e.to_dict())
            return 2 if e.transient else 1
    finally:
        rpc.close()

    _print_json(result)
    return 0


def cmd_health(args: argparse.Namespace) -> int:
    settings = _settings(args)
    rpc = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
    try:
        _print_json(RewardRelay(settings, rpc).health())
    finally:
        rpc.close()
    return 0


def cmd_supply(args: argparse.Namespace) -> int:
    settings = _settings(args)
    rpc = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
    try:
        if args.circulating:
            report = circulating_supply(rpc, settings.token_address)
        else:
            report = total_supply(rpc, settings.token_address)
    finally:
        rpc.close()
    _print_json(report)
    return 0


async def _auto_play(session: GameSession) -> None:
    """Dab every recent draw that sits on the card until the game ends."""
    session.start()
    while session.active_timers:
        for num in session.draws.recent:
            for col in range(5):
                for row in range(5):
                    if session.card[col][row] == num:
                        session.mark(row, col)
        await asyncio.sleep(session.draw_interval_s / 2)
    await session.wait()


def cmd_play(args: argparse.Namespace) -> int:
    log = logging.getLogger("play")
    wins: List[AwardRequest] = []

    rng = random.Random(args.seed) if args.seed is not None else None
    session = GameSession(
        rng=rng,
        draw_interval_s=args.interval,
        duration_s=args.duration,
        tick_s=args.interval / 3 if args.fast else 1.0,
        player_address=args.address,
        game_id=args.game_id,
        on_win=wins.append,
    )
    print(render_card(session.card, session.marked))
    asyncio.run(_auto_play(session))

    print("----------------------------------------")
    print(render_card(session.card, session.marked))
    print("----------------------------------------")
    print(f"Ended        : {session.end_reason.value}")
    print(f"Numbers drawn: {len(session.draws.history)}")
    print(f"Lines        : {session.win.count}")
    print(f"Wins         : {' + '.join(display_labels(session.win)) if session.win.has_win else '-'}")
    print(f"Reward       : {reward_for(session.win)} $BINGO")

    if args.award and wins:
        settings = _settings(args)
        rpc = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
        try:
            relay = RewardRelay(settings, rpc)
            last = wins[-1]
            try:
                _print_json(relay.award(last, dry_run=args.dry_run))
            except RelayError as e:
                log.error("Award failed: %s", e.message)
                _print_json(e.to_dict())
                return 1
        finally:
            rpc.close()
    return 0


def cmd_challenge(args: argparse.Namespace) -> int:
    challenge = current_challenge()
    print(f"Week         : {week_key()}")
    print(f"Challenge    : {challenge.name} ({challenge.id})")
    print(f"Goal         : {challenge.goal}")
    print(f"Reward       : {challenge.reward_bingo} $BINGO")

    if not args.award_to:
        return 0

    settings = _settings(args)
    rpc = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
    try:
        relay = RewardRelay(settings, rpc)
        amount = args.amount if args.amount is not None else challenge.reward_bingo * 10**18
        try:
            result = relay.award_weekly(args.award_to, challenge.id, week_number(), amount)
        except RelayError as e:
            _print_json(e.to_dict())
            return 1
    finally:
        rpc.close()
    _print_json(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="based-bingo",
        description="Based Bingo game engine and $BINGO reward relay.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument("--rpc-url", default=None, help="Override RPC URL (else use env).")
    p.add_argument("--timeout", type=float, default=None, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the HTTP API.")
    s.add_argument("--host", default="0.0.0.0")
    s.add_argument("--port", type=int, default=8000)
    s.set_defaults(func=cmd_serve)

    a = sub.add_parser("award", help="Award win types to a player through the game contract.")
    a.add_argument("--address", required=True, help="Player wallet address (0x...).")
    a.add_argument(
        "--win-type",
        action="append",
        required=True,
        help="Win type, e.g. LINE or 'Double Line!'. Repeatable.",
    )
    a.add_argument("--game-id", type=int, default=None, help="Game id for 3-argument contracts.")
    a.add_argument("--dry-run", action="store_true", help="Preflight only; send nothing.")
    a.set_defaults(func=cmd_award)

    h = sub.add_parser("health", help="Show signer configuration and balance.")
    h.set_defaults(func=cmd_health)

    sp = sub.add_parser("supply", help="Report $BINGO total or circulating supply.")
    sp.add_argument("--circulating", action="store_true")
    sp.set_defaults(func=cmd_supply)

    pl = sub.add_parser("play", help="Auto-play one game in the terminal.")
    pl.add_argument("--seed", type=int, default=None, help="Seed for a reproducible game.")
    pl.add_argument("--interval", type=float, default=3.0, help="Seconds between draws.")
    pl.add_argument("--duration", type=int, default=120, help="Countdown ticks.")
    pl.add_argument("--fast", action="store_true", help="Tick the countdown faster than real time.")
    pl.add_argument("--address", default=None, help="Player address for awards.")
    pl.add_argument("--game-id", type=int, default=None)
    pl.add_argument("--award", action="store_true", help="Relay the best win on-chain.")
    pl.add_argument("--dry-run", action="store_true", help="With --award, preflight only.")
    pl.set_defaults(func=cmd_play)

    c = sub.add_parser("challenge", help="Show (and optionally award) this week's challenge.")
    c.add_argument("--award-to", default=None, help="Player address to award.")
    c.add_argument("--amount", type=int, default=None, help="Amount in wei (default: reward).")
    c.set_defaults(func=cmd_challenge)

    return p


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
