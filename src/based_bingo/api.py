from __future__ import annotations

import logging
import time
from typing import Any, Optional

from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .challenges import current_challenge, week_key
from .config import Settings
from .errors import RelayError, RpcError, ValidationError
from .manifest import farcaster_manifest
from .relay import RewardRelay, is_address
from .rpc import RpcClient
from .supply import circulating_supply, total_supply
from .verify import verify_action_token, win_digest

log = logging.getLogger("api")


def create_app(
    settings: Optional[Settings] = None,
    chain: Any = None,
    relay: Optional[RewardRelay] = None,
) -> FastAPI:
    settings = settings or Settings.from_env()
    owns_chain = chain is None
    if chain is None:
        chain = RpcClient(settings.rpc_url, timeout_s=settings.rpc_timeout_s)
    relay = relay or RewardRelay(settings, chain)

    app = FastAPI(title="Based Bingo")
    app.state.settings = settings
    app.state.chain = chain
    app.state.relay = relay

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RelayError)
    async def relay_error(request: Request, exc: RelayError):
        level = logging.WARNING if exc.status_code < 500 else logging.ERROR
        log.log(level, "%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def bad_body(request: Request, exc: RequestValidationError):
        err = ValidationError("Invalid request body: JSON object required")
        return JSONResponse(status_code=400, content=err.to_dict())

    @app.exception_handler(RpcError)
    async def rpc_error(request: Request, exc: RpcError):
        log.error("%s %s -> RPC error: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=502,
            content={"success": False, "error": "RpcError", "message": exc.rpc_message},
        )

    @app.on_event("shutdown")
    def close_chain():
        if owns_chain:
            chain.close()

    # -----------------------------
    # REWARDS
    # -----------------------------

    @app.post("/api/award-wins")
    @app.post("/award-wins")
    def award_wins(data: dict):
        award = relay.build_request(
            data.get("address"), data.get("winTypes"), data.get("gameId")
        )
        dry_run = data.get("dryRun", False)
        if not isinstance(dry_run, bool):
            raise ValidationError("dryRun must be a boolean")
        return relay.award(award, dry_run=dry_run)

    @app.get("/api/award-wins")
    @app.get("/award-wins")
    def award_wins_health():
        return relay.health()

    @app.post("/api/weekly/award")
    def weekly_award(data: dict):
        return relay.award_weekly(
            data.get("player"),
            data.get("challengeId"),
            data.get("weekKey"),
            data.get("amount"),
        )

    @app.get("/api/challenges/current")
    def challenge_of_the_week():
        return {"weekKey": week_key(), "challenge": current_challenge().to_dict()}

    # -----------------------------
    # TOKEN SUPPLY
    # -----------------------------

    @app.get("/api/total-supply")
    def get_total_supply():
        return total_supply(chain, settings.token_address)

    @app.get("/api/supply")
    @app.get("/api/circulating-supply")
    def get_circulating_supply():
        return circulating_supply(chain, settings.token_address)

    # -----------------------------
    # MINI APP
    # -----------------------------

    @app.get("/api/miniapp/verify")
    async def miniapp_verify_info():
        return {"status": "ok", "message": "Mini App verification endpoint"}

    @app.post("/api/miniapp/verify")
    async def miniapp_verify(x_action_id_token: Optional[str] = Header(None)):
        if not x_action_id_token:
            return JSONResponse(
                status_code=401,
                content={"success": False, "message": "Missing X-Action-Id-Token header"},
            )
        return verify_action_token(x_action_id_token)

    @app.get("/api/verify-win")
    async def verify_win_info():
        return {
            "message": "Win verification API - POST required",
            "usage": "POST with { address, winTypes }",
        }

    @app.post("/api/verify-win")
    def verify_win(data: dict):
        address = data.get("address")
        win_types = data.get("winTypes")
        if not is_address(address) or not isinstance(win_types, list):
            raise ValidationError("Missing required fields: address, winTypes")
        if not all(isinstance(w, str) for w in win_types):
            raise ValidationError("winTypes entries must be strings")
        timestamp = int(time.time() * 1000)
        digest = win_digest(address, win_types, timestamp)
        signature = None
        if settings.has_signer:
            signed = Account.sign_message(
                encode_defunct(hexstr=digest), settings.owner_private_key
            )
            signature = "0x" + bytes(signed.signature).hex()
        log.info("Win verification for %s: %s", address, ", ".join(win_types))
        return {
            "success": True,
            "hash": digest,
            "signature": signature,
            "winData": {"address": address, "winTypes": win_types, "timestamp": timestamp},
        }

    @app.get("/.well-known/farcaster.json")
    @app.get("/.well-known/miniapp.json")
    async def manifest():
        return farcaster_manifest(settings.public_url)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app
