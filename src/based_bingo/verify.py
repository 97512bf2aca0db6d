from __future__ import annotations

import base64
import json
import time
from typing import Any, Dict, Iterable, Optional

from eth_utils import keccak

CLAIM_FIELDS = ("sub", "aud", "iss", "exp", "iat", "wallet", "user")


def decode_action_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode the payload segment of a Mini App action JWT.
    The signature is not checked; this only surfaces what the host sent.
    """
    parts = token.split(".")
    if len(parts) != 3:
        return None
    payload = parts[1].replace("-", "+").replace("_", "/")
    payload += "=" * (-len(payload) % 4)
    try:
        claims = json.loads(base64.b64decode(payload).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None
    return claims if isinstance(claims, dict) else None


def verify_action_token(token: str, now: Optional[float] = None) -> Dict[str, Any]:
    claims = decode_action_token(token) or {}
    now = int(now if now is not None else time.time())
    exp = claims.get("exp")
    expired = isinstance(exp, (int, float)) and exp < now
    return {
        "success": True,
        "tokenPresent": True,
        "expired": expired,
        "claims": {k: claims.get(k) for k in CLAIM_FIELDS},
    }


def win_digest(address: str, win_types: Iterable[str], timestamp_ms: int) -> str:
    """keccak256 of "<address>-<win types joined by ->-<timestamp>"."""
    win_data = f"{address}-{'-'.join(win_types)}-{timestamp_ms}"
    return "0x" + keccak(text=win_data).hex()
