from __future__ import annotations

import os
from dataclasses import dataclass
from dotenv import load_dotenv

from .project_constants import (
    DEFAULT_RPC_URL,
    GAME_ADDRESS,
    RPC_TIMEOUT_S,
    TOKEN_ADDRESS,
)


@dataclass(frozen=True)
class Settings:
    rpc_url: str
    game_address: str = GAME_ADDRESS
    token_address: str = TOKEN_ADDRESS
    owner_private_key: str | None = None
    rpc_timeout_s: float = RPC_TIMEOUT_S
    public_url: str = "https://basedbingo.xyz"

    @property
    def has_signer(self) -> bool:
        return bool(self.owner_private_key)

    @staticmethod
    def from_env(
        rpc_url_override: str | None = None,
        timeout_override: float | None = None,
    ) -> "Settings":
        load_dotenv()

        # --rpc-url wins, then RPC_URL, then the paymaster RPC the frontend uses.
        rpc_url = (
            rpc_url_override
            or os.getenv("RPC_URL", "").strip()
            or os.getenv("NEXT_PUBLIC_CDP_RPC", "").strip()
            or DEFAULT_RPC_URL
        )

        timeout = timeout_override
        if timeout is None:
            raw_timeout = os.getenv("RPC_TIMEOUT_S", "").strip()
            try:
                timeout = float(raw_timeout) if raw_timeout else RPC_TIMEOUT_S
            except ValueError:
                raise RuntimeError(f"RPC_TIMEOUT_S must be a number, got {raw_timeout!r}")

        # Missing key is allowed here; only the award paths need it.
        owner_key = os.getenv("OWNER_PRIVATE_KEY", "").strip() or None

        return Settings(
            rpc_url=rpc_url,
            game_address=os.getenv("GAME_ADDRESS", "").strip()
            or os.getenv("NEXT_PUBLIC_GAME_ADDRESS", "").strip()
            or GAME_ADDRESS,
            token_address=os.getenv("TOKEN_ADDRESS", "").strip() or TOKEN_ADDRESS,
            owner_private_key=owner_key,
            rpc_timeout_s=timeout,
            public_url=os.getenv("PUBLIC_URL", "").strip().rstrip("/")
            or "https://basedbingo.xyz",
        )
