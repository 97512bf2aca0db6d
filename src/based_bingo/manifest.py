from __future__ import annotations

from typing import Any, Dict

from .project_constants import CHAIN_ID

# Domain ownership proof issued by Farcaster for basedbingo.xyz
ACCOUNT_ASSOCIATION = {
    "header": "eyJmaWQiOjEwNDUwNDIsInR5cGUiOiJhdXRoIiwia2V5IjoiMHgyZTM3MkEyNzFkQjI3NWNlMDRDOTdkM2RlNWZBMUIzM0QzZUJFNmRFIn0",
    "payload": "eyJkb21haW4iOiJiYXNlZGJpbmdvLnh5eiJ9",
    "signature": "r+PRsIWuo4wnxoxWcnlfVzEY9OkD9KGGk7Mj+Nm7BDoN2UjsYUnPEnETdld5M2SS5bbAhPF7028NsK3o4iHtyBw=",
}

ALLOWED_BUILDER_ADDRESSES = ["0x9AA1789957D7b2A256d44C30c015cB3b1f91Ad18"]


def farcaster_manifest(base_url: str) -> Dict[str, Any]:
    base_url = base_url.rstrip("/")
    return {
        "miniapp": {
            "version": "1",
            "name": "Based Bingo",
            "subtitle": "Bingo game with token wins on Base",
            "description": (
                "A fun, free Bingo game native to Farcaster and Coinbase Wallet. "
                "Mark your card, draw numbers, and win $BINGO on Base!"
            ),
            "primaryCategory": "games",
            "screenshotUrls": [
                f"{base_url}/screenshot1.png",
                f"{base_url}/screenshot2.png",
            ],
            "imageUrl": f"{base_url}/preview.png",
            "heroImageUrl": f"{base_url}/hero.png",
            "splashImageUrl": f"{base_url}/splash.png",
            "splashBackgroundColor": "#0052FF",
            "tags": ["bingo", "games", "base", "crypto", "onchain"],
            "tagline": "Play Bingo. Win $BINGO on Base.",
            "buttonTitle": "Play Based Bingo",
            "ogTitle": "Based Bingo Onchain Fun",
            "ogDescription": "Draw numbers, mark your card, and shout BINGO!",
            "ogImageUrl": f"{base_url}/og-image.png",
            "castShareUrl": f"{base_url}/share",
            "homeUrl": base_url,
            "webhookUrl": f"{base_url}/api/webhook",
            "requiredChains": [f"eip155:{CHAIN_ID}"],
            "iconUrl": f"{base_url}/icon.png",
        },
        "accountAssociation": dict(ACCOUNT_ASSOCIATION),
        "frame": {
            "version": "next",
            "name": "Based Bingo",
            "iconUrl": f"{base_url}/icon.png",
            "splashImageUrl": f"{base_url}/splash.png",
            "splashBackgroundColor": "#0052FF",
            "homeUrl": base_url,
        },
        "baseBuilder": {"allowedAddresses": list(ALLOWED_BUILDER_ADDRESSES)},
    }


def share_url(base_url: str, display_label: str) -> str:
    """Share link for a win, e.g. "Double Line!" -> /win/double-line."""
    slug = display_label.lower().replace("!", "").strip().replace(" ", "-")
    return f"{base_url.rstrip('/')}/win/{slug}"
