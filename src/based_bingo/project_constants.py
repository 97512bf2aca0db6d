"""
Project-wide immutable parameters for Based Bingo.

These values define the public rules of the game and the reward relay.
Changing them changes payouts and MUST be publicly announced.
"""

# Contracts (Base mainnet)
GAME_ADDRESS = "0x4CE879376Dc50aBB1Eb8F236B76e8e5a724780Be"
TOKEN_ADDRESS = "0xd5D90dF16CA7b11Ad852e3Bf93c0b9b774CEc047"
DEFAULT_RPC_URL = "https://mainnet.base.org"
NETWORK_NAME = "base-mainnet"
CHAIN_ID = 8453

# Held by the team, the game contract or burned; excluded from circulating supply
NON_CIRCULATING_ADDRESSES = (
    "0x86EA71C17B76169Fce3Cd12C94C3CdCaD2C72844",
    "0x88eAbBdD2158D184f4cB1C39B612eABB48289907",
    "0x22cF7a77491614B0b69FF9Fd77D0F63048DB5dDb",
    "0x36Fb73233f8BB562a80fcC3ab9e6e011Cfe091f5",
    "0x4CE879376Dc50aBB1Eb8F236B76e8e5a724780Be",
    "0x000000000000000000000000000000000000dEaD",
)

# Card layout: (letter, min, max) per column
COLUMN_RANGES = (
    ("B", 1, 15),
    ("I", 16, 30),
    ("N", 31, 45),
    ("G", 46, 60),
    ("O", 61, 75),
)
FREE = "FREE"
CENTER = "22"
MAX_NUMBER = 75

# Game timing
DRAW_INTERVAL_S = 3.0
GAME_DURATION_S = 120
RECENT_DRAWS = 5

# Daily limits
MAX_FREE_PLAYS = 3
UNLIMITED_PRICE_BINGO = 50

# Display reward per win label ($BINGO)
REWARD_PER_WIN = 1000

# Relay
PREFLIGHT_RETRY_DELAY_S = 3.0
GAS_MULTIPLIER = 2
MIN_GAS_LIMIT = 150_000
RECEIPT_TIMEOUT_S = 60.0
RECEIPT_POLL_S = 1.0
RPC_TIMEOUT_S = 30.0
