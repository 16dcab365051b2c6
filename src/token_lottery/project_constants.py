"""
Project-wide immutable parameters for the token-holder lottery.

These values define the public rules of the draw.
Changing them changes every holder's weight and MUST be publicly announced.
"""

from .models import TrackedToken

# Base mainnet public RPC
DEFAULT_RPC_URL = "https://base.llamarpc.com"

# Tracked ERC-20 balances (order defines report order)
TRACKED_TOKENS = (
    TrackedToken("USDC", "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913", 6),
    TrackedToken("WBTC", "0x0555E30da8f98308EdB960aa94C0Db47230d2B9c", 8),
    TrackedToken("WETH", "0x4200000000000000000000000000000000000006", 18),
)

# ERC-20 function selectors
BALANCE_OF_SELECTOR = "0x70a08231"
DECIMALS_SELECTOR = "0x313ce567"

TOOL_NAME = "token-weighted-lottery"
TOOL_VERSION = "1.0.0"
