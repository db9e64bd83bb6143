"""Static catalog of bridge target chains and tokens."""

SUPPORTED_CHAINS: list[dict[str, object]] = [
    {"name": "Ethereum", "chainId": 1, "icon": "eth"},
    {"name": "Polygon", "chainId": 137, "icon": "matic"},
    {"name": "BSC", "chainId": 56, "icon": "bnb"},
    {"name": "Arbitrum", "chainId": 42161, "icon": "arb"},
    {"name": "Optimism", "chainId": 10, "icon": "op"},
]

SUPPORTED_TOKENS: list[dict[str, object]] = [
    {"symbol": "ETH", "name": "Ethereum", "decimals": 18},
    {"symbol": "MATIC", "name": "Polygon", "decimals": 18},
    {"symbol": "BNB", "name": "BNB", "decimals": 18},
    {"symbol": "USDC", "name": "USD Coin", "decimals": 6},
    {"symbol": "USDT", "name": "Tether", "decimals": 6},
]
