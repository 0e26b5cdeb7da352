"""Protocol constants for the JAM solver.

Centralizes well-known addresses and Bebop settlement parameters.
"""

from jam_solver.models.types import is_valid_address


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a token address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Sentinel used by JAM orders for the chain's native asset (ETH, MATIC, xDAI, ...)
NATIVE_TOKEN = _validate_token_address("NATIVE", "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee")

# Bebop settlement contract (mainnet and polygon share the address)
BEBOP_SETTLEMENT = "0xbbbbbbb520d69a9775e85b458c58c648259fad5f"

# EIP-712 domain of BebopSettlement
BEBOP_DOMAIN_NAME = "BebopSettlement"
BEBOP_DOMAIN_VERSION = "1"

# Added to every maker amount so the taker receives at least what the JAM order asks for
SOLVER_EXCESS = 1000

# Seconds a signed Bebop order stays valid
EXPIRY_HORIZON = 1000

# Maker nonces are drawn from [1, NONCE_SPACE)
NONCE_SPACE = 2**64

# Chain IDs
CHAIN_ID_MAINNET = 1
CHAIN_ID_OPTIMISM = 10
CHAIN_ID_GNOSIS = 100
CHAIN_ID_POLYGON = 137
CHAIN_ID_BASE = 8453
CHAIN_ID_ARBITRUM = 42161

# Wrapped native tokens (lowercase for consistency)
WETH = _validate_token_address("WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
WMATIC_POLYGON = _validate_token_address("WMATIC", "0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270")
WXDAI_GNOSIS = _validate_token_address("WXDAI", "0xe91d153e0b41518a2ce8dd3d7944fa863463a97d")
WETH_OPTIMISM = _validate_token_address("WETH", "0x4200000000000000000000000000000000000006")
WETH_BASE = _validate_token_address("WETH", "0x4200000000000000000000000000000000000006")
WETH_ARBITRUM = _validate_token_address("WETH", "0x82af49447d8a07e3bd95bd0d56f35241523fbab1")

WRAPPED_NATIVE_TOKENS = {
    CHAIN_ID_MAINNET: WETH,
    CHAIN_ID_OPTIMISM: WETH_OPTIMISM,
    CHAIN_ID_GNOSIS: WXDAI_GNOSIS,
    CHAIN_ID_POLYGON: WMATIC_POLYGON,
    CHAIN_ID_BASE: WETH_BASE,
    CHAIN_ID_ARBITRUM: WETH_ARBITRUM,
}

# Network names accepted by the HTTP API
NETWORK_CHAIN_IDS = {
    "mainnet": CHAIN_ID_MAINNET,
    "optimism": CHAIN_ID_OPTIMISM,
    "xdai": CHAIN_ID_GNOSIS,
    "polygon": CHAIN_ID_POLYGON,
    "base": CHAIN_ID_BASE,
    "arbitrum-one": CHAIN_ID_ARBITRUM,
}
