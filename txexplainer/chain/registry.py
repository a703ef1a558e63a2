"""Chain registry mapping blockchain name to configuration."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainConfig:
    name: str
    native_token: str
    native_decimals: int
    display_name: str


CHAINS: dict[str, ChainConfig] = {
    "hedera": ChainConfig(
        name="hedera", native_token="HBAR", native_decimals=8, display_name="Hedera",
    ),
    "sui": ChainConfig(
        name="sui", native_token="SUI", native_decimals=9, display_name="Sui",
    ),
}

DEFAULT_CHAIN = "hedera"


def resolve_chain(name: str | None) -> ChainConfig:
    """Resolve a blockchain name (case-insensitive, default hedera) to its config."""
    key = (name or DEFAULT_CHAIN).strip().lower()
    if key not in CHAINS:
        raise ValueError(f"Unknown blockchain '{name}'. Supported: {list(CHAINS.keys())}")
    return CHAINS[key]
