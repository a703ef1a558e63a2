"""Hardcoded labels for well-known Sui packages."""

from txexplainer.explain.formatting import short_address

# normalized package address -> label
KNOWN_PACKAGES: dict[str, str] = {
    "0x1": "Move Stdlib",
    "0x2": "Sui Framework",
    "0x3": "Sui System",
    "0xdee9": "DeepBook",
}


def normalize_package(address: str) -> str:
    """'0x0000...0002' -> '0x2'."""
    if not address:
        return ""
    body = address.lower().removeprefix("0x").lstrip("0")
    return f"0x{body or '0'}"


def package_label(address: str) -> str:
    short = short_address(address)
    label = KNOWN_PACKAGES.get(normalize_package(address))
    if label:
        return f"{label} ({short})"
    return short
