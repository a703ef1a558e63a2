"""Display helpers shared by both explanation engines: addresses, amounts, gas, coins, timestamps."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from txexplainer.chain.registry import CHAINS

NAME_UNAVAILABLE = "account name not available"

MIST_PER_SUI = 10 ** CHAINS["sui"].native_decimals
TINYBAR_PER_HBAR = 10 ** CHAINS["hedera"].native_decimals

# Values at or above this are assumed to be MIST rather than SUI.
MIST_THRESHOLD = 1_000_000
EXPONENTIAL_THRESHOLD = 0.000001

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_COIN_TYPE_RE = re.compile(r"Coin<[^>]+::([^:>]+)>")


# --- Addresses ---


def short_address(address: str | None, head: int = 6, tail: int = 4) -> str:
    if not address:
        return "Unknown"
    if len(address) <= head + tail:
        return address
    return f"{address[:head]}...{address[-tail:]}"


def display_name(
    address: str | None,
    account_names: dict[str, str],
    head: int = 6,
    tail: int = 4,
) -> str:
    """Render an actor as 'Name (0x12...abcd)' or '0x12...abcd (account name not available)'."""
    short = short_address(address, head, tail)
    name = account_names.get(address or "")
    if name:
        return f"{name} ({short})"
    return f"{short} ({NAME_UNAVAILABLE})"


def hedera_display_name(account: str | None, account_names: dict[str, str]) -> str:
    return display_name(account, account_names, head=8, tail=6)


def plain_name(address: str, account_names: dict[str, str], head: int = 6, tail: int = 4) -> str:
    """Name alone when known; otherwise the fallback display."""
    return account_names.get(address) or display_name(address, account_names, head, tail)


# --- Numbers ---


def _grouped(num: float, max_fraction_digits: int) -> str:
    text = f"{num:,.{max_fraction_digits}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _exponential(num: float, digits: int = 2) -> str:
    mantissa, exponent = f"{num:.{digits}e}".split("e")
    exp = int(exponent)
    return f"{mantissa}e{'+' if exp >= 0 else '-'}{abs(exp)}"


def _plain(num: float) -> str:
    return str(int(num)) if float(num).is_integer() else repr(num)


def to_number(value) -> float:
    """Parse an upstream numeric field (int, float or numeric string). Unparseable values are 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def to_int(value) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return int(to_number(value))


def format_amount(value) -> str:
    """Format a Sui balance magnitude without a unit.

    The unit is detected heuristically: magnitudes of at least 1e6 are taken to be
    MIST and converted to SUI, everything else is printed as-is.
    """
    num = to_number(value)
    if num == 0:
        return "0"
    if num >= MIST_THRESHOLD:
        sui = num / MIST_PER_SUI
        if sui >= 1:
            return _grouped(sui, 2)
        return f"{sui:.6f}"
    if num < EXPONENTIAL_THRESHOLD:
        return _exponential(num, 2)
    return _grouped(num, 9)


def format_gas(value) -> str:
    """MIST to SUI; amounts under a micro-SUI stay in MIST."""
    num = to_number(value)
    sui = num / MIST_PER_SUI
    if sui < EXPONENTIAL_THRESHOLD:
        return f"{_plain(num)} MIST"
    return f"{sui:.9f} SUI"


def format_hbar(tinybar) -> str:
    return f"{abs(to_number(tinybar)) / TINYBAR_PER_HBAR:.9f}"


def format_token_amount(raw: int, decimals: int) -> str:
    """Scale a raw token amount by its decimals, dropping trailing fractional zeros."""
    try:
        value = Decimal(abs(int(raw))).scaleb(-int(decimals))
    except (InvalidOperation, TypeError, ValueError):
        return str(raw)
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


# --- Coins ---


def coin_symbol(coin_type: str | None) -> str:
    """'0x2::sui::SUI' -> 'SUI'; generic wrappers are unwrapped first."""
    if not coin_type:
        return "SUI"
    if "<" in coin_type and coin_type.endswith(">"):
        return coin_symbol(coin_type[coin_type.index("<") + 1:-1])
    if "::" in coin_type:
        return coin_type.rsplit("::", 1)[-1] or coin_type
    return coin_type


def extract_token_type(object_type: str) -> str:
    """Token label for a coin object type such as 'Coin<0x2::sui::SUI>'."""
    match = _COIN_TYPE_RE.search(object_type)
    if match:
        name = match.group(1)
        return name[:1].upper() + name[1:]
    for known in ("SUI", "USDC", "USDT", "Stablecoin"):
        if known in object_type:
            return known
    return "Token"


def is_coin_object(object_type: str | None) -> bool:
    return bool(object_type) and ("Coin" in object_type or "Token" in object_type)


# --- Timestamps ---


def parse_timestamp_ms(value) -> int | None:
    """Epoch milliseconds from an int, a digit string or an ISO-8601 string."""
    if value is None or isinstance(value, bool) or value == "":
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if text.isdigit():
        return int(text)
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int((parsed - _EPOCH) / timedelta(milliseconds=1))


def parse_hedera_timestamp(value) -> int | None:
    """'seconds.nanoseconds' consensus timestamp to epoch milliseconds."""
    if value is None:
        return None
    text = str(value).strip()
    seconds, sep, nanos = text.partition(".")
    if sep and seconds.isdigit() and nanos.isdigit():
        return int(seconds) * 1000 + int(nanos) // 1_000_000
    return parse_timestamp_ms(text)


def timestamp_fields(ms: int | None) -> tuple[str | None, str | None]:
    """(ISO-8601 instant, display string) for epoch milliseconds, or (None, None) when invalid."""
    if ms is None:
        return None, None
    try:
        dt = _EPOCH + timedelta(milliseconds=ms)
    except (OverflowError, ValueError):
        return None, None
    iso = dt.strftime("%Y-%m-%dT%H:%M:%S") + f".{dt.microsecond // 1000:03d}Z"
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    formatted = f"{dt.month}/{dt.day}/{dt.year}, {hour}:{dt.minute:02d}:{dt.second:02d} {meridiem} UTC"
    return iso, formatted


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    return singular if count == 1 else (plural or f"{singular}s")
