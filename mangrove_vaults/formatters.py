"""Formatting and conversion utilities."""

from decimal import Decimal, InvalidOperation, localcontext

from mangrove_vaults.constants import ZERO_ADDRESS


def as_int(value, *, default: int = 0) -> int:
    """Coerce RPC-ish values (None, bool, int, decimal or 0x-hex strings, raw bytes) to int."""
    if value is None:
        return default
    if isinstance(value, (bool, int)):
        return int(value)
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    if isinstance(value, str):
        v = value.strip().lower()
        return int(v, 16) if v.startswith("0x") else int(v)
    return int(value)


def normalize_hex_str(value) -> str:
    """0x-prefixed hex for bytes, HexBytes or strings."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if not isinstance(value, str) and hasattr(value, "hex"):
        h = value.hex()
        return h if h.startswith("0x") else "0x" + h
    s = str(value).strip()
    return "0x" + (s[2:] if s[:2].lower() == "0x" else s)


def hex_to_bytes(value) -> bytes:
    """Decode 0x-prefixed hex (or pass bytes through)."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    s = normalize_hex_str(value)[2:]
    return bytes.fromhex(s)


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address comparison."""
    if a is None or b is None:
        return False
    return a.lower() == b.lower()


def is_zero_address(address: str | None) -> bool:
    return address is None or same_address(address, ZERO_ADDRESS)


def format_units(value: int, decimals: int) -> str:
    """Format a raw token amount as a plain decimal string (1500000, 6 -> '1.5')."""
    if decimals == 0:
        return str(value)
    with localcontext() as ctx:
        ctx.prec = 80
        s = f"{Decimal(value).scaleb(-decimals):f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s


def parse_units(text: str, decimals: int) -> int:
    """
    Parse a human amount into base units.

    Raises ValueError on malformed input, negatives, or more fractional digits
    than the token supports.
    """
    try:
        amount = Decimal(str(text).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Not a number: {text!r}") from exc
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Amount must be a non-negative number: {text!r}")
    with localcontext() as ctx:
        ctx.prec = 80
        raw = amount.scaleb(decimals)
    if raw != raw.to_integral_value():
        raise ValueError(f"Too many decimal places for a {decimals}-decimals token: {text!r}")
    return int(raw)


def format_token(value: int, decimals: int, symbol: str | None = None) -> str:
    s = format_units(value, decimals)
    return f"{s} {symbol}" if symbol else s


def format_percent(fraction: float) -> str:
    """Format a fraction as a percentage (0.015 -> '1.5%')."""
    pct = Decimal(str(fraction)) * 100
    s = f"{pct:f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return f"{s}%"


def format_price(price: float, *, sig: int = 6) -> str:
    """Format a price with a fixed number of significant digits."""
    if price == 0:
        return "0"
    return f"{price:.{sig}g}"


def format_native(value_wei: int, *, decimals: int = 6) -> str:
    """Format wei as native currency."""
    eth = Decimal(value_wei) / Decimal(10**18)
    s = f"{eth:.{decimals}f}".rstrip("0").rstrip(".")
    return f"{s} ETH"
