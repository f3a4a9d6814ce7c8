"""Interactive input helpers. Invalid answers are reported and asked again."""

import sys
from typing import Callable, Sequence, TypeVar

from mangrove_vaults.errors import ValidationError
from mangrove_vaults.formatters import format_units, is_zero_address, parse_units

T = TypeVar("T")


def _ask(message: str, default: str | None = None) -> str:
    suffix = f" [{default}]" if default not in (None, "") else ""
    answer = input(f"❓ {message}{suffix}: ").strip()
    if not answer and default is not None:
        return default
    return answer


def _retry(message: str, parse: Callable[[str], T], default: str | None = None) -> T:
    while True:
        raw = _ask(message, default)
        try:
            return parse(raw)
        except ValueError as ex:
            print(f"❌ {ex}", file=sys.stderr)


def confirm(message: str, default: bool = False) -> bool:
    hint = "Y/n" if default else "y/N"
    while True:
        answer = input(f"❓ {message} ({hint}): ").strip().lower()
        if not answer:
            return default
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        print("❌ Please answer y or n.", file=sys.stderr)


def select(message: str, choices: Sequence[tuple[str, T]]) -> T:
    """Numbered menu; returns the value paired with the chosen label."""
    if not choices:
        raise ValueError("Nothing to choose from")
    print(f"\n{message}", file=sys.stderr)
    for i, (label, _) in enumerate(choices, start=1):
        print(f"  {i}) {label}", file=sys.stderr)

    def parse(raw: str) -> T:
        if not raw.isdigit() or not 1 <= int(raw) <= len(choices):
            raise ValidationError(f"Enter a number between 1 and {len(choices)}")
        return choices[int(raw) - 1][1]

    return _retry("Choice", parse)


def ask_text(message: str, default: str | None = None, *, allow_empty: bool = False) -> str:
    def parse(raw: str) -> str:
        if not raw and not allow_empty:
            raise ValidationError("A value is required")
        return raw

    return _retry(message, parse, default)


def to_address(raw: str) -> str:
    """Validate and checksum an address."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    if not Web3.is_address(raw):
        raise ValidationError(f"Invalid address: {raw!r}")
    return Web3.to_checksum_address(raw)


def ask_address(message: str, default: str | None = None, *, allow_zero: bool = False) -> str:
    def parse(raw: str) -> str:
        address = to_address(raw)
        if not allow_zero and is_zero_address(address):
            raise ValidationError("The zero address is not allowed here")
        return address

    return _retry(message, parse, default)


def ask_int(message: str, default: int | None = None, *, minimum: int | None = None, maximum: int | None = None) -> int:
    def parse(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError as ex:
            raise ValidationError(f"Expected a whole number: {raw!r}") from ex
        if minimum is not None and value < minimum:
            raise ValidationError(f"Must be >= {minimum}")
        if maximum is not None and value > maximum:
            raise ValidationError(f"Must be <= {maximum}")
        return value

    return _retry(message, parse, None if default is None else str(default))


def ask_float(message: str, default: float | None = None, *, positive: bool = True) -> float:
    def parse(raw: str) -> float:
        try:
            value = float(raw)
        except ValueError as ex:
            raise ValidationError(f"Expected a number: {raw!r}") from ex
        if positive and not value > 0:
            raise ValidationError("Must be > 0")
        return value

    return _retry(message, parse, None if default is None else str(default))


def ask_amount(message: str, decimals: int, *, maximum: int | None = None, default: str | None = None) -> int:
    """Ask for a human token amount and return it in base units."""
    if maximum is not None:
        message = f"{message} (max {format_units(maximum, decimals)})"

    def parse(raw: str) -> int:
        amount = parse_units(raw, decimals)
        if maximum is not None and amount > maximum:
            raise ValidationError(f"Amount exceeds the maximum of {format_units(maximum, decimals)}")
        return amount

    return _retry(message, parse, default)


def ask_parsed(message: str, parse: Callable[[str], T], default: str | None = None) -> T:
    """Ask with a caller-supplied parser; ValueErrors re-prompt."""
    return _retry(message, parse, default)
