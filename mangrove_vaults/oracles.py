"""Oracle deployment through the per-family oracle factories."""

import os
import sys
from dataclasses import dataclass, replace
from typing import Callable

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import (
    CHAINLINK_V1_FACTORY_ABI,
    CHAINLINK_V2_FACTORY_ABI,
    COMBINER_V1_FACTORY_ABI,
    DEFAULT_INTERMEDIARY_DECIMALS,
    DIA_V1_FACTORY_ABI,
    ORACLE_DEPLOY_RETRIES,
    ZERO_ADDRESS,
    ZERO_SALT,
)
from mangrove_vaults.errors import SimulationError, TransactionRevertedError, ValidationError
from mangrove_vaults.formatters import is_zero_address
from mangrove_vaults.models import ChainlinkFeed, DiaFeed, TransactionMessages, VaultFeed
from mangrove_vaults.registry import CHAINLINK_V1, CHAINLINK_V2, COMBINER_V1, DIA_V1
from mangrove_vaults.transactions import execute, succeeded

DEFAULT_CHAINLINK_FEED = ChainlinkFeed(feed=ZERO_ADDRESS, base_decimals=0, quote_decimals=0)
DEFAULT_DIA_FEED = DiaFeed(oracle=ZERO_ADDRESS, key=ZERO_SALT, price_decimals=0, base_decimals=0, quote_decimals=0)
DEFAULT_VAULT_FEED = VaultFeed(vault=ZERO_ADDRESS, conversion_sample=0)

DEFAULT_DIA_PRICE_DECIMALS = 8

FEED_SLOTS = ("base_feed1", "base_feed2", "quote_feed1", "quote_feed2")

_FACTORY_ABIS = {
    CHAINLINK_V1: CHAINLINK_V1_FACTORY_ABI,
    CHAINLINK_V2: CHAINLINK_V2_FACTORY_ABI,
    DIA_V1: DIA_V1_FACTORY_ABI,
    COMBINER_V1: COMBINER_V1_FACTORY_ABI,
}

# Families whose factory can predict the deployment address.
_DETERMINISTIC = (CHAINLINK_V2, DIA_V1, COMBINER_V1)


@dataclass(frozen=True)
class OracleArgs:
    """
    Components of a feed-based oracle. Absent slots are filled with zero defaults.

    Base feeds price base in an intermediate unit; quote feeds price quote in that
    same unit (their decimals are swapped accordingly).
    """

    base_feed1: ChainlinkFeed | DiaFeed | None = None
    base_feed2: ChainlinkFeed | DiaFeed | None = None
    quote_feed1: ChainlinkFeed | DiaFeed | None = None
    quote_feed2: ChainlinkFeed | DiaFeed | None = None
    base_vault: VaultFeed | None = None
    quote_vault: VaultFeed | None = None
    salt: bytes = ZERO_SALT

    def feeds(self) -> list[ChainlinkFeed | DiaFeed | None]:
        return [getattr(self, slot) for slot in FEED_SLOTS]

    def is_empty(self) -> bool:
        return all(f is None for f in self.feeds()) and self.base_vault is None and self.quote_vault is None


@dataclass(frozen=True)
class CombinerArgs:
    oracles: tuple[str, str, str, str]
    salt: bytes = ZERO_SALT

    def is_empty(self) -> bool:
        return all(is_zero_address(o) for o in self.oracles)


def chained_decimals(
    n_base: int,
    n_quote: int,
    base_decimals: int,
    quote_decimals: int,
    intermediary_decimals: int = DEFAULT_INTERMEDIARY_DECIMALS,
) -> dict[str, tuple[int, int] | None]:
    """
    (base decimals, quote decimals) for each of the four feed slots.

    Every hop that feeds into another one outputs `intermediary_decimals`; only the
    first hop reads the real base decimals and the last one the real quote decimals.
    """
    if not (0 <= n_base <= 2 and 0 <= n_quote <= 2):
        raise ValidationError("Up to 2 base feeds and 2 quote feeds are supported")
    d = intermediary_decimals
    return {
        "base_feed1": (base_decimals, d if n_base > 1 or n_quote > 0 else quote_decimals) if n_base > 0 else None,
        "base_feed2": (d, d if n_quote > 0 else quote_decimals) if n_base > 1 else None,
        "quote_feed1": (d if n_quote > 1 else quote_decimals, d if n_base > 0 else base_decimals) if n_quote > 0 else None,
        "quote_feed2": (quote_decimals, d) if n_quote > 1 else None,
    }


def check_decimal_chaining(
    args: OracleArgs,
    base_decimals: int,
    quote_decimals: int,
    intermediary_decimals: int = DEFAULT_INTERMEDIARY_DECIMALS,
) -> None:
    """Raise ValidationError unless the feeds' decimals follow the chaining rule."""
    feeds = args.feeds()
    if feeds[1] is not None and feeds[0] is None or feeds[3] is not None and feeds[2] is None:
        raise ValidationError("A second feed requires the first one on the same side")
    n_base = sum(f is not None for f in feeds[:2])
    n_quote = sum(f is not None for f in feeds[2:])
    expected = chained_decimals(n_base, n_quote, base_decimals, quote_decimals, intermediary_decimals)
    for slot, feed in zip(FEED_SLOTS, feeds):
        if feed is None:
            continue
        actual = (feed.base_decimals, feed.quote_decimals)
        if actual != expected[slot]:
            raise ValidationError(
                f"{slot} decimals {actual} break the chain: expected (base, quote) = {expected[slot]}"
            )


def chainlink_args(
    base_feeds: list[str],
    quote_feeds: list[str],
    base_decimals: int,
    quote_decimals: int,
    intermediary_decimals: int = DEFAULT_INTERMEDIARY_DECIMALS,
) -> OracleArgs:
    """Attach chained decimals to up to two base and two quote Chainlink feeds."""
    decimals = chained_decimals(len(base_feeds), len(quote_feeds), base_decimals, quote_decimals, intermediary_decimals)
    addresses = dict(zip(("base_feed1", "base_feed2"), base_feeds)) | dict(zip(("quote_feed1", "quote_feed2"), quote_feeds))
    slots = {}
    for slot, address in addresses.items():
        b, q = decimals[slot]
        slots[slot] = ChainlinkFeed(feed=address, base_decimals=b, quote_decimals=q)
    return OracleArgs(**slots)


def encode_dia_key(key: str) -> bytes:
    """UTF-8 key right-padded to bytes32."""
    raw = key.encode("utf-8")
    if len(raw) > 32:
        raise ValidationError(f"DIA key is too long ({len(raw)} bytes, max 32)")
    return raw.ljust(32, b"\x00")


def dia_args(
    base_feeds: list[tuple[str, str, int]],
    quote_feeds: list[tuple[str, str, int]],
    base_decimals: int,
    quote_decimals: int,
    intermediary_decimals: int = DEFAULT_INTERMEDIARY_DECIMALS,
) -> OracleArgs:
    """
    Build DIA oracle args from (oracle, key, price decimals) triples.

    DIA oracles need at least one feed on each side.
    """
    if not 1 <= len(base_feeds) <= 2 or not 1 <= len(quote_feeds) <= 2:
        raise ValidationError("DIA oracles take 1 or 2 base feeds and 1 or 2 quote feeds")
    decimals = chained_decimals(len(base_feeds), len(quote_feeds), base_decimals, quote_decimals, intermediary_decimals)
    entries = dict(zip(("base_feed1", "base_feed2"), base_feeds)) | dict(zip(("quote_feed1", "quote_feed2"), quote_feeds))
    slots = {}
    for slot, (oracle, key, price_decimals) in entries.items():
        b, q = decimals[slot]
        slots[slot] = DiaFeed(
            oracle=oracle,
            key=encode_dia_key(key),
            price_decimals=price_decimals,
            base_decimals=b,
            quote_decimals=q,
        )
    return OracleArgs(**slots)


def factory_args(family: str, args: OracleArgs | CombinerArgs) -> tuple:
    """ABI-ready arguments for `create` / `computeOracleAddress`."""
    if args.is_empty():
        raise ValidationError("No feed provided at all")
    if family == COMBINER_V1:
        if not isinstance(args, CombinerArgs):
            raise TypeError("combinerv1 takes CombinerArgs")
        return (*args.oracles, args.salt)
    if not isinstance(args, OracleArgs):
        raise TypeError(f"{family} takes OracleArgs")
    default = DEFAULT_DIA_FEED if family == DIA_V1 else DEFAULT_CHAINLINK_FEED
    feeds = tuple((f or default).as_tuple() for f in args.feeds())
    if family == CHAINLINK_V1:
        return (*feeds, args.salt)
    vaults = ((args.base_vault or DEFAULT_VAULT_FEED).as_tuple(), (args.quote_vault or DEFAULT_VAULT_FEED).as_tuple())
    return (*feeds, *vaults, args.salt)


def compute_oracle_address(client, family: str, factory: str, args: OracleArgs | CombinerArgs) -> str:
    if family not in _DETERMINISTIC:
        raise ValueError(f"{family} factories cannot predict oracle addresses")
    return client.read(Call(factory, _FACTORY_ABIS[family], "computeOracleAddress", factory_args(family, args)))


def deploy_oracle(client, family: str, factory: str, args: OracleArgs | CombinerArgs) -> str:
    """
    Deploy an oracle, or return the existing one.

    For deterministic families the predicted address is checked first; if code is
    already there no transaction is sent.

    Returns: the oracle address.
    Raises: ValidationError, SimulationError, TransactionRevertedError.
    """
    abi = _FACTORY_ABIS[family]
    call_args = factory_args(family, args)
    if family in _DETERMINISTIC:
        predicted = client.read(Call(factory, abi, "computeOracleAddress", call_args))
        if client.get_code(predicted):
            print(f"ℹ️  Oracle already deployed at {predicted}", file=sys.stderr)
            return predicted

    oracle, request = client.simulate(Call(factory, abi, "create", call_args))
    receipt = execute(
        client,
        request,
        TransactionMessages(
            header=f"oracle will be deployed at {oracle}",
            label="Oracle deployment",
            success=lambda block, tx_hash: f"oracle deployed at {oracle} in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"oracle deployment failed at {oracle}: {tx_hash}",
        ),
    )
    if not succeeded(receipt):
        raise TransactionRevertedError(str(receipt.get("transactionHash", "")), receipt, "Oracle deployment reverted")
    return oracle


def deploy_with_salt_retry(
    client,
    family: str,
    factory: str,
    args: OracleArgs | CombinerArgs,
    confirm_retry: Callable[[], bool],
    *,
    attempts: int = ORACLE_DEPLOY_RETRIES,
    new_salt: Callable[[], bytes] = lambda: os.urandom(32),
) -> str | None:
    """
    Deploy, and on failure optionally retry with fresh random salts.

    A failed first attempt usually means an oracle with the same parameters and salt
    exists already. If `confirm_retry()` agrees, up to `attempts` further deployments
    are tried, each with a new salt.

    Returns: the oracle address, or None if every attempt failed or the retry was declined.
    """
    try:
        return deploy_oracle(client, family, factory, args)
    except (SimulationError, TransactionRevertedError) as exc:
        print(f"ℹ️  Oracle deployment failed: {exc}", file=sys.stderr)
    if not confirm_retry():
        return None
    for attempt in range(1, attempts + 1):
        print(f"ℹ️  Retrying with a new salt ({attempt}/{attempts})...", file=sys.stderr)
        salted = replace(args, salt=new_salt())
        try:
            return deploy_oracle(client, family, factory, salted)
        except (SimulationError, TransactionRevertedError) as exc:
            print(f"⚠️  Attempt {attempt} failed: {exc}", file=sys.stderr)
    return None
