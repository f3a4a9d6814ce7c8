"""Data models for Mangrove vault operations."""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable


class FundsState(IntEnum):
    """Where the vault keeps its funds."""

    VAULT = 0
    PASSIVE = 1
    ACTIVE = 2

    @property
    def description(self) -> str:
        return {
            FundsState.VAULT: "Vault (funds will stay in vault)",
            FundsState.PASSIVE: "Passive (funds will be on the kandel contract with no active position)",
            FundsState.ACTIVE: "Active (funds will be on the kandel contract with an active position)",
        }[self]


@dataclass(frozen=True)
class Token:
    """ERC-20 token with the metadata needed to display amounts."""

    address: str
    decimals: int
    symbol: str


@dataclass(frozen=True)
class Market:
    """Base/quote pair plus the tick spacing of the Mangrove offer lists."""

    base: Token
    quote: Token
    tick_spacing: int


@dataclass(frozen=True)
class KandelParams:
    gasprice: int
    gasreq: int
    step_size: int
    price_points: int

    def as_tuple(self) -> tuple[int, int, int, int]:
        return (self.gasprice, self.gasreq, self.step_size, self.price_points)


@dataclass(frozen=True)
class Position:
    """Kandel position as stored by the vault."""

    tick_index0: int
    tick_offset: int
    params: KandelParams
    funds_state: FundsState

    def as_tuple(self) -> tuple:
        """ABI-ready tuple for `setPosition`."""
        return (self.tick_index0, self.tick_offset, self.params.as_tuple(), int(self.funds_state))


@dataclass(frozen=True)
class FeeData:
    """Vault fees as fractions (0.15 means 15%)."""

    performance_fee: float
    management_fee: float
    fee_recipient: str


@dataclass(frozen=True)
class Balance:
    """Raw token amounts for a market, in base units."""

    base: int
    quote: int


@dataclass(frozen=True)
class KandelOffer:
    """One live rung of the Kandel ladder."""

    ba: str
    index: int
    tick: int
    gives: int
    price: float


@dataclass(frozen=True)
class KandelState:
    asks: list[KandelOffer]
    bids: list[KandelOffer]
    unlocked_provision: int


@dataclass(frozen=True)
class CurrentVaultState:
    """Snapshot of a vault rebuilt on every query."""

    vault: str
    fee_data: FeeData
    position: Position
    kandel_balance: Balance
    vault_balance: Balance
    market: Market
    oracle: str
    current_tick: int
    current_price: float
    owner: str
    kandel: str
    kandel_state: KandelState
    # Only set for the ERC-4626 variant: (base sub-vault, quote sub-vault).
    current_vaults: tuple[str, str] | None = None


@dataclass(frozen=True)
class AllowanceEntry:
    """One ERC-20 approval an operation needs before it can run."""

    token: str
    spender: str
    amount: int
    decimals: int | None = None
    symbol: str | None = None


@dataclass(frozen=True)
class RebalanceArgs:
    """Arguments of the vault `swap` entry point for a single rebalance."""

    target: str
    data: bytes
    amount_out: int
    sell: bool
    amount_in_min: int = 0
    gas: int | None = None


@dataclass(frozen=True)
class Quote:
    """
    Aggregator quote for selling `amount_sold` of one token.

    `amount_out` is the expected amount of the bought token; `route` is an
    opaque handle only the provider that produced it can build from.
    """

    amount_out: int
    amount_sold: int
    route: Any
    price_impact: float
    gas_estimate: int


@dataclass(frozen=True)
class SwapCall:
    """Low-level call returned by an aggregator build step."""

    to: str
    data: bytes
    value: int = 0


@dataclass(frozen=True)
class SavedVault:
    """A vault the operator chose to remember between sessions."""

    address: str
    name: str
    chain_id: int
    label: str | None = None
    vault_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"address": self.address, "name": self.name, "chainId": self.chain_id}
        if self.label is not None:
            out["label"] = self.label
        if self.vault_type is not None:
            out["vaultType"] = self.vault_type
        return out

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SavedVault":
        label = raw.get("label")
        vault_type = raw.get("vaultType")
        if not isinstance(raw["address"], str) or not isinstance(raw["name"], str):
            raise TypeError("address and name must be strings")
        if isinstance(raw["chainId"], bool) or not isinstance(raw["chainId"], int):
            raise TypeError("chainId must be an integer")
        if label is not None and not isinstance(label, str):
            raise TypeError("label must be a string")
        if vault_type is not None and not isinstance(vault_type, str):
            raise TypeError("vaultType must be a string")
        return cls(
            address=raw["address"],
            name=raw["name"],
            chain_id=raw["chainId"],
            label=label,
            vault_type=vault_type,
        )


@dataclass(frozen=True)
class SaveFile:
    version: int
    vaults: list[SavedVault] = field(default_factory=list)


@dataclass(frozen=True)
class ChainlinkFeed:
    feed: str
    base_decimals: int
    quote_decimals: int

    def as_tuple(self) -> tuple[str, int, int]:
        return (self.feed, self.base_decimals, self.quote_decimals)


@dataclass(frozen=True)
class DiaFeed:
    oracle: str
    key: bytes
    price_decimals: int
    base_decimals: int
    quote_decimals: int

    def as_tuple(self) -> tuple[str, bytes, int, int, int]:
        return (self.oracle, self.key, self.price_decimals, self.base_decimals, self.quote_decimals)


@dataclass(frozen=True)
class VaultFeed:
    """ERC-4626 vault whose share price is composed into an oracle."""

    vault: str
    conversion_sample: int

    def as_tuple(self) -> tuple[str, int]:
        return (self.vault, self.conversion_sample)


@dataclass(frozen=True)
class FeedMetadata:
    """A Chainlink price feed as listed in the reference data directory."""

    contract_address: str
    proxy_address: str
    pair: tuple[str, str]
    decimals: int
    name: str
    hidden: bool = False


@dataclass(frozen=True)
class TransactionMessages:
    """Operator-facing text for one transaction."""

    header: str | None = None
    label: str = "Transaction"
    # Either a fixed line or a function of (block number, tx hash).
    success: str | Callable[[int, str], str] | None = None
    # Either a fixed line or a function of the tx hash.
    failure: str | Callable[[str], str] | None = None
