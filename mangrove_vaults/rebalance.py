"""Rebalance a vault's holdings through a swap aggregator."""

import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from mangrove_vaults.aggregators import Aggregator
from mangrove_vaults.chain import Call
from mangrove_vaults.constants import DEFAULT_SLIPPAGE_BPS, MANGROVE_VAULT_ABI, TOTAL_BASIS_POINTS
from mangrove_vaults.errors import NotWhitelistedError, ValidationError
from mangrove_vaults.formatters import format_token, same_address
from mangrove_vaults.models import Market, Quote, RebalanceArgs, SwapCall, Token, TransactionMessages
from mangrove_vaults.prompts import confirm as prompt_confirm
from mangrove_vaults.transactions import submit
from mangrove_vaults.whitelist import add_to_whitelist, is_whitelisted


def slippage_floor(quoted: int, bps: int = DEFAULT_SLIPPAGE_BPS) -> int:
    """Minimum acceptable amount: `quoted` minus `bps` basis points of it, rounded in favour of the bound."""
    if not 0 <= bps <= TOTAL_BASIS_POINTS:
        raise ValidationError(f"Slippage must be between 0 and {TOTAL_BASIS_POINTS} bps")
    return quoted - quoted * bps // TOTAL_BASIS_POINTS


def ensure_whitelisted(
    client, vault: str, target: str, confirm: Callable[[str], bool] = prompt_confirm
) -> bool:
    """
    Make sure the vault allows swaps through `target`.

    Returns: True when the target was already allowed or was just whitelisted.
    """
    whitelisted = is_whitelisted(client, vault, target)
    print(
        f"ℹ️  Contract {target} is {'whitelisted' if whitelisted else 'not whitelisted'} for vault {vault}",
        file=sys.stderr,
    )
    if whitelisted:
        return True
    if not confirm(f"Do you want to whitelist contract {target} for vault {vault}?"):
        return False
    return add_to_whitelist(client, vault, target)


def rebalance(client, vault: str, args: RebalanceArgs, *, whitelisted: bool) -> bool:
    """
    Call the vault `swap` entry point.

    `whitelisted` must come from `ensure_whitelisted` for `args.target` in the same run.
    """
    if not whitelisted:
        raise NotWhitelistedError(vault, args.target)
    return submit(
        client,
        Call(
            vault,
            MANGROVE_VAULT_ABI,
            "swap",
            (args.target, args.data, args.amount_out, args.amount_in_min, args.sell),
        ),
        TransactionMessages(
            header=f"Rebalancing {vault}",
            label="Rebalance",
            success=lambda block, tx_hash: f"swap success in block {block}: {tx_hash}",
            failure=lambda tx_hash: f"swap failed: {tx_hash}",
        ),
        gas=args.gas,
    )


class Stage(Enum):
    NEW = "new"
    QUOTED = "quoted"
    BUILT = "built"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class RebalancePlan:
    """What the operator is about to trade."""

    sell: bool
    sell_token: Token
    buy_token: Token
    amount: int


class Rebalancer:
    """
    One rebalance through one aggregator.

    NEW -> QUOTED -> BUILT -> SUBMITTED -> CONFIRMED | FAILED. The whitelist is checked
    (and fixed when the operator agrees) before any quote is requested, and `swap` is
    never reached for a target that was not seen whitelisted.
    """

    def __init__(
        self,
        client,
        vault: str,
        market: Market,
        aggregator: Aggregator,
        *,
        slippage_bps: int = DEFAULT_SLIPPAGE_BPS,
        confirm: Callable[[str], bool] = prompt_confirm,
    ):
        self.client = client
        self.vault = vault
        self.market = market
        self.aggregator = aggregator
        self.slippage_bps = slippage_bps
        self.confirm = confirm
        self.stage = Stage.NEW
        self.whitelisted = False
        self.plan: RebalancePlan | None = None
        self.quote: Quote | None = None
        self.swap_call: SwapCall | None = None
        self.args: RebalanceArgs | None = None

    def prepare(self) -> bool:
        self.whitelisted = ensure_whitelisted(self.client, self.vault, self.aggregator.contract, self.confirm)
        return self.whitelisted

    def plan_trade(self, sell: bool, amount: int) -> RebalancePlan:
        """Selling means base -> quote; buying means quote -> base."""
        if amount <= 0:
            raise ValidationError("Amount must be > 0")
        sell_token, buy_token = (
            (self.market.base, self.market.quote) if sell else (self.market.quote, self.market.base)
        )
        return RebalancePlan(sell=sell, sell_token=sell_token, buy_token=buy_token, amount=amount)

    def request_quote(self, plan: RebalancePlan) -> Quote:
        if not self.whitelisted:
            raise NotWhitelistedError(self.vault, self.aggregator.contract)
        self.plan = plan
        self.quote = self.aggregator.quote(plan.sell_token, plan.buy_token, plan.amount, self.vault)
        self.stage = Stage.QUOTED
        return self.quote

    def describe_quote(self) -> str:
        plan, quote = self._require(Stage.QUOTED)
        return (
            f"Selling {format_token(quote.amount_sold, plan.sell_token.decimals, plan.sell_token.symbol)}"
            f" for ~{format_token(quote.amount_out, plan.buy_token.decimals, plan.buy_token.symbol)}"
            f" (min {format_token(slippage_floor(quote.amount_out, self.slippage_bps), plan.buy_token.decimals, plan.buy_token.symbol)},"
            f" price impact {quote.price_impact}%, gas ~{quote.gas_estimate})"
        )

    def build(self) -> RebalanceArgs:
        plan, quote = self._require(Stage.QUOTED)
        swap_call = self.aggregator.build(quote, self.vault)
        if not same_address(swap_call.to, self.aggregator.contract):
            self.stage = Stage.FAILED
            raise NotWhitelistedError(self.vault, swap_call.to)
        self.swap_call = swap_call
        self.args = RebalanceArgs(
            target=swap_call.to,
            data=swap_call.data,
            amount_out=quote.amount_sold,
            sell=plan.sell,
            amount_in_min=slippage_floor(quote.amount_out, self.slippage_bps),
            gas=self.aggregator.swap_gas,
        )
        self.stage = Stage.BUILT
        return self.args

    def execute(self) -> bool:
        if self.stage is not Stage.BUILT or self.args is None:
            raise RuntimeError(f"Cannot execute a rebalance in stage {self.stage.value}")
        self.stage = Stage.SUBMITTED
        ok = rebalance(self.client, self.vault, self.args, whitelisted=self.whitelisted)
        self.stage = Stage.CONFIRMED if ok else Stage.FAILED
        return ok

    def run(self, sell: bool, amount: int) -> bool:
        """Non-interactive path: whitelist, quote, confirm, build and swap."""
        if not self.prepare():
            print("❌ Swap contract is not whitelisted; aborting rebalance", file=sys.stderr)
            self.stage = Stage.FAILED
            return False
        self.request_quote(self.plan_trade(sell, amount))
        print(f"ℹ️  {self.describe_quote()}", file=sys.stderr)
        if not self.confirm("Proceed with this swap?"):
            print("ℹ️  Rebalance cancelled", file=sys.stderr)
            return False
        self.build()
        return self.execute()

    def _require(self, stage: Stage) -> tuple[RebalancePlan, Quote]:
        if self.stage is not stage or self.plan is None or self.quote is None:
            raise RuntimeError(f"Expected stage {stage.value}, got {self.stage.value}")
        return self.plan, self.quote
