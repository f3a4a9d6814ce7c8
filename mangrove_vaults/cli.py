"""CLI and main logic."""

import argparse
import sys
from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Callable

from mangrove_vaults import console, prompts
from mangrove_vaults.aggregators import get_aggregator
from mangrove_vaults.chain import Call, ChainClient
from mangrove_vaults.config import Settings, get_settings
from mangrove_vaults.constants import DEFAULT_VAULT_DECIMALS, ERC20_ABI, MAX_VAULT_DECIMALS, MIN_VAULT_DECIMALS, ZERO_ADDRESS
from mangrove_vaults.deploy import DeployVaultArgs, deploy_vault, validate_vault_args
from mangrove_vaults.erc4626 import VAULT_TYPE as ERC4626, set_vaults
from mangrove_vaults.errors import FeedsError, MangroveVaultsError
from mangrove_vaults.feeds import get_feeds, search_feeds
from mangrove_vaults.fees import encode_fee, set_fee
from mangrove_vaults.formatters import format_native, format_percent, format_price, format_token, format_units, is_zero_address, parse_units
from mangrove_vaults.liquidity import burn, get_mint_amounts, mint, parse_shares
from mangrove_vaults.models import FeedMetadata, FeeData, FundsState, KandelParams, Position, SavedVault, Token, VaultFeed
from mangrove_vaults.oracles import (
    DEFAULT_DIA_PRICE_DECIMALS,
    CombinerArgs,
    OracleArgs,
    chainlink_args,
    check_decimal_chaining,
    deploy_with_salt_retry,
    dia_args,
    encode_dia_key,
)
from mangrove_vaults.owner import set_manager, set_owner
from mangrove_vaults.position import position_for_price_range, refresh_position, set_position
from mangrove_vaults.provision import fund_mangrove, withdraw_from_mangrove
from mangrove_vaults.reader import get_balance_for_token, get_balances_for_market, get_price, get_token
from mangrove_vaults.rebalance import Rebalancer, slippage_floor
from mangrove_vaults.registry import CHAINLINK_V2, CHAINS, COMBINER_V1, DIA_V1, Chain, get_chain, with_sdk_providers
from mangrove_vaults.saved import SavedVaultStore
from mangrove_vaults.vault_state import get_current_vault_state
from mangrove_vaults.whitelist import is_whitelisted, remove_from_whitelist

FEED_SEARCH_LIMIT = 10


@dataclass
class Context:
    """Everything a menu action needs."""

    chain: Chain
    client: ChainClient
    settings: Settings
    store: SavedVaultStore
    read_only: bool

    @property
    def sender(self) -> str | None:
        return self.client.sender


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(description="Interactive operator console for Mangrove vaults.")
    p.add_argument(
        "--chain",
        default=None,
        help=f"Chain id or name ({', '.join(c.name for c in CHAINS.values())}). Asked interactively if omitted.",
    )
    p.add_argument(
        "--rpc-url",
        default=None,
        help="RPC URL. Defaults to <CHAIN>_RPC_URL, then ETH_RPC_URL, then the chain's public endpoint.",
    )
    p.add_argument(
        "--save-file",
        default=None,
        help="Where remembered vaults are stored. Default: MANGROVE_VAULTS_SAVE_FILE or .save/vaults.json.",
    )
    p.add_argument(
        "--read-only",
        action="store_true",
        help="Never sign anything, even when PRIVATE_KEY is set.",
    )
    return p.parse_args(argv)


def _select_chain(choice: str | None) -> Chain:
    if choice:
        return get_chain(choice)
    return prompts.select("Select a chain", [(f"{c.name} ({c.chain_id})", c) for c in CHAINS.values()])


def _require_signer(ctx: Context) -> bool:
    if ctx.read_only or ctx.sender is None:
        console.error("This action sends a transaction; set PRIVATE_KEY and disable read-only mode.")
        return False
    return True


# ---------------------------------------------------------------------------
# Oracle deployment
# ---------------------------------------------------------------------------


def _ask_token(ctx: Context, label: str) -> Token:
    address = prompts.ask_address(f"{label} token address")
    token = get_token(ctx.client, address)
    console.info(f"{label} token: {token.symbol} ({token.decimals} decimals)")
    return token


def _load_feeds(ctx: Context) -> list[FeedMetadata]:
    try:
        return get_feeds(ctx.chain.chainlink_metadata_url, timeout=ctx.settings.rpc_timeout)
    except FeedsError as ex:
        console.warn(f"{ex}. Feed addresses will have to be entered manually.")
        return []


def _ask_chainlink_feed(feeds: list[FeedMetadata], label: str) -> str:
    """Pick a feed by search term, or take a raw proxy address."""
    while True:
        term = prompts.ask_text(f"{label}: search a pair (e.g. ETH/USD) or paste a feed address")
        if _is_address(term):
            return prompts.to_address(term)
        matches = search_feeds(feeds, term, limit=FEED_SEARCH_LIMIT)
        if not matches:
            console.warn(f"No feed matches {term!r}")
            continue
        choices = [(f"{f.name} ({f.decimals} decimals) {f.proxy_address}", f.proxy_address) for f in matches]
        choices.append(("Search again", ""))
        picked = prompts.select(f"Feeds matching {term!r}", choices)
        if picked:
            return prompts.to_address(picked)


def _is_address(raw: str) -> bool:
    try:
        prompts.to_address(raw)
    except ValueError:
        return False
    return True


def _ask_feed_counts(minimum: int) -> tuple[int, int]:
    n_base = prompts.ask_int("Number of base feeds", 1, minimum=minimum, maximum=2)
    n_quote = prompts.ask_int("Number of quote feeds", minimum, minimum=minimum, maximum=2)
    if n_base + n_quote == 0:
        raise MangroveVaultsError("No feed provided at all")
    return n_base, n_quote


def _ask_vault_feed(ctx: Context, side: str) -> VaultFeed | None:
    address = prompts.ask_address(f"{side} ERC4626 vault (zero for none)", ZERO_ADDRESS, allow_zero=True)
    if is_zero_address(address):
        return None
    token = get_token(ctx.client, address)
    sample = prompts.ask_amount(f"Conversion sample for {token.symbol}", token.decimals, default="1")
    return VaultFeed(vault=address, conversion_sample=sample)


def _confirm_feeds(args: OracleArgs) -> bool:
    console.info("Oracle feeds:")
    for slot, feed in zip(("base feed 1", "base feed 2", "quote feed 1", "quote feed 2"), args.feeds()):
        if feed is not None:
            print(f"   {slot}: {feed.as_tuple()[0]} (base decimals {feed.base_decimals}, quote decimals {feed.quote_decimals})", file=sys.stderr)
    for side, vault in (("base vault", args.base_vault), ("quote vault", args.quote_vault)):
        if vault is not None:
            print(f"   {side}: {vault.vault} (sample {vault.conversion_sample})", file=sys.stderr)
    return prompts.confirm("Deploy an oracle with these feeds?", default=True)


def _chainlink_form(ctx: Context, family: str, base: Token, quote: Token) -> OracleArgs | None:
    feeds = _load_feeds(ctx)
    n_base, n_quote = _ask_feed_counts(0)
    base_feeds = [_ask_chainlink_feed(feeds, f"Base feed {i + 1}") for i in range(n_base)]
    quote_feeds = [_ask_chainlink_feed(feeds, f"Quote feed {i + 1}") for i in range(n_quote)]
    args = chainlink_args(base_feeds, quote_feeds, base.decimals, quote.decimals)
    if family == CHAINLINK_V2:
        args = replace(args, base_vault=_ask_vault_feed(ctx, "Base"), quote_vault=_ask_vault_feed(ctx, "Quote"))
    return args if _confirm_feeds(args) else None


def _ask_dia_feed(label: str) -> tuple[str, str, int]:
    oracle = prompts.ask_address(f"{label}: DIA oracle address")

    def parse_key(raw: str) -> str:
        encode_dia_key(raw)
        return raw

    key = prompts.ask_parsed(f"{label}: DIA key (e.g. ETH/USD)", parse_key, "")
    decimals = prompts.ask_int(f"{label}: price decimals", DEFAULT_DIA_PRICE_DECIMALS, minimum=0, maximum=36)
    return oracle, key, decimals


def _dia_form(ctx: Context, base: Token, quote: Token) -> OracleArgs | None:
    n_base, n_quote = _ask_feed_counts(1)
    base_feeds = [_ask_dia_feed(f"Base feed {i + 1}") for i in range(n_base)]
    quote_feeds = [_ask_dia_feed(f"Quote feed {i + 1}") for i in range(n_quote)]
    args = dia_args(base_feeds, quote_feeds, base.decimals, quote.decimals)
    args = replace(args, base_vault=_ask_vault_feed(ctx, "Base"), quote_vault=_ask_vault_feed(ctx, "Quote"))
    return args if _confirm_feeds(args) else None


def _combiner_form() -> CombinerArgs:
    while True:
        oracles = tuple(
            prompts.ask_address(f"Oracle {i} (zero for none)", ZERO_ADDRESS, allow_zero=True) for i in range(1, 5)
        )
        args = CombinerArgs(oracles=oracles)
        if not args.is_empty():
            return args
        console.error("At least one oracle must be selected")


def deploy_oracle_flow(ctx: Context) -> tuple[str, Token | None, Token | None] | None:
    """
    Ask for an oracle family and its components, then deploy it.

    Returns: (oracle, base, quote) or None. Tokens are None for combined oracles.
    """
    if not ctx.chain.oracle_factories:
        console.error(f"No oracle factory is registered on {ctx.chain.name}")
        return None
    family, factory = prompts.select(
        "Select the oracle factory",
        [(f"{name} ({address})", (name, address)) for name, address in ctx.chain.oracle_factories.items()],
    )
    base = quote = None
    if family == COMBINER_V1:
        args = _combiner_form()
    else:
        base = _ask_token(ctx, "Base")
        quote = _ask_token(ctx, "Quote")
        if family == DIA_V1:
            args = _dia_form(ctx, base, quote)
        else:
            args = _chainlink_form(ctx, family, base, quote)
        if args is None:
            console.info("Oracle deployment cancelled")
            return None
        check_decimal_chaining(args, base.decimals, quote.decimals)

    oracle = deploy_with_salt_retry(
        ctx.client,
        family,
        factory,
        args,
        lambda: prompts.confirm(
            "An oracle has probably been deployed with the same arguments. Do you want to try to deploy another one?"
        ),
    )
    if oracle is None:
        console.error("Oracle deployment failed")
        return None
    if base is not None and quote is not None:
        _, tick, price = get_price(ctx.client, oracle, base.address, quote.address)
        console.info(f"Oracle price: {format_price(price)} {quote.symbol}/{base.symbol} (tick {tick})")
    return oracle, base, quote


# ---------------------------------------------------------------------------
# Vault deployment
# ---------------------------------------------------------------------------


def _offer_save(ctx: Context, address: str, default_name: str, vault_type: str | None = None) -> None:
    if not prompts.confirm(f"Save vault {address} for later sessions?", default=True):
        return
    name = prompts.ask_text("Name", default_name)
    label = prompts.ask_text("Label (optional)", "", allow_empty=True) or None
    ctx.store.save(SavedVault(address=address, name=name, chain_id=ctx.chain.chain_id, label=label, vault_type=vault_type))


def deploy_vault_flow(ctx: Context, oracle: str | None = None, base: Token | None = None, quote: Token | None = None) -> str | None:
    seeder = prompts.select(
        "Select the vault seeder", [(f"{name} ({address})", address) for name, address in ctx.chain.seeders.items()]
    )
    base = base or _ask_token(ctx, "Base")
    quote = quote or _ask_token(ctx, "Quote")
    oracle = oracle or prompts.ask_address("Oracle address")
    args = DeployVaultArgs(
        seeder=seeder,
        base=base.address,
        quote=quote.address,
        tick_spacing=prompts.ask_int("Tick spacing", 1, minimum=1),
        oracle=oracle,
        name=prompts.ask_text("Vault name"),
        symbol=prompts.ask_text("Vault symbol"),
        decimals=prompts.ask_int("Vault decimals", DEFAULT_VAULT_DECIMALS, minimum=MIN_VAULT_DECIMALS, maximum=MAX_VAULT_DECIMALS),
        owner=prompts.ask_address("Owner", ctx.sender),
    )
    validate_vault_args(args)
    if not prompts.confirm(f"Create vault {args.name} ({args.symbol}) on {base.symbol}/{quote.symbol}?", default=True):
        console.info("Vault creation cancelled")
        return None
    vault = deploy_vault(ctx.client, ctx.chain.vault_factory, args)
    if vault is not None:
        _offer_save(ctx, vault, args.name)
    return vault


# ---------------------------------------------------------------------------
# Vault management
# ---------------------------------------------------------------------------


def _select_vault(ctx: Context) -> SavedVault | None:
    saved = ctx.store.for_chain(ctx.chain.chain_id)
    choices: list[tuple[str, SavedVault | str | None]] = [
        (f"{v.name}{f' [{v.label}]' if v.label else ''} ({v.address})", v) for v in saved
    ]
    choices += [("Enter a vault address", "address"), ("Back", None)]
    picked = prompts.select("Select a vault", choices)
    if picked != "address":
        return picked
    address = prompts.ask_address("Vault address")
    vault_type = ERC4626 if prompts.confirm("Is this an ERC4626 vault?") else None
    name = str(ctx.client.read(Call(address, ERC20_ABI, "name")))
    _offer_save(ctx, address, name, vault_type)
    return SavedVault(address=address, name=name, chain_id=ctx.chain.chain_id, vault_type=vault_type)


def _ask_fee(message: str, current: float) -> float:
    def parse(raw: str) -> float:
        try:
            fraction = Decimal(raw.rstrip("%").strip()) / 100
        except InvalidOperation as ex:
            raise ValueError(f"Not a number: {raw!r}") from ex
        encode_fee(fraction)
        return float(fraction)

    return prompts.ask_parsed(message, parse, format_percent(current).rstrip("%"))


def change_fee_data(ctx: Context, vault: SavedVault) -> bool:
    fees = get_current_vault_state(ctx.client, vault.address, vault.vault_type).fee_data
    console.log_fees(fees)
    new = FeeData(
        performance_fee=_ask_fee("Performance fee (%)", fees.performance_fee),
        management_fee=_ask_fee("Annual management fee (%)", fees.management_fee),
        fee_recipient=prompts.ask_address("Fee recipient", fees.fee_recipient, allow_zero=True),
    )
    if new == fees:
        console.info("No changes made")
        return True
    return set_fee(ctx.client, vault.address, new)


def choose_price_range(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    market = state.market
    unit = f"{market.quote.symbol}/{market.base.symbol}"
    console.info(f"Current price: {format_price(state.current_price)} {unit}")
    min_price = prompts.ask_float(f"Min price ({unit})", state.current_price * 0.9)
    max_price = prompts.ask_float(f"Max price ({unit})", state.current_price * 1.1)
    price_points = prompts.ask_int("Price points", max(state.position.params.price_points, 2), minimum=2)
    position = position_for_price_range(state.position, market, min_price, max_price, price_points)
    console.log_position(position, market)
    if not prompts.confirm("Set this position?", default=True):
        return False
    return set_position(ctx.client, vault.address, position)


def change_position_data(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    current = state.position
    console.log_position(current, state.market)
    params = KandelParams(
        gasprice=prompts.ask_int("Gas price (0 for default)", current.params.gasprice, minimum=0),
        gasreq=prompts.ask_int("Gas requirement (0 for default)", current.params.gasreq, minimum=0),
        step_size=prompts.ask_int("Step size", current.params.step_size, minimum=1),
        price_points=prompts.ask_int("Price points", current.params.price_points, minimum=0),
    )
    position = Position(
        tick_index0=prompts.ask_int("First tick index", current.tick_index0),
        tick_offset=prompts.ask_int("Tick offset", current.tick_offset, minimum=state.market.tick_spacing),
        params=params,
        funds_state=prompts.select("Funds state", [(s.description, s) for s in FundsState]),
    )
    if position == current:
        console.info("No changes made")
        return True
    return set_position(ctx.client, vault.address, position)


def change_owner(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    new_owner = prompts.ask_address("New owner", state.owner)
    if new_owner != state.owner and not prompts.confirm(f"Transfer ownership of {vault.address} to {new_owner}?"):
        return False
    return set_owner(ctx.client, vault.address, new_owner, current_owner=state.owner)


def change_manager(ctx: Context, vault: SavedVault) -> bool:
    return set_manager(ctx.client, vault.address, prompts.ask_address("New manager"))


def change_erc4626_vaults(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, ERC4626)
    base_vault, quote_vault = state.current_vaults
    new_base = prompts.ask_address(f"{state.market.base.symbol} vault", base_vault, allow_zero=True)
    new_quote = prompts.ask_address(f"{state.market.quote.symbol} vault", quote_vault, allow_zero=True)
    return set_vaults(ctx.client, vault.address, state.market, (base_vault, quote_vault), new_base, new_quote)


def add_liquidity(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    market = state.market
    wallet = get_balances_for_market(ctx.client, ctx.sender, market)
    max_base = prompts.ask_amount(f"Max {market.base.symbol}", market.base.decimals, maximum=wallet.base)
    max_quote = prompts.ask_amount(f"Max {market.quote.symbol}", market.quote.decimals, maximum=wallet.quote)
    base_used, quote_used, shares = get_mint_amounts(ctx.client, vault.address, max_base, max_quote)
    vault_decimals = int(ctx.client.read(Call(vault.address, ERC20_ABI, "decimals")))
    console.info(
        f"Deposit {format_token(base_used, market.base.decimals, market.base.symbol)} and "
        f"{format_token(quote_used, market.quote.decimals, market.quote.symbol)} for "
        f"{format_units(shares, vault_decimals)} shares"
    )
    if not prompts.confirm("Proceed?", default=True):
        return False
    return mint(
        ctx.client,
        ctx.chain.mint_helper,
        vault.address,
        max_base,
        max_quote,
        market,
        min_shares=slippage_floor(shares),
        vault_decimals=vault_decimals,
    )


def remove_liquidity(ctx: Context, vault: SavedVault) -> bool:
    balance = get_balance_for_token(ctx.client, ctx.sender, vault.address)
    if balance == 0:
        console.error("You hold no shares of this vault")
        return False
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    console.info(f"Share balance: {balance}")
    shares = prompts.ask_parsed("Shares to burn (amount or percentage, e.g. 50%)", lambda raw: parse_shares(raw, balance))
    return burn(ctx.client, vault.address, shares, market=state.market)


def rebalance_vault(ctx: Context, vault: SavedVault) -> bool:
    chain = with_sdk_providers(
        ctx.chain,
        kame_contract=ctx.settings.kame_contract,
        kame_api_url=ctx.settings.kame_api_url,
        symphony_contract=ctx.settings.symphony_contract,
        symphony_api_url=ctx.settings.symphony_api_url,
    )
    if not chain.rebalance:
        console.error(f"No rebalance provider on {chain.name}")
        return False
    provider = prompts.select("Select a provider", [(name, p) for name, p in chain.rebalance.items()])
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    market = state.market
    console.log_balances("Kandel balances", state.kandel_balance, market)
    console.log_balances("Vault balances", state.vault_balance, market)

    rebalancer = Rebalancer(
        ctx.client,
        vault.address,
        market,
        get_aggregator(provider, chain.chain_id, timeout=ctx.settings.rpc_timeout),
    )
    if not rebalancer.prepare():
        console.error("Swap contract is not whitelisted; aborting rebalance")
        return False

    sell = prompts.select(
        f"Do you want to buy or sell? ({market.base.symbol}/{market.quote.symbol})",
        [
            (f"Buy {market.base.symbol} with {market.quote.symbol}", False),
            (f"Sell {market.base.symbol} for {market.quote.symbol}", True),
        ],
    )
    sell_token = market.base if sell else market.quote
    available = get_balance_for_token(ctx.client, vault.address, sell_token.address)
    if available == 0:
        console.error(f"The vault holds no {sell_token.symbol}")
        return False
    amount = prompts.ask_amount(f"Amount of {sell_token.symbol} to sell", sell_token.decimals, maximum=available)
    rebalancer.request_quote(rebalancer.plan_trade(sell, amount))
    console.info(rebalancer.describe_quote())
    if not prompts.confirm("Proceed with this swap?", default=True):
        console.info("Rebalance cancelled")
        return False
    rebalancer.build()
    return rebalancer.execute()


def remove_swap_contract(ctx: Context, vault: SavedVault) -> bool:
    chain = with_sdk_providers(
        ctx.chain, kame_contract=ctx.settings.kame_contract, symphony_contract=ctx.settings.symphony_contract
    )
    choices = [(f"{name} ({p.contract})", p.contract) for name, p in chain.rebalance.items()]
    choices.append(("Other address", ""))
    target = prompts.select("Contract to remove", choices) or prompts.ask_address("Contract address")
    if not is_whitelisted(ctx.client, vault.address, target):
        console.info(f"{target} is not whitelisted, nothing to do")
        return True
    return remove_from_whitelist(ctx.client, vault.address, target)


def add_provision(ctx: Context, vault: SavedVault) -> bool:
    balance = ctx.client.get_balance(ctx.sender)
    console.info(f"Native balance: {format_native(balance)}")

    def parse(raw: str) -> int:
        amount = parse_units(raw, 18)
        if not 0 < amount <= balance:
            raise ValueError(f"Amount must be > 0 and at most {format_native(balance)}")
        return amount

    return fund_mangrove(ctx.client, vault.address, prompts.ask_parsed("Amount to add", parse))


def remove_provision(ctx: Context, vault: SavedVault) -> bool:
    state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    unlocked = state.kandel_state.unlocked_provision
    console.info(f"Unlocked provision: {format_native(unlocked)}")
    if unlocked == 0:
        console.error("Nothing to withdraw")
        return False
    amount = prompts.ask_amount("Amount to withdraw", 18, maximum=unlocked)
    receiver = prompts.ask_address("Receiver", ctx.sender)
    return withdraw_from_mangrove(ctx.client, vault.address, amount, receiver, unlocked=unlocked)


def view_vault(ctx: Context, vault: SavedVault) -> bool:
    with console.spinner(f"Reading vault {vault.address}..."):
        state = get_current_vault_state(ctx.client, vault.address, vault.vault_type)
    console.print_vault_state(state)
    return True


Action = Callable[[Context, SavedVault], bool]


def _vault_actions(vault: SavedVault) -> list[tuple[str, Action, bool]]:
    """(label, action, writes) for the management menu."""
    actions: list[tuple[str, Action, bool]] = [
        ("View", view_vault, False),
        ("Change fee data", change_fee_data, True),
        ("Choose price range", choose_price_range, True),
        ("Change position data", change_position_data, True),
        ("Refresh position", lambda ctx, v: refresh_position(ctx.client, v.address), True),
        ("Change owner", change_owner, True),
        ("Change manager", change_manager, True),
    ]
    if vault.vault_type == ERC4626:
        actions.append(("Change ERC4626 vaults", change_erc4626_vaults, True))
    actions += [
        ("Add liquidity", add_liquidity, True),
        ("Remove liquidity", remove_liquidity, True),
        ("Rebalance", rebalance_vault, True),
        ("Remove swap contract from whitelist", remove_swap_contract, True),
        ("Add provision", add_provision, True),
        ("Remove provision", remove_provision, True),
    ]
    return actions


def _run_action(label: str, action: Callable[[], object]) -> None:
    """Run one menu action; errors are reported and the menu continues."""
    try:
        action()
    except MangroveVaultsError as ex:
        console.error(f"{label}: {ex}")
    except Exception as ex:  # pylint: disable=broad-exception-caught
        console.error(f"{label} failed: {type(ex).__name__}: {ex}")


def manage_vault(ctx: Context) -> None:
    vault = _select_vault(ctx)
    if vault is None:
        return
    console.header(f"Managing {vault.name} ({vault.address})")
    actions = _vault_actions(vault)
    while True:
        choices = [(label, (label, action, writes)) for label, action, writes in actions]
        choices.append(("Back", None))
        picked = prompts.select(f"What do you want to do with {vault.name}?", choices)
        if picked is None:
            return
        label, action, writes = picked
        if writes and not _require_signer(ctx):
            continue
        _run_action(label, lambda: action(ctx, vault))


def _deploy_oracle_and_vault(ctx: Context) -> None:
    deployed = deploy_oracle_flow(ctx)
    if deployed is not None:
        oracle, base, quote = deployed
        deploy_vault_flow(ctx, oracle, base, quote)


def run(ctx: Context) -> int:
    """Top-level menu loop."""
    menu: list[tuple[str, Callable[[Context], object] | None, bool]] = [
        ("Deploy oracle", deploy_oracle_flow, True),
        ("Deploy vault with existing oracle", deploy_vault_flow, True),
        ("Deploy oracle + vault", _deploy_oracle_and_vault, True),
        ("Manage vault", manage_vault, False),
        ("Exit", None, False),
    ]
    while True:
        label, action, writes = prompts.select(
            f"Mangrove vaults on {ctx.chain.name}", [(item[0], item) for item in menu]
        )
        if action is None:
            return 0
        if writes and not _require_signer(ctx):
            continue
        _run_action(label, lambda: action(ctx))


def main(argv: list[str]) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = get_settings()

    try:
        chain = _select_chain(args.chain)
    except KeyError as ex:
        print(f"Error: {ex}", file=sys.stderr)
        return 2
    except (KeyboardInterrupt, EOFError):
        print("", file=sys.stderr)
        return 0

    read_only = args.read_only or settings.read_only or not settings.private_key
    rpc_url = args.rpc_url or settings.rpc_url_for(chain)
    client = ChainClient.connect(
        rpc_url, None if read_only else settings.private_key, timeout=settings.rpc_timeout
    )
    if not client.w3.is_connected():
        print(f"Error: failed to connect to RPC at {rpc_url}", file=sys.stderr)
        return 2
    if client.chain_id != chain.chain_id:
        print(f"Error: RPC at {rpc_url} serves chain {client.chain_id}, expected {chain.chain_id}", file=sys.stderr)
        return 2

    print(f"ℹ️  Connected to {chain.name} ({chain.chain_id})", file=sys.stderr)
    if read_only:
        print("ℹ️  Read-only mode: actions that send transactions are disabled", file=sys.stderr)
    else:
        print(f"ℹ️  Signing as {client.sender}", file=sys.stderr)

    ctx = Context(
        chain=chain,
        client=client,
        settings=settings,
        store=SavedVaultStore(args.save_file or settings.save_file),
        read_only=read_only,
    )
    try:
        return run(ctx)
    except (KeyboardInterrupt, EOFError):
        print("\n👋 Bye", file=sys.stderr)
        return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
