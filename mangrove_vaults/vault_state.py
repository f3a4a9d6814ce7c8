"""Full vault snapshot in as few round trips as possible."""

from concurrent.futures import ThreadPoolExecutor

from mangrove_vaults.chain import Call
from mangrove_vaults.constants import MANGROVE_VAULT_ABI
from mangrove_vaults.erc4626 import VAULT_TYPE as ERC4626, get_current_vaults
from mangrove_vaults.fees import decode_fee
from mangrove_vaults.kandel import read_ladder, to_kandel_state
from mangrove_vaults.models import Balance, CurrentVaultState, FeeData, FundsState, KandelParams, Position
from mangrove_vaults.reader import get_price

_STATE_FUNCTIONS = (
    "feeData",
    "tickIndex0",
    "kandelTickOffset",
    "kandelParams",
    "fundsState",
    "getKandelBalances",
    "getVaultBalances",
    "market",
    "oracle",
    "owner",
    "kandel",
)


def get_current_vault_state(client, vault: str, vault_type: str | None = None) -> CurrentVaultState:
    """
    Read everything the console shows about a vault.

    Phase 1 batches the eleven vault getters into one multicall (all-or-nothing);
    for the ERC-4626 variant the sub-vault read runs alongside it. Phase 2 depends on
    the oracle, tokens and Kandel address from phase 1: the oracle price and the
    Kandel ladder are then read concurrently. Errors propagate; nothing is retried.
    """
    with ThreadPoolExecutor(max_workers=3) as executor:
        vaults_future = executor.submit(get_current_vaults, client, vault) if vault_type == ERC4626 else None
        (
            (performance_fee, management_fee, fee_recipient),
            tick_index0,
            tick_offset,
            params,
            funds_state,
            (kandel_base, kandel_quote),
            (vault_base, vault_quote),
            (base, quote, tick_spacing),
            oracle,
            owner,
            kandel,
        ) = client.multicall([Call(vault, MANGROVE_VAULT_ABI, name) for name in _STATE_FUNCTIONS])

        position = Position(
            tick_index0=int(tick_index0),
            tick_offset=int(tick_offset),
            params=KandelParams(*(int(p) for p in params)),
            funds_state=FundsState(int(funds_state)),
        )

        price_future = executor.submit(get_price, client, oracle, base, quote, int(tick_spacing))
        ladder_future = executor.submit(read_ladder, client, kandel, position.params.price_points)
        market, current_tick, current_price = price_future.result()
        kandel_state = to_kandel_state(*ladder_future.result(), market)
        current_vaults = vaults_future.result() if vaults_future is not None else None

    return CurrentVaultState(
        vault=vault,
        fee_data=FeeData(
            performance_fee=decode_fee(performance_fee),
            management_fee=decode_fee(management_fee),
            fee_recipient=fee_recipient,
        ),
        position=position,
        kandel_balance=Balance(base=int(kandel_base), quote=int(kandel_quote)),
        vault_balance=Balance(base=int(vault_base), quote=int(vault_quote)),
        market=market,
        oracle=oracle,
        current_tick=current_tick,
        current_price=current_price,
        owner=owner,
        kandel=kandel,
        kandel_state=kandel_state,
        current_vaults=current_vaults,
    )
