"""Per-chain contract addresses, endpoints and available integrations."""

from dataclasses import dataclass, field

ODOS = "odos"
KAME = "kame"
SYMPHONY = "symphony"
OPENOCEAN = "openocean"

CHAINLINK_V1 = "chainlinkv1"
CHAINLINK_V2 = "chainlinkv2"
DIA_V1 = "diav1"
COMBINER_V1 = "combinerv1"

# OpenOcean exchange proxy (same address on every chain it serves).
OPENOCEAN_EXCHANGE = "0x6352a56caadC4F1E25CD6c75970Fa768A3304e64"


@dataclass(frozen=True)
class RebalanceProvider:
    """
    An aggregator the vault can route swaps through.

    `contract` is the executor the vault must whitelist; `quote_url` and
    `build_url` are only used by providers spoken to over plain HTTP.
    """

    kind: str
    contract: str
    quote_url: str | None = None
    build_url: str | None = None


@dataclass(frozen=True)
class Chain:
    chain_id: int
    name: str
    rpc_url: str
    rpc_env: str
    vault_factory: str
    mint_helper: str
    seeders: dict[str, str]
    oracle_factories: dict[str, str]
    chainlink_metadata_url: str
    rebalance: dict[str, RebalanceProvider] = field(default_factory=dict)


ARBITRUM = Chain(
    chain_id=42161,
    name="Arbitrum",
    rpc_url="https://arb1.arbitrum.io/rpc",
    rpc_env="ARBITRUM_RPC_URL",
    vault_factory="0x6B82CE8a45Ce9BeF9B20c3D65747356a5cDab41A",
    mint_helper="0xC39b5Fb38a8AcBFFB51D876f0C0DA0325b5cD440",
    seeders={
        "simple": "0x89139Bed90B1Bfb5501F27bE6D6f9901aE35745D",
        "aave": "0x55B12De431C6e355b56b79472a3632faec58FB5a",
    },
    oracle_factories={
        CHAINLINK_V1: "0x31c47E3F442F521E1c65b5b626aC2e978C1f2587",
    },
    chainlink_metadata_url="https://reference-data-directory.vercel.app/feeds-ethereum-mainnet-arbitrum-1.json",
    rebalance={
        ODOS: RebalanceProvider(
            kind=ODOS,
            contract="0xa669e7A0d4b3e4Fa48af2dE86BD4CD7126Be4e13",
            quote_url="https://api.odos.xyz/sor/quote/v2",
            build_url="https://api.odos.xyz/sor/assemble",
        ),
        OPENOCEAN: RebalanceProvider(
            kind=OPENOCEAN,
            contract=OPENOCEAN_EXCHANGE,
            quote_url="https://open-api.openocean.finance/v3/42161/quote",
            build_url="https://open-api.openocean.finance/v3/42161/swap_quote",
        ),
    },
)

BASE = Chain(
    chain_id=8453,
    name="Base",
    rpc_url="https://mainnet.base.org",
    rpc_env="BASE_RPC_URL",
    vault_factory="0xDA5ECD0eB8F9bA979A51A44a0C9Ab57F928CcE79",
    mint_helper="0x2AE6F95F0AC61441D9eC9290000F81087567cDa1",
    seeders={
        "simple": "0x808bC04030bC558C99E6844e877bb22D166A089A",
        "aave": "0x095854c8C4591Fb0a413615B9a366B4Dd69b9B1D",
    },
    oracle_factories={
        CHAINLINK_V1: "0x9d05c7A303efEbD215B86B57Da2Fc671039E5712",
        CHAINLINK_V2: "0x656A6ac038D1686D4f80427ddaF59b352f960123",
        DIA_V1: "0x5297561cb9df1D2Ff83698C6fc51aBeF24D39560",
        COMBINER_V1: "0xb898C4a986a1e4Fd31b9818772F9EC16dbf3EFED",
    },
    chainlink_metadata_url="https://reference-data-directory.vercel.app/feeds-ethereum-mainnet-base-1.json",
    rebalance={
        ODOS: RebalanceProvider(
            kind=ODOS,
            contract="0x19cEeAd7105607Cd444F5ad10dd51356436095a1",
            quote_url="https://api.odos.xyz/sor/quote/v2",
            build_url="https://api.odos.xyz/sor/assemble",
        ),
        OPENOCEAN: RebalanceProvider(
            kind=OPENOCEAN,
            contract=OPENOCEAN_EXCHANGE,
            quote_url="https://open-api.openocean.finance/v3/8453/quote",
            build_url="https://open-api.openocean.finance/v3/8453/swap_quote",
        ),
    },
)

CHAINS: dict[int, Chain] = {c.chain_id: c for c in (ARBITRUM, BASE)}


def get_chain(chain: int | str) -> Chain:
    """Look a chain up by id or (case-insensitive) name."""
    if isinstance(chain, int) or str(chain).isdigit():
        try:
            return CHAINS[int(chain)]
        except KeyError as exc:
            raise KeyError(f"Unsupported chain id: {chain}") from exc
    for c in CHAINS.values():
        if c.name.lower() == str(chain).lower():
            return c
    raise KeyError(f"Unsupported chain: {chain}")


def with_sdk_providers(
    chain: Chain,
    *,
    kame_contract: str | None = None,
    kame_api_url: str | None = None,
    symphony_contract: str | None = None,
    symphony_api_url: str | None = None,
) -> Chain:
    """Return `chain` with Kame/Symphony enabled when their executor address is configured."""
    providers = dict(chain.rebalance)
    if kame_contract:
        providers[KAME] = RebalanceProvider(kind=KAME, contract=kame_contract, quote_url=kame_api_url)
    if symphony_contract:
        providers[SYMPHONY] = RebalanceProvider(kind=SYMPHONY, contract=symphony_contract, quote_url=symphony_api_url)
    if providers == chain.rebalance:
        return chain
    return Chain(
        chain_id=chain.chain_id,
        name=chain.name,
        rpc_url=chain.rpc_url,
        rpc_env=chain.rpc_env,
        vault_factory=chain.vault_factory,
        mint_helper=chain.mint_helper,
        seeders=chain.seeders,
        oracle_factories=chain.oracle_factories,
        chainlink_metadata_url=chain.chainlink_metadata_url,
        rebalance=providers,
    )
