"""Constants and minimal contract ABIs for the Mangrove Vaults console."""

# Fees are stored on-chain as integers scaled by this precision (10000 = 100%).
FEE_PRECISION = 10_000

# Slippage floor applied to aggregator quotes, in basis points.
DEFAULT_SLIPPAGE_BPS = 100
TOTAL_BASIS_POINTS = 10_000

# Kandel ladders compose hops through this many decimals unless told otherwise.
DEFAULT_INTERMEDIARY_DECIMALS = 18

DEFAULT_VAULT_DECIMALS = 18
MIN_VAULT_DECIMALS = 6
MAX_VAULT_DECIMALS = 18

BURN_GAS_LIMIT = 20_000_000
KAME_SWAP_GAS_LIMIT = 10_000_000
SYMPHONY_SWAP_GAS_LIMIT = 8_000_000
OPENOCEAN_SWAP_GAS_LIMIT = 8_000_000

ORACLE_DEPLOY_RETRIES = 10

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_SALT = b"\x00" * 32

DEFAULT_TIMEOUT = 30
DEFAULT_SAVE_FILE = ".save/vaults.json"
SAVE_FILE_VERSION = 1

# Multicall3 is deployed at the same address on every supported chain.
MULTICALL3_ADDRESS = "0xcA11bde05977b3631167028862bE2a173976CA11"

TICK_BASE = 1.0001

MULTICALL3_ABI: list[dict] = [
    {
        "type": "function",
        "name": "aggregate3",
        "stateMutability": "payable",
        "inputs": [
            {
                "name": "calls",
                "type": "tuple[]",
                "components": [
                    {"name": "target", "type": "address"},
                    {"name": "allowFailure", "type": "bool"},
                    {"name": "callData", "type": "bytes"},
                ],
            }
        ],
        "outputs": [
            {
                "name": "returnData",
                "type": "tuple[]",
                "components": [
                    {"name": "success", "type": "bool"},
                    {"name": "returnData", "type": "bytes"},
                ],
            }
        ],
    }
]

ERC20_ABI: list[dict] = [
    {
        "type": "function",
        "name": "name",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "symbol",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "string"}],
    },
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "allowance",
        "stateMutability": "view",
        "inputs": [
            {"name": "owner", "type": "address"},
            {"name": "spender", "type": "address"},
        ],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "spender", "type": "address"},
            {"name": "value", "type": "uint256"},
        ],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

_KANDEL_PARAMS_COMPONENTS: list[dict] = [
    {"name": "gasprice", "type": "uint32"},
    {"name": "gasreq", "type": "uint24"},
    {"name": "stepSize", "type": "uint32"},
    {"name": "pricePoints", "type": "uint32"},
]

_POSITION_COMPONENTS: list[dict] = [
    {"name": "tickIndex0", "type": "int256"},
    {"name": "tickOffset", "type": "uint256"},
    {"name": "params", "type": "tuple", "components": _KANDEL_PARAMS_COMPONENTS},
    {"name": "fundsState", "type": "uint8"},
]

# Vault share token is an ERC-20, so the vault ABI extends ERC20_ABI.
MANGROVE_VAULT_ABI: list[dict] = ERC20_ABI + [
    {
        "type": "function",
        "name": "feeData",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "performanceFee", "type": "uint16"},
            {"name": "managementFee", "type": "uint16"},
            {"name": "feeRecipient", "type": "address"},
        ],
    },
    {
        "type": "function",
        "name": "tickIndex0",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "int24"}],
    },
    {
        "type": "function",
        "name": "kandelTickOffset",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "kandelParams",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "params", "type": "tuple", "components": _KANDEL_PARAMS_COMPONENTS}],
    },
    {
        "type": "function",
        "name": "fundsState",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "getKandelBalances",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "baseAmount", "type": "uint256"},
            {"name": "quoteAmount", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "getVaultBalances",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "baseAmount", "type": "uint256"},
            {"name": "quoteAmount", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "market",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "base", "type": "address"},
            {"name": "quote", "type": "address"},
            {"name": "tickSpacing", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "oracle",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "owner",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "kandel",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "getMintAmounts",
        "stateMutability": "view",
        "inputs": [
            {"name": "baseAmountMax", "type": "uint256"},
            {"name": "quoteAmountMax", "type": "uint256"},
        ],
        "outputs": [
            {"name": "baseAmountOut", "type": "uint256"},
            {"name": "quoteAmountOut", "type": "uint256"},
            {"name": "shares", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "burn",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "shares", "type": "uint256"},
            {"name": "minAmountBaseOut", "type": "uint256"},
            {"name": "minAmountQuoteOut", "type": "uint256"},
        ],
        "outputs": [
            {"name": "amountBaseOut", "type": "uint256"},
            {"name": "amountQuoteOut", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "setPosition",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "position", "type": "tuple", "components": _POSITION_COMPONENTS}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "setFeeData",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "performanceFee", "type": "uint16"},
            {"name": "managementFee", "type": "uint16"},
            {"name": "feeRecipient", "type": "address"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "transferOwnership",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "newOwner", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "setManager",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "newManager", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "updatePosition",
        "stateMutability": "nonpayable",
        "inputs": [],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "allowedSwapContracts",
        "stateMutability": "view",
        "inputs": [{"name": "", "type": "address"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
    {
        "type": "function",
        "name": "allowSwapContract",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "contractAddress", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "disallowSwapContract",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "contractAddress", "type": "address"}],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "swap",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "target", "type": "address"},
            {"name": "data", "type": "bytes"},
            {"name": "amountOut", "type": "uint256"},
            {"name": "amountInMin", "type": "uint256"},
            {"name": "sell", "type": "bool"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "fundMangrove",
        "stateMutability": "payable",
        "inputs": [],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "withdrawFromMangrove",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "amount", "type": "uint256"},
            {"name": "receiver", "type": "address"},
        ],
        "outputs": [],
    },
]

# Extra entry points exposed by the ERC-4626 wrapper variant of the vault.
ERC4626_VAULT_ABI: list[dict] = MANGROVE_VAULT_ABI + [
    {
        "type": "function",
        "name": "currentVaults",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "baseVault", "type": "address"},
            {"name": "quoteVault", "type": "address"},
        ],
    },
    {
        "type": "function",
        "name": "setVaultForToken",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "vault", "type": "address"},
            {"name": "minAssetsOut", "type": "uint256"},
            {"name": "minSharesOut", "type": "uint256"},
        ],
        "outputs": [],
    },
]

MINT_HELPER_ABI: list[dict] = [
    {
        "type": "function",
        "name": "mint",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "vault", "type": "address"},
            {"name": "maxBaseAmount", "type": "uint256"},
            {"name": "maxQuoteAmount", "type": "uint256"},
            {"name": "minShares", "type": "uint256"},
        ],
        "outputs": [
            {"name": "mintAmount", "type": "uint256"},
            {"name": "baseAmount", "type": "uint256"},
            {"name": "quoteAmount", "type": "uint256"},
        ],
    },
    {
        "type": "function",
        "name": "withdrawTokens",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "to", "type": "address"},
        ],
        "outputs": [],
    },
]

VAULT_FACTORY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "createVault",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "_seeder", "type": "address"},
            {"name": "_BASE", "type": "address"},
            {"name": "_QUOTE", "type": "address"},
            {"name": "_tickSpacing", "type": "uint256"},
            {"name": "_decimals", "type": "uint8"},
            {"name": "name", "type": "string"},
            {"name": "symbol", "type": "string"},
            {"name": "_oracle", "type": "address"},
            {"name": "_owner", "type": "address"},
        ],
        "outputs": [{"name": "vault", "type": "address"}],
    }
]

# Every oracle family exposes the same tick accessor.
ORACLE_ABI: list[dict] = [
    {
        "type": "function",
        "name": "tick",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "int256"}],
    }
]

_CHAINLINK_FEED_COMPONENTS: list[dict] = [
    {"name": "feed", "type": "address"},
    {"name": "baseDecimals", "type": "uint256"},
    {"name": "quoteDecimals", "type": "uint256"},
]

_DIA_FEED_COMPONENTS: list[dict] = [
    {"name": "oracle", "type": "address"},
    {"name": "key", "type": "bytes32"},
    {"name": "priceDecimals", "type": "uint256"},
    {"name": "baseDecimals", "type": "uint256"},
    {"name": "quoteDecimals", "type": "uint256"},
]

_VAULT_FEED_COMPONENTS: list[dict] = [
    {"name": "vault", "type": "address"},
    {"name": "conversionSample", "type": "uint256"},
]


def _four_feeds(components: list[dict]) -> list[dict]:
    return [
        {"name": name, "type": "tuple", "components": components}
        for name in ("baseFeed1", "baseFeed2", "quoteFeed1", "quoteFeed2")
    ]


_VAULT_FEEDS: list[dict] = [
    {"name": "baseVault", "type": "tuple", "components": _VAULT_FEED_COMPONENTS},
    {"name": "quoteVault", "type": "tuple", "components": _VAULT_FEED_COMPONENTS},
]

_SALT: list[dict] = [{"name": "salt", "type": "bytes32"}]

_IS_ORACLE: dict = {
    "type": "function",
    "name": "isOracle",
    "stateMutability": "view",
    "inputs": [{"name": "", "type": "address"}],
    "outputs": [{"name": "", "type": "bool"}],
}

CHAINLINK_V1_FACTORY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "create",
        "stateMutability": "nonpayable",
        "inputs": _four_feeds(_CHAINLINK_FEED_COMPONENTS) + _SALT,
        "outputs": [{"name": "oracle", "type": "address"}],
    },
    _IS_ORACLE,
]

CHAINLINK_V2_FACTORY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "computeOracleAddress",
        "stateMutability": "view",
        "inputs": _four_feeds(_CHAINLINK_FEED_COMPONENTS) + _VAULT_FEEDS + _SALT,
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "create",
        "stateMutability": "nonpayable",
        "inputs": _four_feeds(_CHAINLINK_FEED_COMPONENTS) + _VAULT_FEEDS + _SALT,
        "outputs": [{"name": "oracle", "type": "address"}],
    },
    _IS_ORACLE,
]

DIA_V1_FACTORY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "computeOracleAddress",
        "stateMutability": "view",
        "inputs": _four_feeds(_DIA_FEED_COMPONENTS) + _VAULT_FEEDS + _SALT,
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "create",
        "stateMutability": "nonpayable",
        "inputs": _four_feeds(_DIA_FEED_COMPONENTS) + _VAULT_FEEDS + _SALT,
        "outputs": [{"name": "oracle", "type": "address"}],
    },
    _IS_ORACLE,
]

_COMBINER_INPUTS: list[dict] = [
    {"name": "_oracle1", "type": "address"},
    {"name": "_oracle2", "type": "address"},
    {"name": "_oracle3", "type": "address"},
    {"name": "_oracle4", "type": "address"},
    {"name": "_salt", "type": "bytes32"},
]

COMBINER_V1_FACTORY_ABI: list[dict] = [
    {
        "type": "function",
        "name": "computeOracleAddress",
        "stateMutability": "view",
        "inputs": _COMBINER_INPUTS,
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "create",
        "stateMutability": "nonpayable",
        "inputs": _COMBINER_INPUTS,
        "outputs": [{"name": "oracle", "type": "address"}],
    },
    _IS_ORACLE,
]

# Kandel offer types follow the strat library enum: Ask = 0, Bid = 1.
OFFER_TYPE_ASK = 0
OFFER_TYPE_BID = 1

KANDEL_ABI: list[dict] = [
    {
        "type": "function",
        "name": "getOffer",
        "stateMutability": "view",
        "inputs": [
            {"name": "ba", "type": "uint8"},
            {"name": "index", "type": "uint256"},
        ],
        "outputs": [{"name": "offer", "type": "uint256"}],
    },
    {
        "type": "function",
        "name": "MGV",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "address"}],
    },
]

MANGROVE_ABI: list[dict] = [
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "maker", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    }
]
