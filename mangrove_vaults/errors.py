"""Exception types raised by the console."""


class MangroveVaultsError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(MangroveVaultsError, ValueError):
    """Operator input is malformed or out of range. Nothing was sent on-chain."""


class SimulationError(MangroveVaultsError):
    """The eth_call simulation of a write reverted. No gas was spent."""


class TransactionRevertedError(MangroveVaultsError):
    """
    Raised when the tx was sent, mined, and status == 0.
    Gas was already paid.
    """

    def __init__(self, tx_hash: str, receipt: dict, msg: str):
        super().__init__(msg)
        self.tx_hash = tx_hash
        self.receipt = receipt


class AggregatorError(MangroveVaultsError):
    """A swap aggregator call failed or returned an unexpected payload."""

    def __init__(self, provider: str, msg: str):
        super().__init__(f"{provider}: {msg}")
        self.provider = provider


class NotWhitelistedError(MangroveVaultsError):
    """A swap was about to be routed through a target the vault does not allow."""

    def __init__(self, vault: str, target: str):
        super().__init__(f"Swap target {target} is not whitelisted on vault {vault}")
        self.vault = vault
        self.target = target


class FeedsError(MangroveVaultsError):
    """Chainlink feed metadata could not be fetched or parsed."""
