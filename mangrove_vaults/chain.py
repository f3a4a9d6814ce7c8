"""Thin web3 wrapper: batched reads, simulation and signed submission."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Iterable

from mangrove_vaults.constants import DEFAULT_TIMEOUT, MULTICALL3_ABI, MULTICALL3_ADDRESS
from mangrove_vaults.errors import SimulationError
from mangrove_vaults.formatters import normalize_hex_str

if TYPE_CHECKING:
    from web3 import Web3  # pragma: no cover


@dataclass(frozen=True)
class Call:
    """One contract function invocation."""

    address: str
    abi: list[dict]
    fn_name: str
    args: tuple = ()


@dataclass(frozen=True)
class TxRequest:
    """A simulated write, ready to be signed and broadcast."""

    call: Call
    value: int = 0
    gas: int | None = None


def function_abi(abi: list[dict], fn_name: str) -> dict:
    for item in abi:
        if item.get("type") == "function" and item.get("name") == fn_name:
            return item
    raise KeyError(f"Function {fn_name!r} not found in ABI")


def _normalize(param: dict, value: Any) -> Any:
    """Shape decoded ABI values like `ContractFunction.call()` does (checksummed addresses, tuples)."""
    from web3 import Web3  # pylint: disable=import-outside-toplevel

    typ = param["type"]
    if typ.endswith("]"):
        inner = dict(param, type=typ[: typ.rindex("[")])
        return [_normalize(inner, v) for v in value]
    if typ == "address":
        return Web3.to_checksum_address(value)
    if typ == "tuple":
        return tuple(_normalize(c, v) for c, v in zip(param["components"], value))
    return value


def decode_output(fn_abi: dict, data: bytes) -> Any:
    """
    Decode raw return data for a function.

    Returns: a scalar for single-output functions, a tuple otherwise.
    """
    from eth_abi import decode  # pylint: disable=import-outside-toplevel
    from eth_utils.abi import collapse_if_tuple  # pylint: disable=import-outside-toplevel

    outputs = fn_abi.get("outputs", [])
    types = [collapse_if_tuple(o) for o in outputs]
    values = decode(types, data)
    normalized = tuple(_normalize(o, v) for o, v in zip(outputs, values))
    if len(normalized) == 1:
        return normalized[0]
    return normalized


class ChainClient:
    """
    Read/write access to one chain.

    `account` is an `eth_account` LocalAccount; without it the client is read-only
    and every write raises.
    """

    def __init__(self, w3: "Web3", account=None):
        self.w3 = w3
        self.account = account

    @classmethod
    def connect(cls, rpc_url: str, private_key: str | None = None, *, timeout: int = DEFAULT_TIMEOUT) -> "ChainClient":
        from eth_account import Account  # pylint: disable=import-outside-toplevel
        from web3 import Web3  # pylint: disable=import-outside-toplevel

        w3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout}))
        account = Account.from_key(private_key) if private_key else None
        return cls(w3, account)

    @property
    def sender(self) -> str | None:
        return self.account.address if self.account is not None else None

    @property
    def chain_id(self) -> int:
        return int(self.w3.eth.chain_id)

    def _contract(self, address: str, abi: list[dict]):
        from web3 import Web3  # pylint: disable=import-outside-toplevel

        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def _function(self, call: Call):
        return self._contract(call.address, call.abi).functions[call.fn_name](*call.args)

    def _shape(self, call: Call, result: Any) -> Any:
        outputs = function_abi(call.abi, call.fn_name).get("outputs", [])
        if len(outputs) > 1:
            return tuple(result)
        return result

    def read(self, call: Call) -> Any:
        """Single eth_call."""
        return self._shape(call, self._function(call).call())

    def multicall(self, calls: Iterable[Call]) -> list[Any]:
        """
        Batch reads through Multicall3 `aggregate3` in a single eth_call.

        All-or-nothing: any reverting sub-call fails the whole batch.
        """
        calls = list(calls)
        if not calls:
            return []
        payload = []
        for call in calls:
            contract = self._contract(call.address, call.abi)
            data = contract.encode_abi(call.fn_name, args=list(call.args))
            payload.append((contract.address, False, data))
        multicall = self._contract(MULTICALL3_ADDRESS, MULTICALL3_ABI)
        results = multicall.functions.aggregate3(payload).call()
        return [
            decode_output(function_abi(call.abi, call.fn_name), bytes(return_data))
            for call, (_, return_data) in zip(calls, results)
        ]

    def simulate(self, call: Call, *, value: int = 0, gas: int | None = None) -> tuple[Any, TxRequest]:
        """
        eth_call the write from the signer.

        Returns: (decoded result, request to hand to `send`).
        Raises SimulationError when the call reverts.
        """
        from web3.exceptions import ContractLogicError  # pylint: disable=import-outside-toplevel

        params: dict[str, Any] = {"from": self._require_sender(), "value": value}
        if gas is not None:
            params["gas"] = gas
        try:
            result = self._function(call).call(params)
        except ContractLogicError as exc:
            raise SimulationError(f"{call.fn_name} reverted: {exc}") from exc
        return self._shape(call, result), TxRequest(call=call, value=value, gas=gas)

    def send(self, request: TxRequest) -> str:
        """Build, sign and broadcast. Returns the tx hash."""
        sender = self._require_sender()
        params: dict[str, Any] = {
            "from": sender,
            "nonce": self.w3.eth.get_transaction_count(sender, "pending"),
            "value": request.value,
        }
        if request.gas is not None:
            params["gas"] = request.gas
        tx = self._function(request.call).build_transaction(params)
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return normalize_hex_str(tx_hash)

    def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        return dict(self.w3.eth.wait_for_transaction_receipt(tx_hash))

    def get_code(self, address: str) -> bytes:
        from web3 import Web3  # pylint: disable=import-outside-toplevel

        return bytes(self.w3.eth.get_code(Web3.to_checksum_address(address)))

    def get_balance(self, address: str) -> int:
        from web3 import Web3  # pylint: disable=import-outside-toplevel

        return int(self.w3.eth.get_balance(Web3.to_checksum_address(address)))

    def _require_sender(self) -> str:
        if self.account is None:
            raise RuntimeError("No signer configured (set PRIVATE_KEY to send transactions)")
        return self.account.address
