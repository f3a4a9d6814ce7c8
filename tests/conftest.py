import itertools
from typing import Any

import pytest
import requests

from mangrove_vaults.chain import Call, TxRequest
from mangrove_vaults.errors import SimulationError
from mangrove_vaults.models import Market, Token

SENDER = "0x1111111111111111111111111111111111111111"
VAULT = "0x2222222222222222222222222222222222222222"
BASE = "0x3333333333333333333333333333333333333333"
QUOTE = "0x4444444444444444444444444444444444444444"
ORACLE = "0x5555555555555555555555555555555555555555"
KANDEL = "0x6666666666666666666666666666666666666666"
MGV = "0x7777777777777777777777777777777777777777"
SWAPPER = "0x8888888888888888888888888888888888888888"

ANY = object()


class FakeChain:
    """
    In-memory stand-in for ChainClient.

    Answers are keyed by (address, function name, args); `ANY` as args matches every
    call to that function. Callable answers are invoked with the Call. Every read,
    simulation and send is appended to `log` as (kind, fn_name, address, args).
    """

    def __init__(self, sender: str | None = SENDER, chain_id: int = 8453):
        self.sender = sender
        self.chain_id = chain_id
        self.responses: dict[tuple, Any] = {}
        self.log: list[tuple[str, str, str, tuple]] = []
        self.code: dict[str, bytes] = {}
        self.balances: dict[str, int] = {}
        self.reverting: set[str] = set()
        self.receipt_status = 1
        self.on_send: dict[str, Any] = {}
        self.sent: list[TxRequest] = []
        self._hashes = itertools.count(1)

    def set(self, address: str, fn_name: str, value: Any, args: Any = ANY) -> None:
        key_args = ANY if args is ANY else tuple(args)
        self.responses[(address.lower(), fn_name, key_args)] = value

    def _resolve(self, call: Call) -> Any:
        for key in ((call.address.lower(), call.fn_name, tuple(call.args)), (call.address.lower(), call.fn_name, ANY)):
            if key in self.responses:
                value = self.responses[key]
                return value(call) if callable(value) else value
        raise KeyError(f"No answer for {call.fn_name}{call.args} on {call.address}")

    def calls(self, kind: str | None = None) -> list[str]:
        return [fn for k, fn, _, _ in self.log if kind is None or k == kind]

    def read(self, call: Call) -> Any:
        self.log.append(("read", call.fn_name, call.address, tuple(call.args)))
        return self._resolve(call)

    def multicall(self, calls) -> list[Any]:
        calls = list(calls)
        for call in calls:
            self.log.append(("multicall", call.fn_name, call.address, tuple(call.args)))
        return [self._resolve(call) for call in calls]

    def simulate(self, call: Call, *, value: int = 0, gas: int | None = None):
        self.log.append(("simulate", call.fn_name, call.address, tuple(call.args)))
        if call.fn_name in self.reverting:
            raise SimulationError(f"{call.fn_name} reverted")
        try:
            result = self._resolve(call)
        except KeyError:
            result = None
        return result, TxRequest(call=call, value=value, gas=gas)

    def send(self, request: TxRequest) -> str:
        if self.sender is None:
            raise RuntimeError("No signer configured")
        call = request.call
        self.log.append(("send", call.fn_name, call.address, tuple(call.args)))
        self.sent.append(request)
        effect = self.on_send.get(call.fn_name)
        if effect is not None:
            effect(call)
        return f"0x{next(self._hashes):064x}"

    def wait_for_receipt(self, tx_hash: str) -> dict[str, Any]:
        return {"status": self.receipt_status, "blockNumber": 1000 + len(self.sent), "transactionHash": tx_hash}

    def get_code(self, address: str) -> bytes:
        return self.code.get(address.lower(), b"")

    def get_balance(self, address: str) -> int:
        return self.balances.get(address.lower(), 0)


class StubResponse:
    def __init__(self, payload: Any, status_code: int = 200):
        self.payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class StubSession:
    """requests.Session look-alike answering queued responses in order."""

    def __init__(self, *responses: StubResponse):
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def request(self, method: str, url: str, **kwargs) -> StubResponse:
        self.requests.append({"method": method, "url": url, **kwargs})
        return self.responses.pop(0)

    def get(self, url: str, **kwargs) -> StubResponse:
        return self.request("GET", url, **kwargs)


@pytest.fixture
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def market() -> Market:
    return Market(
        base=Token(address=BASE, decimals=18, symbol="WETH"),
        quote=Token(address=QUOTE, decimals=6, symbol="USDC"),
        tick_spacing=1,
    )
