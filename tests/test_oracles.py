import pytest

from mangrove_vaults.constants import ZERO_ADDRESS, ZERO_SALT
from mangrove_vaults.errors import ValidationError
from mangrove_vaults.models import ChainlinkFeed, VaultFeed
from mangrove_vaults.oracles import (
    CombinerArgs,
    OracleArgs,
    chained_decimals,
    chainlink_args,
    check_decimal_chaining,
    compute_oracle_address,
    deploy_oracle,
    deploy_with_salt_retry,
    dia_args,
    encode_dia_key,
    factory_args,
)
from mangrove_vaults.registry import CHAINLINK_V1, CHAINLINK_V2, COMBINER_V1, DIA_V1

FACTORY = "0x000000000000000000000000000000000000fAC7"
PREDICTED = "0x00000000000000000000000000000000000a11cE"
FEED_A = "0x00000000000000000000000000000000000000a1"
FEED_B = "0x00000000000000000000000000000000000000b2"
FEED_C = "0x00000000000000000000000000000000000000c3"


def test_chained_decimals_two_base_hops():
    assert chained_decimals(2, 0, 8, 6) == {
        "base_feed1": (8, 18),
        "base_feed2": (18, 6),
        "quote_feed1": None,
        "quote_feed2": None,
    }


def test_chained_decimals_single_hop_uses_token_decimals():
    assert chained_decimals(1, 0, 18, 6)["base_feed1"] == (18, 6)
    assert chained_decimals(0, 1, 18, 6)["quote_feed1"] == (6, 18)


def test_chained_decimals_base_and_quote_meet_at_intermediary():
    decimals = chained_decimals(1, 1, 18, 6, intermediary_decimals=12)
    assert decimals["base_feed1"] == (18, 12)
    assert decimals["quote_feed1"] == (6, 12)


def test_chained_decimals_rejects_too_many_hops():
    with pytest.raises(ValidationError):
        chained_decimals(3, 0, 18, 6)


def test_check_decimal_chaining_accepts_built_args():
    args = chainlink_args([FEED_A, FEED_B], [FEED_C], 18, 6)
    check_decimal_chaining(args, 18, 6)
    assert args.base_feed2 == ChainlinkFeed(FEED_B, 18, 18)


def test_check_decimal_chaining_rejects_broken_chain():
    args = OracleArgs(
        base_feed1=ChainlinkFeed(FEED_A, 18, 8),
        base_feed2=ChainlinkFeed(FEED_B, 18, 6),
    )
    with pytest.raises(ValidationError):
        check_decimal_chaining(args, 18, 6)


def test_check_decimal_chaining_rejects_second_feed_without_first():
    with pytest.raises(ValidationError):
        check_decimal_chaining(OracleArgs(base_feed2=ChainlinkFeed(FEED_B, 18, 6)), 18, 6)


@pytest.mark.parametrize(
    ("key", "expected"),
    [
        ("", b"\x00" * 32),
        ("ETH/USD", b"ETH/USD" + b"\x00" * 25),
        ("x" * 32, b"x" * 32),
    ],
)
def test_encode_dia_key(key, expected):
    assert encode_dia_key(key) == expected


def test_encode_dia_key_too_long():
    with pytest.raises(ValidationError):
        encode_dia_key("x" * 33)


def test_dia_args_requires_a_feed_per_side():
    with pytest.raises(ValidationError):
        dia_args([(FEED_A, "ETH/USD", 8)], [], 18, 6)
    args = dia_args([(FEED_A, "ETH/USD", 8)], [(FEED_B, "USDC/USD", 8)], 18, 6)
    assert args.base_feed1.key.startswith(b"ETH/USD")
    assert (args.quote_feed1.base_decimals, args.quote_feed1.quote_decimals) == (6, 18)


def test_factory_args_fill_defaults():
    args = OracleArgs(base_feed1=ChainlinkFeed(FEED_A, 18, 6))
    v1 = factory_args(CHAINLINK_V1, args)
    assert v1[0] == (FEED_A, 18, 6)
    assert v1[1:4] == ((ZERO_ADDRESS, 0, 0),) * 3
    assert v1[4] == ZERO_SALT

    v2 = factory_args(CHAINLINK_V2, OracleArgs(base_feed1=ChainlinkFeed(FEED_A, 18, 6), quote_vault=VaultFeed(FEED_C, 10**6)))
    assert v2[4:6] == ((ZERO_ADDRESS, 0), (FEED_C, 10**6))
    assert len(v2) == 7

    dia = factory_args(DIA_V1, dia_args([(FEED_A, "ETH/USD", 8)], [(FEED_B, "USDC/USD", 8)], 18, 6))
    assert dia[1] == (ZERO_ADDRESS, ZERO_SALT, 0, 0, 0)


def test_factory_args_rejects_empty():
    with pytest.raises(ValidationError):
        factory_args(CHAINLINK_V1, OracleArgs())
    with pytest.raises(ValidationError):
        factory_args(COMBINER_V1, CombinerArgs(oracles=(ZERO_ADDRESS,) * 4))


def _deterministic_factory(fake_chain):
    fake_chain.set(FACTORY, "computeOracleAddress", PREDICTED)
    fake_chain.set(FACTORY, "create", PREDICTED)
    fake_chain.on_send["create"] = lambda call: fake_chain.code.__setitem__(PREDICTED.lower(), b"\x60\x80")


def test_deterministic_deploy_sends_create_once(fake_chain):
    _deterministic_factory(fake_chain)
    args = CombinerArgs(oracles=(FEED_A, ZERO_ADDRESS, ZERO_ADDRESS, ZERO_ADDRESS))

    assert deploy_oracle(fake_chain, COMBINER_V1, FACTORY, args) == PREDICTED
    assert deploy_oracle(fake_chain, COMBINER_V1, FACTORY, args) == PREDICTED
    assert fake_chain.calls("send") == ["create"]
    assert fake_chain.sent[0].call.args == (FEED_A, ZERO_ADDRESS, ZERO_ADDRESS, ZERO_ADDRESS, ZERO_SALT)


def test_compute_oracle_address(fake_chain):
    _deterministic_factory(fake_chain)
    args = chainlink_args([FEED_A], [], 18, 6)
    assert compute_oracle_address(fake_chain, CHAINLINK_V2, FACTORY, args) == PREDICTED
    with pytest.raises(ValueError):
        compute_oracle_address(fake_chain, CHAINLINK_V1, FACTORY, args)


def test_chainlink_v1_has_no_address_prediction(fake_chain):
    fake_chain.set(FACTORY, "create", PREDICTED)
    assert deploy_oracle(fake_chain, CHAINLINK_V1, FACTORY, chainlink_args([FEED_A], [], 18, 6)) == PREDICTED
    assert "computeOracleAddress" not in fake_chain.calls()


def test_salt_retry_uses_fresh_salts(fake_chain):
    salts = iter([b"\x01" * 32, b"\x02" * 32, b"\x03" * 32])
    fake_chain.set(FACTORY, "create", lambda call: PREDICTED)
    fake_chain.reverting.add("create")

    result = deploy_with_salt_retry(
        fake_chain,
        CHAINLINK_V1,
        FACTORY,
        chainlink_args([FEED_A], [], 18, 6),
        lambda: True,
        attempts=3,
        new_salt=lambda: next(salts),
    )

    assert result is None
    simulated_salts = [args[-1] for kind, fn, _, args in fake_chain.log if kind == "simulate"]
    assert simulated_salts == [ZERO_SALT, b"\x01" * 32, b"\x02" * 32, b"\x03" * 32]
    assert fake_chain.calls("send") == []


def test_salt_retry_stops_at_first_success(fake_chain):
    attempts = []

    def create(call):
        attempts.append(call.args[-1])
        return PREDICTED

    fake_chain.set(FACTORY, "create", create)
    fake_chain.receipt_status = 0

    def fix_receipts():
        fake_chain.receipt_status = 1
        return True

    result = deploy_with_salt_retry(
        fake_chain, CHAINLINK_V1, FACTORY, chainlink_args([FEED_A], [], 18, 6), fix_receipts, new_salt=lambda: b"\x09" * 32
    )

    assert result == PREDICTED
    assert attempts == [ZERO_SALT, b"\x09" * 32]
    assert fake_chain.calls("send") == ["create", "create"]


def test_salt_retry_declined(fake_chain):
    fake_chain.reverting.add("create")
    result = deploy_with_salt_retry(fake_chain, CHAINLINK_V1, FACTORY, chainlink_args([FEED_A], [], 18, 6), lambda: False)
    assert result is None
    assert fake_chain.calls("simulate") == ["create"]
