"""Tests for address helpers, config and pydantic models."""

import pytest
from pydantic import TypeAdapter, ValidationError

from cpamm.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from cpamm.constants import DEFAULT_CUSTODY_ADDRESS, PRICE_SCALE
from cpamm.errors import AMMError, EmptyPool, Expired, PairNotFound
from cpamm.models.events import LiquidityAdded, PoolEvent, TokensSwapped
from cpamm.models.requests import AddLiquidityRequest
from cpamm.models.types import (
    ZERO_ADDRESS,
    is_null_identity,
    is_valid_address,
    normalize_address,
    validate_uint256,
)
from tests.helpers import ALICE, TOKEN_A, TOKEN_B


class TestAddressHelpers:
    def test_normalize(self):
        assert normalize_address("0xABC") == "0xabc"
        assert normalize_address("abc") == "0xabc"

    def test_normalize_validate(self):
        with pytest.raises(ValueError):
            normalize_address("0x1234", validate=True)

    def test_is_valid_address(self):
        assert is_valid_address(TOKEN_A)
        assert not is_valid_address("0x" + "g" * 40)
        assert not is_valid_address(TOKEN_A[2:])
        assert not is_valid_address(None)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [None, "", ZERO_ADDRESS, ZERO_ADDRESS[2:]])
    def test_null_identity(self, value):
        assert is_null_identity(value)

    def test_non_null_identity(self):
        assert not is_null_identity(ALICE)


class TestUint256:
    def test_accepts_int_and_str(self):
        assert validate_uint256(5) == "5"
        assert validate_uint256("5") == "5"

    @pytest.mark.parametrize("value", [-1, "-1", 2**256, "abc", 1.5, True])
    def test_rejects(self, value):
        with pytest.raises(ValueError):
            validate_uint256(value)


class TestEngineConfig:
    def test_defaults(self):
        assert DEFAULT_ENGINE_CONFIG.custody_address == DEFAULT_CUSTODY_ADDRESS
        assert DEFAULT_ENGINE_CONFIG.price_scale == PRICE_SCALE

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("CPAMM_CUSTODY_ADDRESS", "0x" + "F" * 40)
        assert EngineConfig.from_env().custody_address == "0x" + "f" * 40

    def test_from_env_rejects_malformed(self, monkeypatch):
        monkeypatch.setenv("CPAMM_CUSTODY_ADDRESS", "0x1234")
        with pytest.raises(ValueError):
            EngineConfig.from_env()

    def test_frozen(self):
        with pytest.raises(AttributeError):
            DEFAULT_ENGINE_CONFIG.price_scale = 1  # type: ignore[misc]


class TestErrors:
    def test_hierarchy_and_codes(self):
        assert issubclass(Expired, AMMError)
        assert Expired.code == "EXPIRED"
        assert PairNotFound.code == "PAIR_NOT_FOUND"
        assert EmptyPool("x").code == "EMPTY_POOL"


class TestEventModels:
    def test_aliases(self):
        event = LiquidityAdded(
            provider=ALICE,
            asset_a=TOKEN_A,
            asset_b=TOKEN_B,
            amount_a=1000,
            amount_b=4000,
            shares=2000,
        )
        dumped = event.model_dump(by_alias=True)
        assert dumped["kind"] == "liquidityAdded"
        assert dumped["amountA"] == 1000

    def test_discriminated_union(self):
        adapter = TypeAdapter(PoolEvent)
        event = adapter.validate_python(
            {
                "kind": "tokensSwapped",
                "sender": ALICE,
                "assetIn": TOKEN_A,
                "assetOut": TOKEN_B,
                "amountIn": 100,
                "amountOut": 362,
            }
        )
        assert isinstance(event, TokensSwapped)

    def test_negative_amount_rejected(self):
        with pytest.raises(ValidationError):
            TokensSwapped(
                sender=ALICE, asset_in=TOKEN_A, asset_out=TOKEN_B, amount_in=-1, amount_out=0
            )


class TestRequestModels:
    def test_add_liquidity_request_defaults(self):
        request = AddLiquidityRequest.model_validate(
            {
                "sender": ALICE,
                "assetA": TOKEN_A,
                "assetB": TOKEN_B,
                "amountADesired": "1000",
                "amountBDesired": 4000,
                "recipient": ALICE,
                "deadline": 1,
            }
        )
        assert request.amount_b_desired == "4000"
        assert request.amount_a_min == "0"

    def test_malformed_address_rejected(self):
        with pytest.raises(ValidationError):
            AddLiquidityRequest.model_validate(
                {
                    "sender": "0x1234",
                    "assetA": TOKEN_A,
                    "assetB": TOKEN_B,
                    "amountADesired": "1",
                    "amountBDesired": "1",
                    "recipient": ALICE,
                    "deadline": 1,
                }
            )
