"""Tests for the HTTP API."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from cpamm.api.endpoints import get_engine
from cpamm.api.main import app
from tests.helpers import ALICE, BOB, CUSTODY, DEADLINE, NOW, TOKEN_A, TOKEN_B, TOKEN_C


@pytest.fixture
def client(engine) -> Iterator[TestClient]:
    """Test client bound to a fresh engine with a fixed clock."""
    app.dependency_overrides[get_engine] = lambda: engine
    yield TestClient(app)
    app.dependency_overrides.clear()


def fund_via_api(client: TestClient, owner: str, asset: str, amount: int) -> None:
    response = client.post(
        "/ledger/mint", json={"asset": asset, "owner": owner, "amount": str(amount)}
    )
    assert response.status_code == 200
    response = client.post(
        "/ledger/approve", json={"asset": asset, "owner": owner, "amount": str(amount)}
    )
    assert response.status_code == 200
    assert response.json()["spender"] == CUSTODY


def add_body(**overrides) -> dict:
    body = {
        "sender": ALICE,
        "assetA": TOKEN_A,
        "assetB": TOKEN_B,
        "amountADesired": "1000",
        "amountBDesired": "4000",
        "recipient": ALICE,
        "deadline": DEADLINE,
    }
    body.update(overrides)
    return body


@pytest.fixture
def seeded_client(client) -> TestClient:
    fund_via_api(client, ALICE, TOKEN_A, 1000)
    fund_via_api(client, ALICE, TOKEN_B, 4000)
    response = client.post("/liquidity/add", json=add_body())
    assert response.status_code == 200
    fund_via_api(client, BOB, TOKEN_A, 1000)
    return client


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestLiquidityEndpoints:
    def test_add_liquidity(self, client):
        fund_via_api(client, ALICE, TOKEN_A, 1000)
        fund_via_api(client, ALICE, TOKEN_B, 4000)

        response = client.post("/liquidity/add", json=add_body())

        assert response.status_code == 200
        assert response.json() == {"amountA": "1000", "amountB": "4000", "shares": "2000"}

    def test_pair_state(self, seeded_client):
        response = seeded_client.get(f"/pairs/{TOKEN_B}/{TOKEN_A}")
        assert response.status_code == 200
        data = response.json()
        assert data["assetLow"] == TOKEN_A
        assert data["reserveLow"] == "1000"
        assert data["reserveHigh"] == "4000"
        assert data["totalShares"] == "2000"

    def test_remove_liquidity(self, seeded_client):
        response = seeded_client.post(
            "/liquidity/remove",
            json={
                "sender": ALICE,
                "assetA": TOKEN_A,
                "assetB": TOKEN_B,
                "shares": "2000",
                "recipient": ALICE,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 200
        assert response.json() == {"amountA": "1000", "amountB": "4000"}

        balance = seeded_client.get(f"/ledger/{TOKEN_B}/{ALICE}")
        assert balance.json()["balance"] == "4000"

    def test_remove_from_unknown_pair_is_404(self, client):
        response = client.post(
            "/liquidity/remove",
            json={
                "sender": ALICE,
                "assetA": TOKEN_A,
                "assetB": TOKEN_B,
                "shares": "1",
                "recipient": ALICE,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 404
        assert response.json()["code"] == "PAIR_NOT_FOUND"

    def test_expired_is_400(self, client):
        response = client.post("/liquidity/add", json=add_body(deadline=NOW - 1))
        assert response.status_code == 400
        assert response.json()["code"] == "EXPIRED"

    def test_ledger_failure_is_400(self, client):
        response = client.post("/liquidity/add", json=add_body())
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_ALLOWANCE"

    def test_schema_errors_are_422(self, client):
        assert client.post("/liquidity/add", json=add_body(assetA="0x1234")).status_code == 422
        assert client.post("/liquidity/add", json=add_body(amountADesired="-1")).status_code == 422
        assert client.post("/liquidity/add", json={"sender": ALICE}).status_code == 422


class TestSwapEndpoints:
    def test_swap_exact_in(self, seeded_client):
        response = seeded_client.post(
            "/swap/exact-in",
            json={
                "sender": BOB,
                "amountIn": "100",
                "amountOutMin": "362",
                "path": [TOKEN_A, TOKEN_B],
                "recipient": BOB,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 200
        assert response.json() == {"amounts": ["100", "362"]}

    def test_swap_exact_out(self, seeded_client):
        response = seeded_client.post(
            "/swap/exact-out",
            json={
                "sender": BOB,
                "amountOut": "362",
                "amountInMax": "100",
                "path": [TOKEN_A, TOKEN_B],
                "recipient": BOB,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 200
        assert response.json() == {"amounts": ["100", "362"]}

    def test_slippage_is_400(self, seeded_client):
        response = seeded_client.post(
            "/swap/exact-in",
            json={
                "sender": BOB,
                "amountIn": "100",
                "amountOutMin": "363",
                "path": [TOKEN_A, TOKEN_B],
                "recipient": BOB,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INSUFFICIENT_OUTPUT_AMOUNT"

    def test_invalid_path_is_400(self, seeded_client):
        response = seeded_client.post(
            "/swap/exact-in",
            json={
                "sender": BOB,
                "amountIn": "100",
                "path": [TOKEN_A, TOKEN_B, TOKEN_C],
                "recipient": BOB,
                "deadline": DEADLINE,
            },
        )
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PATH"

    def test_events_recorded(self, seeded_client):
        seeded_client.post(
            "/swap/exact-in",
            json={
                "sender": BOB,
                "amountIn": "100",
                "path": [TOKEN_A, TOKEN_B],
                "recipient": BOB,
                "deadline": DEADLINE,
            },
        )
        events = seeded_client.get("/events").json()
        assert [e["kind"] for e in events] == ["liquidityAdded", "tokensSwapped"]
        assert events[1]["amountOut"] == 362


class TestPriceEndpoints:
    def test_price(self, seeded_client):
        response = seeded_client.get(f"/price/{TOKEN_A}/{TOKEN_B}")
        assert response.status_code == 200
        assert response.json() == {"price": str(4 * 10**21), "scale": str(10**18)}

    def test_price_unknown_pair(self, client):
        response = client.get(f"/price/{TOKEN_A}/{TOKEN_B}")
        assert response.status_code == 404

    def test_price_malformed_address(self, client):
        assert client.get(f"/price/0x1234/{TOKEN_B}").status_code == 422

    def test_price_identical_assets(self, seeded_client):
        response = seeded_client.get(f"/price/{TOKEN_A}/{TOKEN_A}")
        assert response.status_code == 400
        assert response.json()["code"] == "IDENTICAL_ASSETS"

    def test_quote_amount_out(self, client):
        response = client.post(
            "/quote/amount-out",
            json={"amountIn": "100", "reserveIn": "1000", "reserveOut": "4000"},
        )
        assert response.status_code == 200
        assert response.json() == {"amountOut": "362"}

    def test_quote_empty_reserves(self, client):
        response = client.post(
            "/quote/amount-out",
            json={"amountIn": "100", "reserveIn": "0", "reserveOut": "4000"},
        )
        assert response.status_code == 400
        assert response.json()["code"] == "EMPTY_RESERVES"
