"""API endpoints for the pool engine."""

from functools import lru_cache
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, HTTPException, Path

from cpamm.amm.engine import AMMEngine
from cpamm.config import EngineConfig
from cpamm.ledger import InMemoryTokenLedger
from cpamm.models.requests import (
    AddLiquidityRequest,
    AddLiquidityResponse,
    AmountOutRequest,
    AmountOutResponse,
    ApproveRequest,
    BalanceResponse,
    MintRequest,
    PairResponse,
    PriceResponse,
    RemoveLiquidityRequest,
    RemoveLiquidityResponse,
    SwapExactInRequest,
    SwapExactOutRequest,
    SwapResponse,
)

logger = structlog.get_logger()

router = APIRouter()

AddressPath = Annotated[str, Path(pattern=r"^0x[a-fA-F0-9]{40}$")]


@lru_cache(maxsize=1)
def get_default_engine() -> AMMEngine:
    """Process-wide engine over an in-memory ledger, configured from the environment."""
    config = EngineConfig.from_env()
    logger.info("engine_created", custody=config.custody_address)
    return AMMEngine(ledger=InMemoryTokenLedger(), config=config)


def get_engine() -> AMMEngine:
    """Dependency provider for the engine instance.

    Override this in tests to inject an engine with a fixed clock:
        app.dependency_overrides[get_engine] = lambda: engine
    """
    return get_default_engine()


def _in_memory_ledger(engine: AMMEngine) -> InMemoryTokenLedger:
    if not isinstance(engine.ledger, InMemoryTokenLedger):
        raise HTTPException(status_code=501, detail="Ledger does not support test funding")
    return engine.ledger


@router.post("/liquidity/add", response_model=AddLiquidityResponse)
def add_liquidity(
    request: AddLiquidityRequest,
    engine: AMMEngine = Depends(get_engine),
) -> AddLiquidityResponse:
    result = engine.add_liquidity(
        sender=request.sender,
        asset_a=request.asset_a,
        asset_b=request.asset_b,
        amount_a_desired=int(request.amount_a_desired),
        amount_b_desired=int(request.amount_b_desired),
        amount_a_min=int(request.amount_a_min),
        amount_b_min=int(request.amount_b_min),
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return AddLiquidityResponse(
        amount_a=str(result.amount_a),
        amount_b=str(result.amount_b),
        shares=str(result.shares),
    )


@router.post("/liquidity/remove", response_model=RemoveLiquidityResponse)
def remove_liquidity(
    request: RemoveLiquidityRequest,
    engine: AMMEngine = Depends(get_engine),
) -> RemoveLiquidityResponse:
    result = engine.remove_liquidity(
        sender=request.sender,
        asset_a=request.asset_a,
        asset_b=request.asset_b,
        shares_to_burn=int(request.shares),
        amount_a_min=int(request.amount_a_min),
        amount_b_min=int(request.amount_b_min),
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return RemoveLiquidityResponse(amount_a=str(result.amount_a), amount_b=str(result.amount_b))


@router.post("/swap/exact-in", response_model=SwapResponse)
def swap_exact_in(
    request: SwapExactInRequest,
    engine: AMMEngine = Depends(get_engine),
) -> SwapResponse:
    result = engine.swap_exact_tokens_for_tokens(
        sender=request.sender,
        amount_in=int(request.amount_in),
        amount_out_min=int(request.amount_out_min),
        path=request.path,
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return SwapResponse(amounts=[str(a) for a in result.amounts])


@router.post("/swap/exact-out", response_model=SwapResponse)
def swap_exact_out(
    request: SwapExactOutRequest,
    engine: AMMEngine = Depends(get_engine),
) -> SwapResponse:
    result = engine.swap_tokens_for_exact_tokens(
        sender=request.sender,
        amount_out=int(request.amount_out),
        amount_in_max=int(request.amount_in_max),
        path=request.path,
        recipient=request.recipient,
        deadline=request.deadline,
    )
    return SwapResponse(amounts=[str(a) for a in result.amounts])


@router.post("/quote/amount-out", response_model=AmountOutResponse)
def quote_amount_out(
    request: AmountOutRequest,
    engine: AMMEngine = Depends(get_engine),
) -> AmountOutResponse:
    amount_out = engine.get_amount_out(
        int(request.amount_in), int(request.reserve_in), int(request.reserve_out)
    )
    return AmountOutResponse(amount_out=str(amount_out))


@router.get("/price/{asset_a}/{asset_b}", response_model=PriceResponse)
def get_price(
    asset_a: AddressPath,
    asset_b: AddressPath,
    engine: AMMEngine = Depends(get_engine),
) -> PriceResponse:
    price = engine.get_price(asset_a, asset_b)
    return PriceResponse(price=str(price), scale=str(engine.config.price_scale))


@router.get("/pairs/{asset_a}/{asset_b}", response_model=PairResponse)
def get_pair(
    asset_a: AddressPath,
    asset_b: AddressPath,
    engine: AMMEngine = Depends(get_engine),
) -> PairResponse:
    pair = engine.get_pair(asset_a, asset_b)
    return PairResponse(
        key=pair.key,
        asset_low=pair.asset_low,
        asset_high=pair.asset_high,
        reserve_low=str(pair.reserve_low),
        reserve_high=str(pair.reserve_high),
        total_shares=str(pair.total_shares),
    )


@router.get("/events")
def list_events(engine: AMMEngine = Depends(get_engine)) -> list[dict[str, object]]:
    return [event.model_dump(by_alias=True) for event in engine.events]


@router.post("/ledger/mint", response_model=BalanceResponse)
def mint(request: MintRequest, engine: AMMEngine = Depends(get_engine)) -> BalanceResponse:
    ledger = _in_memory_ledger(engine)
    ledger.mint(request.asset, request.owner, int(request.amount))
    return BalanceResponse(
        asset=request.asset,
        owner=request.owner,
        balance=str(ledger.balance_of(request.asset, request.owner)),
    )


@router.post("/ledger/approve")
def approve(request: ApproveRequest, engine: AMMEngine = Depends(get_engine)) -> dict[str, str]:
    ledger = _in_memory_ledger(engine)
    spender = request.spender or engine.custody_address
    ledger.approve(request.asset, request.owner, spender, int(request.amount))
    return {"spender": spender, "allowance": request.amount}


@router.get("/ledger/{asset}/{owner}", response_model=BalanceResponse)
def balance_of(
    asset: AddressPath,
    owner: AddressPath,
    engine: AMMEngine = Depends(get_engine),
) -> BalanceResponse:
    ledger = _in_memory_ledger(engine)
    return BalanceResponse(asset=asset, owner=owner, balance=str(ledger.balance_of(asset, owner)))
