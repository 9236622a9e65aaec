"""
FastAPI Router for Cross-Chain Bridging

REST endpoints over the read side of the BridgeService: registry contents,
fee and gas estimates, route planning, transaction status and history.
Submission is deliberately not exposed; it needs a signer the HTTP caller
does not own.

Routes:
- /chains: Registered chains and their attributes
- /routes: Direct bridge edges with fee rate and latency
- /fees, /gas: Fee breakdown and single-hop gas estimate
- /route: Plan a direct or multi-hop route
- /status/{tx_hash}: Status of a submitted hop
- /history/{address}: Bridge transfers sent or received by an address
"""

from datetime import UTC, datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..bridge.service import BridgeService, get_bridge_service
from ..exceptions import (
    BridgeError,
    ProviderError,
    RouteNotFoundError,
    SigningUnavailableError,
    UnknownChainError,
    UnsupportedHopError,
)

logger = structlog.get_logger(__name__)


# ==================== Response Models ====================


class APIResponse(BaseModel):
    """Standard API response wrapper."""
    success: bool = True
    data: Any | None = None
    error: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class RouteQuery(BaseModel):
    """Body of a route planning request."""
    source_chain: int
    target_chain: int
    token_symbol: str | None = None
    amount: int = Field(default=0, ge=0)


# ==================== Error Mapping ====================

_STATUS_CODES: dict[type[BridgeError], int] = {
    UnknownChainError: 404,
    RouteNotFoundError: 404,
    UnsupportedHopError: 400,
    SigningUnavailableError: 403,
    ProviderError: 503,
}


def _bridge_error(context: str, e: BridgeError) -> HTTPException:
    """
    Map a bridge exception to an HTTP error.

    Caller-facing errors keep their message. Provider failures are logged
    and returned without internal details.
    """
    status_code = next(
        (code for exc_type, code in _STATUS_CODES.items() if isinstance(e, exc_type)),
        400,
    )
    if isinstance(e, ProviderError):
        logger.error("bridge_api_provider_error", context=context, error=str(e))
        return HTTPException(
            status_code=status_code,
            detail=f"Chain provider unavailable during {context}. Please try again.",
        )
    return HTTPException(status_code=status_code, detail=str(e))


# ==================== Dependency Injection ====================


async def get_service() -> BridgeService:
    """Dependency returning the process-wide bridge service."""
    return await get_bridge_service()


# ==================== Bridge Routes ====================

bridge_router = APIRouter(prefix="/bridge", tags=["Bridge"])


@bridge_router.get("/chains", response_model=APIResponse)
async def list_chains(service: BridgeService = Depends(get_service)):
    """List every registered chain with its static attributes."""
    chains = [chain.model_dump(mode="json") for chain in service.registry.chains()]
    return APIResponse(data=chains)


@bridge_router.get("/routes", response_model=APIResponse)
async def list_routes(service: BridgeService = Depends(get_service)):
    """List direct bridge routes with fee rate and estimated latency."""
    return APIResponse(data=service.supported_routes())


@bridge_router.get("/fees", response_model=APIResponse)
async def get_fees(
    amount: int = Query(..., ge=0),
    source_chain: int = Query(...),
    target_chain: int = Query(...),
    service: BridgeService = Depends(get_service),
):
    """Bridge and gas fees for a transfer, in base units."""
    try:
        fees = service.calculate_fees(amount, source_chain, target_chain)
    except BridgeError as e:
        raise _bridge_error("fee calculation", e)
    return APIResponse(data=fees.model_dump(mode="json"))


@bridge_router.get("/gas", response_model=APIResponse)
async def get_gas(
    source_chain: int = Query(...),
    target_chain: int = Query(...),
    service: BridgeService = Depends(get_service),
):
    """Gas estimate for a direct hop."""
    try:
        estimate = await service.estimate_gas(source_chain=source_chain, target_chain=target_chain)
    except BridgeError as e:
        raise _bridge_error("gas estimation", e)
    return APIResponse(data=estimate.model_dump(mode="json"))


@bridge_router.post("/route", response_model=APIResponse)
async def plan_route(query: RouteQuery, service: BridgeService = Depends(get_service)):
    """
    Plan a route between two chains.

    Returns the ordered hops with the chain path, estimated time, estimated
    cost in native units and slippage allowance.
    """
    try:
        plan = await service.find_route(
            query.source_chain,
            query.target_chain,
            query.token_symbol,
            query.amount,
        )
    except BridgeError as e:
        raise _bridge_error("route planning", e)

    data = plan.model_dump(mode="json")
    data["route"] = plan.route
    return APIResponse(data=data)


@bridge_router.get("/status/{tx_hash}", response_model=APIResponse)
async def get_status(
    tx_hash: str,
    source_chain: int = Query(...),
    service: BridgeService = Depends(get_service),
):
    """Current status of a submitted hop transaction."""
    try:
        status = await service.get_status(tx_hash, source_chain)
    except BridgeError as e:
        raise _bridge_error("status lookup", e)
    return APIResponse(data=status.model_dump(mode="json"))


@bridge_router.get("/history/{address}", response_model=APIResponse)
async def get_history(
    address: str,
    limit: int = Query(10, ge=0, le=100),
    service: BridgeService = Depends(get_service),
):
    """Bridge transfers sent or received by an address, newest first."""
    try:
        history = await service.get_history(address, limit)
    except BridgeError as e:
        raise _bridge_error("history lookup", e)
    return APIResponse(data=[status.model_dump(mode="json") for status in history])


def create_bridge_router() -> APIRouter:
    """
    Create the router for all bridge endpoints.

    Usage:
        from crossbridge.api import create_bridge_router

        app = FastAPI()
        app.include_router(create_bridge_router(), prefix="/api/v1")
    """
    main_router = APIRouter()
    main_router.include_router(bridge_router)
    return main_router
