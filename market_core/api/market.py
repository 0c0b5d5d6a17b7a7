"""
Market overview endpoints: major indices and sector performance.
"""

from typing import Any

from fastapi import APIRouter, Depends

from ..core.rate_limiter import LimitClass
from ..services.data_manager.gateway import MarketDataGateway
from .dependencies.services import get_gateway, rate_limited
from .responses import success_response

router = APIRouter(
    prefix="/api/market",
    tags=["Market Overview"],
    dependencies=[Depends(rate_limited(LimitClass.API))],
)


@router.get("/indices")
async def get_indices(gateway: MarketDataGateway = Depends(get_gateway)) -> dict[str, Any]:
    """SPY, DIA, QQQ and IWM snapshots, sorted by symbol."""
    indices = await gateway.get_indices()
    return success_response([index.to_dict() for index in indices])


@router.get("/sectors")
async def get_sectors(gateway: MarketDataGateway = Depends(get_gateway)) -> dict[str, Any]:
    """Sector ETF performance, best to worst."""
    sectors = await gateway.get_sectors()
    return success_response([sector.to_dict() for sector in sectors])
