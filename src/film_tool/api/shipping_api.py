"""
Shipping API - FastAPI router for freight quotes.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from .state import resolver, simulator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shipping", tags=["shipping"])


# Pydantic models for API
class SubRegionResponse(BaseModel):
    id: str
    name: str


class RegionResponse(BaseModel):
    id: str
    name: str
    sub_regions: list[SubRegionResponse]


class VendorResponse(BaseModel):
    id: str
    name: str


class OptionsResponse(BaseModel):
    """Selectable vendors and routes."""
    vendors: list[VendorResponse]
    regions: list[RegionResponse]


class QuoteRequest(BaseModel):
    """Request model for a freight quote."""
    vendor_id: str
    region_id: Optional[str] = None
    sub_region_id: Optional[str] = None
    weight_kg: float


class QuoteResponse(BaseModel):
    """Priced quote or failure reason; price is absent on failure."""
    success: bool
    price: Optional[float] = None
    tier_description: Optional[str] = None
    calculation_method: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    trace: list[str] = []


# Endpoints

@router.get("/options", response_model=OptionsResponse)
async def get_options():
    """List vendors, routes and delivery areas."""
    return simulator.options()


@router.post("/quote", response_model=QuoteResponse)
async def quote(req: QuoteRequest):
    """Resolve a freight price. Pricing failures are returned, not raised."""
    try:
        result = resolver.resolve(req.vendor_id, req.region_id, req.sub_region_id, req.weight_kg)
    except Exception as e:
        logger.exception("Shipping quote failed")
        raise HTTPException(status_code=500, detail=str(e))

    body = result.to_dict()
    body["trace"] = result.get_trace_text().splitlines()
    return body
