"""
Calculators API - roll estimates, pallet packing and credit notes.
"""
from dataclasses import asdict
from typing import Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..engine.formulas import (
    RollSpec,
    estimate_roll,
    pallet_arrangement,
    credit_note_for_rolls,
    DEFAULT_INNER_DIAMETER_CM,
)
from .state import settings

router = APIRouter(tags=["calculators"])


class RollRequest(BaseModel):
    """Request model for a roll estimate."""
    thickness_um: float = Field(ge=0)
    width_mm: float = Field(ge=0)
    length_m: float = Field(ge=0)
    density: float = Field(gt=0)
    quantity: int = Field(default=1, ge=0)
    inner_diameter_cm: float = Field(default=DEFAULT_INNER_DIAMETER_CM, ge=0)


class PalletRequest(BaseModel):
    """Request model for pallet packing."""
    diameter_cm: float
    quantity: int = Field(ge=0)


class CreditNoteRequest(BaseModel):
    """Request model for a credit note between two film widths."""
    unit: Literal["KG", "M2"] = "KG"
    quantity: float = Field(ge=0)
    length_m: float = Field(ge=0)
    thickness_um: float = Field(ge=0)
    width_a_mm: float = Field(ge=0)
    width_b_mm: float = Field(ge=0)
    density: Optional[float] = None


@router.post("/rolls/estimate")
async def roll_estimate(req: RollRequest):
    """Weight and rolled size of a roll order, plus its pallet packing."""
    estimate = estimate_roll(RollSpec(**req.model_dump()))
    pallets = pallet_arrangement(estimate.outer_diameter_cm, req.quantity, settings.pallet_size_cm)
    return {"roll": asdict(estimate), "pallets": asdict(pallets)}


@router.post("/pallets/arrangement")
async def pallets(req: PalletRequest):
    """How many rolls fit per pallet and how many pallets an order needs."""
    return asdict(pallet_arrangement(req.diameter_cm, req.quantity, settings.pallet_size_cm))


@router.post("/credit-notes")
async def credit_notes(req: CreditNoteRequest):
    """Credit note amount and tax for replacing width A with width B."""
    try:
        note = credit_note_for_rolls(
            unit=req.unit,
            length_m=req.length_m,
            thickness_um=req.thickness_um,
            width_a_mm=req.width_a_mm,
            width_b_mm=req.width_b_mm,
            quantity=req.quantity,
            density=req.density if req.density else settings.credit_note_default_density,
            tax_rate=settings.tax_rate,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return asdict(note)
