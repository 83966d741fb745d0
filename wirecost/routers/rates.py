from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
import logging
from .. import models, schemas
from ..config import settings
from ..database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rates", tags=["rates"])

# Default material rates — update via API as market prices change.
# Existing costing entries keep the rates they were priced with.
DEFAULT_RATES = {
    models.RateType.COPPER: {
        "value": settings.COPPER_RATE_DEFAULT, "unit": "per_kg",
        "description": "Copper conductor rate per kg",
    },
    models.RateType.PVC: {
        "value": settings.PVC_RATE_DEFAULT, "unit": "per_kg",
        "description": "PVC insulation/sheath compound rate per kg",
    },
    models.RateType.LABOUR_ON_WIRE: {
        "value": settings.LABOUR_ON_WIRE_DEFAULT, "unit": "percent",
        "description": "Labour as a percentage of raw material cost",
    },
}

# Rate type -> costing field it fills when a submission leaves it blank
RATE_FIELD_NAMES = {
    models.RateType.COPPER: "copper_rate",
    models.RateType.PVC: "pvc_rate",
    models.RateType.LABOUR_ON_WIRE: "labour_on_wire",
}


def seed_default_rates(db: Session) -> int:
    """Insert any missing default rates. Safe to run multiple times — skips existing."""
    seeded = 0
    for rate_type, data in DEFAULT_RATES.items():
        existing = db.query(models.MaterialRate).filter(
            models.MaterialRate.rate_type == rate_type
        ).first()
        if not existing:
            db.add(models.MaterialRate(rate_type=rate_type, **data))
            seeded += 1
    db.commit()
    if seeded:
        logger.info("Seeded %d default material rates", seeded)
    return seeded


def get_active_rates(db: Session) -> dict:
    """Stored rates keyed by costing field name, e.g. {"copper_rate": 700.0, ...}."""
    rates = {}
    for rate in db.query(models.MaterialRate).all():
        field = RATE_FIELD_NAMES.get(rate.rate_type)
        if field:
            rates[field] = rate.value
    return rates


@router.get("/seed")
def seed_rates(db: Session = Depends(get_db)):
    """Seed default material rates."""
    seeded = seed_default_rates(db)
    return {"ok": True, "seeded": seeded}


@router.get("/", response_model=List[schemas.MaterialRate])
def list_rates(db: Session = Depends(get_db)):
    return db.query(models.MaterialRate).all()


@router.patch("/{rate_type}", response_model=schemas.MaterialRate)
def update_rate(rate_type: models.RateType, update: schemas.MaterialRateUpdate, db: Session = Depends(get_db)):
    rate = db.query(models.MaterialRate).filter(models.MaterialRate.rate_type == rate_type).first()
    if not rate:
        raise HTTPException(status_code=404, detail="Rate not found — run /rates/seed first")
    for field, value in update.model_dump(exclude_unset=True).items():
        setattr(rate, field, value)
    db.commit()
    db.refresh(rate)
    logger.info("Rate %s updated to %s", rate_type.value, rate.value)
    return rate
