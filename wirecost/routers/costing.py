from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Dict, List
from .. import schemas
from ..config import settings
from ..costing_service import CostingIdConflictError, CostingService
from ..database import get_db
from ..store import HeaderConflictError, RecordStoreError, SqlRecordStore
from .rates import get_active_rates

router = APIRouter(prefix="/costing", tags=["costing"])


def get_costing_service(db: Session = Depends(get_db)) -> CostingService:
    return CostingService(
        SqlRecordStore(db),
        sheet_name=settings.COSTING_SHEET_NAME,
        precision=settings.COSTING_PRECISION_MODE,
        id_prefix=settings.COSTING_ID_PREFIX,
        id_width=settings.COSTING_ID_WIDTH,
        max_retries=settings.COSTING_ID_MAX_RETRIES,
        apply_allowances=settings.COSTING_APPLY_ALLOWANCES,
    )


def _store_unavailable(action: str, e: Exception) -> HTTPException:
    return HTTPException(status_code=503, detail=f"Error {action}: {e}")


def _active_rates(db: Session) -> dict:
    try:
        return get_active_rates(db)
    except SQLAlchemyError as e:
        db.rollback()
        raise _store_unavailable("reading material rates", e)


@router.post("/initialize", response_model=schemas.SheetInitResult)
def initialize_sheet(service: CostingService = Depends(get_costing_service)):
    """Create the Costing sheet. Safe to run multiple times."""
    try:
        created = service.initialize_sheet()
    except HeaderConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RecordStoreError as e:
        raise _store_unavailable("initializing sheet", e)
    return {
        "ok": True,
        "sheet": service.sheet_name,
        "created": created,
        "headers": len(service.store.get_sheet_headers(service.sheet_name)),
    }


@router.get("/", response_model=List[Dict[str, str]])
def list_costing_entries(skip: int = 0, limit: int = 100,
                         service: CostingService = Depends(get_costing_service)):
    try:
        entries = service.get_all_costing_entries()
    except RecordStoreError as e:
        raise _store_unavailable("fetching costing entries", e)
    return entries[skip:skip + limit]


@router.get("/next-id")
def next_costing_id(service: CostingService = Depends(get_costing_service)):
    """Preview the ID the next entry would get. Not reserved."""
    try:
        service.ensure_sheet()
    except RecordStoreError as e:
        raise _store_unavailable("initializing sheet", e)
    return {"costing_id": service.generate_next_costing_id()}


@router.post("/calculate")
def calculate_costing(data: schemas.CostingInput,
                      service: CostingService = Depends(get_costing_service),
                      db: Session = Depends(get_db)):
    """Preview the derived values for a costing form. Nothing is saved."""
    return service.calculate(
        data.to_fields(),
        rates=_active_rates(db),
        apply_allowances=data.apply_allowances,
    )


@router.get("/{costing_id}", response_model=Dict[str, str])
def get_costing_entry(costing_id: str, service: CostingService = Depends(get_costing_service)):
    try:
        entry = service.get_costing_entry(costing_id)
    except RecordStoreError as e:
        raise _store_unavailable("fetching costing entry", e)
    if entry is None:
        raise HTTPException(status_code=404, detail="Costing entry not found")
    return entry


@router.post("/", response_model=schemas.CostingEntryResult)
def add_costing_entry(data: schemas.CostingInput,
                      service: CostingService = Depends(get_costing_service),
                      db: Session = Depends(get_db)):
    try:
        return service.add_costing_entry(
            data.to_fields(),
            rates=_active_rates(db),
            apply_allowances=data.apply_allowances,
        )
    except CostingIdConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RecordStoreError as e:
        raise _store_unavailable("adding costing entry", e)
