from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Enum, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base
import enum


# --- Enums ---

class WireType(str, enum.Enum):
    WIRE = "Wire"
    PLUG = "Plug"


class RateType(str, enum.Enum):
    COPPER = "copper"
    PVC = "pvc"
    LABOUR_ON_WIRE = "labour_on_wire"


# --- Sheet store tables ---
# DECISION: rows are stored as an ordered list of strings against the sheet's
# header list, mirroring the spreadsheet the costing data originally lived in.
# Column labels stay the de facto schema — no per-column SQL columns.

class Sheet(Base):
    """A named, append-only table with a fixed ordered header row."""
    __tablename__ = "sheets"

    name = Column(String, primary_key=True)
    headers_json = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    rows = relationship("SheetRow", back_populates="sheet", order_by="SheetRow.id")


class SheetRow(Base):
    """One appended row. row_key is the value of the sheet's first column."""
    __tablename__ = "sheet_rows"
    __table_args__ = (
        UniqueConstraint("sheet_name", "row_key", name="uq_sheet_rows_sheet_key"),
    )

    id = Column(Integer, primary_key=True, index=True)  # append order
    sheet_name = Column(String, ForeignKey("sheets.name"), nullable=False, index=True)
    row_key = Column(String, nullable=True)
    values_json = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    sheet = relationship("Sheet", back_populates="rows")


# --- Settings tables ---

class MaterialRate(Base):
    """Active material rates — the defaults new costing entries are priced with."""
    __tablename__ = "material_rates"

    id = Column(Integer, primary_key=True, index=True)
    rate_type = Column(Enum(RateType), unique=True, nullable=False)
    value = Column(Float, nullable=False)
    unit = Column(String, default="per_kg")
    description = Column(String)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
