"""
Costing Service — the "add costing entry" flow.

Input: raw costing form fields (snake_case keys, values may be text)
Output: a Costing sheet row keyed by the verbatim column labels

Steps: make sure the sheet exists → optional manufacturing allowances →
resolve rates → calculate → assign the next CO-NNNN → append.
The calculator stays pure; IDs, dates, and persistence live here.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .calculators.wire_costing import PrecisionMode, WireCostingCalculator
from .id_generator import DEFAULT_PREFIX, DEFAULT_WIDTH, ID_COLUMN, generate_next_costing_id
from .store import DuplicateRowError, RecordStore

logger = logging.getLogger(__name__)

DEFAULT_SHEET_NAME = "Costing"

# Sheet schema — labels must stay verbatim to line up with existing stored rows
COSTING_HEADERS = [
    "Costing ID",
    "Date",
    "Specifications",
    "Cu Strands",
    "Gauge",
    "Inner OD",
    "Bunch",
    "Copper Weight (Kgs/100 mtr)",
    "PVC Weight (Kgs/100 mtr)",
    "No. Of Cores",
    "Round OD",
    "Flat B",
    "Flat W",
    "Laying",
    "Final Copper (Kgs/100 mtr)",
    "Final PVC Round (Kgs/100 mtr)",
    "Final PVC Flat (Kgs/100 mtr)",
    "Copper Rate",
    "PVC Rate",
    "RMC",
    "Labour on Wire",
    "Bundle Cost",
    "Bundle Weight",
    "Cost Of Wire/Mtr",
    "Length Required",
    "Wire Cost",
    "Type (Wire/Plug)",
    "Plug Cost",
    "Terminal/Acc. Cost",
    "Cord Cost",
    "Enquiry By",
    "Company",
    "Remarks",
    "Unique",
]

# Column label -> key in the calculator result
COLUMN_FIELDS = {
    "Specifications": "specifications",
    "Cu Strands": "cu_strands",
    "Gauge": "gauge",
    "Inner OD": "inner_od",
    "Bunch": "bunch",
    "Copper Weight (Kgs/100 mtr)": "copper_weight",
    "PVC Weight (Kgs/100 mtr)": "pvc_weight",
    "No. Of Cores": "no_of_cores",
    "Round OD": "round_od",
    "Flat B": "flat_b",
    "Flat W": "flat_w",
    "Laying": "laying",
    "Final Copper (Kgs/100 mtr)": "final_copper",
    "Final PVC Round (Kgs/100 mtr)": "final_pvc_round",
    "Final PVC Flat (Kgs/100 mtr)": "final_pvc_flat",
    "Copper Rate": "copper_rate",
    "PVC Rate": "pvc_rate",
    "RMC": "rmc",
    "Labour on Wire": "labour_on_wire",
    "Bundle Cost": "bundle_cost",
    "Bundle Weight": "bundle_weight",
    "Cost Of Wire/Mtr": "cost_of_wire_per_mtr",
    "Length Required": "length_req",
    "Wire Cost": "wire_cost",
    "Type (Wire/Plug)": "type",
    "Plug Cost": "plug_cost",
    "Terminal/Acc. Cost": "terminal_acc_cost",
    "Cord Cost": "cord_cost",
    "Enquiry By": "enquiry_by",
    "Company": "company",
    "Remarks": "remarks",
}

RATE_FIELDS = ("copper_rate", "pvc_rate", "labour_on_wire")


class CostingServiceError(Exception):
    pass


class CostingIdConflictError(CostingServiceError):
    """Every attempt to claim a fresh Costing ID collided with an existing row."""


def iso_timestamp(now: Optional[datetime] = None) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix: 2025-01-31T09:15:02.123Z"""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class CostingService:
    """Costing sheet operations over any RecordStore."""

    def __init__(self, store: RecordStore, sheet_name: str = DEFAULT_SHEET_NAME,
                 precision: PrecisionMode = PrecisionMode.EXACT,
                 id_prefix: str = DEFAULT_PREFIX, id_width: int = DEFAULT_WIDTH,
                 max_retries: int = 3, apply_allowances: bool = False):
        self.store = store
        self.sheet_name = sheet_name
        self.calculator = WireCostingCalculator(precision)
        self.id_prefix = id_prefix
        self.id_width = id_width
        self.max_retries = max(1, max_retries)
        self.apply_allowances = apply_allowances

    # --- sheet ---

    def initialize_sheet(self) -> bool:
        """Create the Costing sheet with its headers. False if it was already set up."""
        created = self.store.initialize_sheet(self.sheet_name, COSTING_HEADERS)
        if created:
            logger.info("Costing sheet %s initialized", self.sheet_name)
        return created

    def ensure_sheet(self) -> None:
        """First use defines the schema."""
        if not self.store.sheet_exists(self.sheet_name):
            self.initialize_sheet()

    def get_all_costing_entries(self) -> List[Dict[str, str]]:
        self.ensure_sheet()
        return self.store.read_all_rows(self.sheet_name)

    def get_costing_entry(self, costing_id: str) -> Optional[Dict[str, str]]:
        for row in self.get_all_costing_entries():
            if row.get(ID_COLUMN) == costing_id:
                return row
        return None

    def generate_next_costing_id(self) -> str:
        return generate_next_costing_id(self.store, self.sheet_name, self.id_prefix, self.id_width)

    # --- calculation ---

    def prepare_fields(self, data: dict, rates: Optional[dict] = None,
                       apply_allowances: Optional[bool] = None) -> dict:
        """
        Fill rates the caller left blank from the active rates, then apply
        allowances if asked. Caller-supplied rates always win.
        """
        fields = dict(data)
        for name in RATE_FIELDS:
            if fields.get(name) in (None, "") and rates and rates.get(name) is not None:
                fields[name] = rates[name]
        if apply_allowances is None:
            apply_allowances = self.apply_allowances
        if apply_allowances:
            fields = self.calculator.apply_allowances(fields)
        return fields

    def calculate(self, data: dict, rates: Optional[dict] = None,
                  apply_allowances: Optional[bool] = None,
                  precision: Optional[PrecisionMode] = None) -> Dict[str, str]:
        """
        Preview — the display values an entry would get. Nothing is stored.
        precision overrides the service's mode for this call only.
        """
        calculator = self.calculator if precision is None else WireCostingCalculator(precision)
        fields = self.prepare_fields(data, rates, apply_allowances)
        return calculator.format_result(calculator.calculate(fields))

    def build_row(self, data: dict, costing_id: str = "", rates: Optional[dict] = None,
                  apply_allowances: Optional[bool] = None,
                  now: Optional[datetime] = None) -> Dict[str, str]:
        """Full sheet row keyed by column label."""
        display = self.calculate(data, rates, apply_allowances)
        row = {"Costing ID": costing_id, "Date": iso_timestamp(now)}
        for header, field in COLUMN_FIELDS.items():
            row[header] = display[field]
        # Not a uniqueness key — kept only because the stored sheet has the column
        row["Unique"] = display["company"]
        return row

    # --- persistence ---

    def add_costing_entry(self, data: dict, rates: Optional[dict] = None,
                          apply_allowances: Optional[bool] = None) -> dict:
        """
        Calculate and append one costing entry.

        The store rejects a duplicate Costing ID, so two submissions racing for
        the same next ID can't both land; the loser regenerates and retries.
        """
        self.ensure_sheet()
        row = self.build_row(data, rates=rates, apply_allowances=apply_allowances)

        for attempt in range(1, self.max_retries + 1):
            costing_id = self.generate_next_costing_id()
            row["Costing ID"] = costing_id
            try:
                stored = self.store.append_row(self.sheet_name, row)
            except DuplicateRowError:
                logger.warning(
                    "Costing ID %s already taken (attempt %d/%d) — regenerating",
                    costing_id, attempt, self.max_retries,
                )
                continue

            logger.info("Costing entry %s added for %s", costing_id, row["Company"] or "-")
            return {
                "success": True,
                "message": f"Costing entry added successfully with ID: {costing_id}",
                "costing_id": costing_id,
                "record": stored,
            }

        raise CostingIdConflictError(
            f"Could not claim a unique Costing ID after {self.max_retries} attempts"
        )
