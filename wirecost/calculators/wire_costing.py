"""
Wire / cord costing calculator.

Turns a wire specification (strands, gauge, cores, dimensions) and the
active material rates into the cost breakdown stored on the Costing sheet.
All weights are Kgs per 100 metres; bundle cost is on the same 100 m basis.

Pure function of its inputs — no DB, no clock, no settings lookups.
"""

import enum

from .base import BaseCalculator


class PrecisionMode(str, enum.Enum):
    EXACT = "exact"    # unrounded intermediates, round only for display
    LEGACY = "legacy"  # round each field as computed, like historical sheet rows


DEFAULT_COPPER_RATE = 700.0
DEFAULT_PVC_RATE = 100.0
DEFAULT_LABOUR_ON_WIRE = 12.0  # percent of RMC
DEFAULT_TYPE = "Wire"

BUNCH_STRAND_THRESHOLD = 24  # strands above this get the bunching allowance
BUNCH_ALLOWANCE = 3
LAYING_CORE_THRESHOLD = 2

COPPER_FACTOR = 0.703
PVC_DENSITY = 1.67
PVC_WEIGHT_AREA_FACTOR = 0.0785
AREA_FACTOR = 0.785

# Manufacturing allowances applied by the entry form before submission
GAUGE_ALLOWANCE = 0.003
DIMENSION_ALLOWANCE = 0.5
DIMENSION_FIELDS = ("inner_od", "round_od", "flat_b", "flat_w")

WEIGHT_PLACES = 4
CURRENCY_PLACES = 2

# Display precision per derived field
FIELD_PLACES = {
    "copper_weight": WEIGHT_PLACES,
    "pvc_weight": WEIGHT_PLACES,
    "final_copper": WEIGHT_PLACES,
    "final_pvc_round": WEIGHT_PLACES,
    "final_pvc_flat": WEIGHT_PLACES,
    "rmc": CURRENCY_PLACES,
    "bundle_cost": CURRENCY_PLACES,
    "bundle_weight": WEIGHT_PLACES,
    "cost_of_wire_per_mtr": WEIGHT_PLACES,
    "wire_cost": CURRENCY_PLACES,
    "cord_cost": CURRENCY_PLACES,
}

NUMERIC_INPUTS = (
    "cu_strands", "gauge", "inner_od", "no_of_cores", "round_od", "flat_b",
    "flat_w", "length_req", "plug_cost", "terminal_acc_cost",
)
TEXT_INPUTS = ("specifications", "enquiry_by", "company", "remarks")


class WireCostingCalculator(BaseCalculator):
    """Costing sheet formulas for copper-conductor PVC wire and cords."""

    def __init__(self, precision: PrecisionMode = PrecisionMode.EXACT):
        self.precision = PrecisionMode(precision)

    def parse_inputs(self, fields: dict, copper_rate=None, pvc_rate=None) -> dict:
        """
        Parse raw fields into numbers and text.

        Rate arguments win over rates in the fields; anything absent or
        unparseable falls back to its default.
        """
        parsed = {name: self.parse_number(fields.get(name)) for name in NUMERIC_INPUTS}
        parsed["labour_on_wire"] = self.parse_number(
            fields.get("labour_on_wire"), DEFAULT_LABOUR_ON_WIRE,
        )
        parsed["copper_rate"] = self.parse_number(
            copper_rate if copper_rate is not None else fields.get("copper_rate"),
            DEFAULT_COPPER_RATE,
        )
        parsed["pvc_rate"] = self.parse_number(
            pvc_rate if pvc_rate is not None else fields.get("pvc_rate"),
            DEFAULT_PVC_RATE,
        )
        for name in TEXT_INPUTS:
            parsed[name] = self.parse_text(fields.get(name))
        wire_type = fields.get("type")
        if isinstance(wire_type, enum.Enum):
            wire_type = wire_type.value
        parsed["type"] = self.parse_text(wire_type) or DEFAULT_TYPE
        return parsed

    def calculate(self, fields: dict, copper_rate=None, pvc_rate=None) -> dict:
        """
        Compute every derived costing field.

        Returns the parsed inputs merged with the derived values. Derived
        values are floats at full precision in EXACT mode; in LEGACY mode
        each one is rounded to its display precision before it is reused.
        """
        values = self.parse_inputs(fields, copper_rate, pvc_rate)

        strands = values["cu_strands"]
        gauge = values["gauge"]
        cores = values["no_of_cores"]
        inner_od = values["inner_od"]
        round_od = values["round_od"]
        flat_b = values["flat_b"]
        flat_w = values["flat_w"]

        bunch = BUNCH_ALLOWANCE if strands > BUNCH_STRAND_THRESHOLD else 0
        laying = 1 if cores > LAYING_CORE_THRESHOLD else 0

        copper_weight = self._keep(
            "copper_weight", COPPER_FACTOR * gauge * gauge * strands + bunch * cores,
        )
        # Can go negative when inner_od is small for the conductor — caller's input problem
        pvc_weight = self._keep(
            "pvc_weight",
            PVC_DENSITY * PVC_WEIGHT_AREA_FACTOR * (inner_od * inner_od - gauge * gauge * strands),
        )
        final_copper = self._keep("final_copper", copper_weight * cores + bunch * cores)

        if round_od == 0:
            final_pvc_round = 0.0
        else:
            final_pvc_round = self._keep(
                "final_pvc_round",
                PVC_DENSITY * (AREA_FACTOR * round_od * round_od
                               - AREA_FACTOR * gauge * gauge * strands * cores) / 10,
            )

        if flat_b == 0 or flat_w == 0:
            final_pvc_flat = 0.0
        else:
            final_pvc_flat = self._keep(
                "final_pvc_flat",
                PVC_DENSITY * ((flat_b * flat_w)
                               - (AREA_FACTOR * gauge * gauge * strands * cores)) / 10,
            )

        rmc = self._keep(
            "rmc",
            final_copper * values["copper_rate"]
            + final_pvc_round * values["pvc_rate"]
            + final_pvc_flat * values["pvc_rate"],
        )
        bundle_cost = self._keep("bundle_cost", rmc + (values["labour_on_wire"] / 100) * rmc)
        bundle_weight = self._keep("bundle_weight", final_copper + final_pvc_round + final_pvc_flat)
        cost_of_wire_per_mtr = self._keep("cost_of_wire_per_mtr", bundle_cost / 100)
        wire_cost = self._keep("wire_cost", cost_of_wire_per_mtr * values["length_req"])
        cord_cost = self._keep(
            "cord_cost", wire_cost + values["plug_cost"] + values["terminal_acc_cost"],
        )

        values.update({
            "bunch": bunch,
            "laying": laying,
            "copper_weight": copper_weight,
            "pvc_weight": pvc_weight,
            "final_copper": final_copper,
            "final_pvc_round": final_pvc_round,
            "final_pvc_flat": final_pvc_flat,
            "rmc": rmc,
            "bundle_cost": bundle_cost,
            "bundle_weight": bundle_weight,
            "cost_of_wire_per_mtr": cost_of_wire_per_mtr,
            "wire_cost": wire_cost,
            "cord_cost": cord_cost,
        })
        return values

    def format_result(self, result: dict) -> dict:
        """Display strings for a calculate() result — fixed decimals for derived fields."""
        formatted = {}
        for name, value in result.items():
            if name in FIELD_PLACES:
                formatted[name] = self.format_fixed(value, FIELD_PLACES[name])
            elif isinstance(value, str):
                formatted[name] = value
            else:
                formatted[name] = self.format_plain(value)
        return formatted

    def apply_allowances(self, fields: dict) -> dict:
        """
        Returns a copy of fields with the entry form's manufacturing allowances:
        gauge + 0.003 (3 dp) and each OD/flat dimension + 0.5 (2 dp).
        Only positive values are adjusted.
        """
        adjusted = dict(fields)
        gauge = self.parse_number(fields.get("gauge"))
        if gauge > 0:
            adjusted["gauge"] = self.round_half_up(gauge + GAUGE_ALLOWANCE, 3)
        for name in DIMENSION_FIELDS:
            value = self.parse_number(fields.get(name))
            if value > 0:
                adjusted[name] = self.round_half_up(value + DIMENSION_ALLOWANCE, 2)
        return adjusted

    def _keep(self, name: str, value: float) -> float:
        if self.precision is PrecisionMode.LEGACY:
            return self.round_half_up(value, FIELD_PLACES[name])
        return value
