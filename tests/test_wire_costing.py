"""
Tests for the wire costing calculator (calculators/wire_costing.py).

Tests:
1-3.   Worked example — 3 core 30/0.2, 100 m
4-7.   Bunch / laying classification thresholds
8-10.  Round and flat PVC terms
11-13. Identities — bundle weight, cord cost, idempotence
14-18. Malformed input and defaults
19-21. Precision modes (exact vs legacy intermediate rounding)
22-24. Display formatting and allowances
"""

import pytest

from wirecost.calculators.wire_costing import (
    PrecisionMode,
    WireCostingCalculator,
    DEFAULT_COPPER_RATE,
    DEFAULT_PVC_RATE,
    DEFAULT_LABOUR_ON_WIRE,
)


def _calc(fields, **kwargs):
    return WireCostingCalculator().calculate(fields, **kwargs)


# ============================================================
# Worked example
# ============================================================

def test_example_weights(sample_fields):
    result = _calc(sample_fields)
    assert result["bunch"] == 3
    assert result["laying"] == 1
    assert result["copper_weight"] == pytest.approx(9.8436)
    assert result["final_copper"] == pytest.approx(38.5308)
    assert result["pvc_weight"] == pytest.approx(1.67 * 0.0785 * (2.25 - 1.2))
    assert result["final_pvc_round"] == 0
    assert result["final_pvc_flat"] == 0


def test_example_costs(sample_fields):
    result = _calc(sample_fields)
    assert result["rmc"] == pytest.approx(26971.56)
    assert result["bundle_cost"] == pytest.approx(30208.1472)
    assert result["cost_of_wire_per_mtr"] == pytest.approx(302.081472)
    assert result["wire_cost"] == pytest.approx(30208.1472)
    assert result["cord_cost"] == pytest.approx(30208.1472)


def test_example_display_values(sample_fields):
    calc = WireCostingCalculator()
    display = calc.format_result(calc.calculate(sample_fields))
    assert display["copper_weight"] == "9.8436"
    assert display["final_copper"] == "38.5308"
    assert display["pvc_weight"] == "0.1376"
    assert display["rmc"] == "26971.56"
    assert display["bundle_cost"] == "30208.15"
    assert display["bundle_weight"] == "38.5308"
    assert display["cost_of_wire_per_mtr"] == "302.0815"
    assert display["wire_cost"] == "30208.15"
    assert display["cord_cost"] == "30208.15"
    assert display["bunch"] == "3"
    assert display["laying"] == "1"


# ============================================================
# Classification thresholds
# ============================================================

@pytest.mark.parametrize("strands,expected", [(0, 0), (1, 0), (24, 0), (24.5, 3), (25, 3), (200, 3)])
def test_bunch_steps_above_24_strands(sample_fields, strands, expected):
    result = _calc({**sample_fields, "cu_strands": strands})
    assert result["bunch"] == expected


@pytest.mark.parametrize("cores,expected", [(0, 0), (1, 0), (2, 0), (2.1, 1), (3, 1), (7, 1)])
def test_laying_steps_above_2_cores(sample_fields, cores, expected):
    result = _calc({**sample_fields, "no_of_cores": cores})
    assert result["laying"] == expected


def test_bunch_feeds_copper_weight(sample_fields):
    """24 strands: no bunching allowance; 25: +3 per core on both copper terms."""
    at_24 = _calc({**sample_fields, "cu_strands": 24})
    assert at_24["copper_weight"] == pytest.approx(0.703 * 0.04 * 24)
    at_25 = _calc({**sample_fields, "cu_strands": 25})
    assert at_25["copper_weight"] == pytest.approx(0.703 * 0.04 * 25 + 3 * 3)
    assert at_25["final_copper"] == pytest.approx(at_25["copper_weight"] * 3 + 9)


def test_laying_not_used_in_costs(sample_fields):
    """Laying is informational — a caller-supplied laying/bunch is ignored."""
    plain = _calc(sample_fields)
    with_form_values = _calc({**sample_fields, "laying": 5, "bunch": 99})
    assert with_form_values == plain


# ============================================================
# Round / flat PVC
# ============================================================

def test_round_pvc_term(sample_fields):
    result = _calc({**sample_fields, "round_od": 5})
    expected = 1.67 * (0.785 * 25 - 0.785 * 0.04 * 30 * 3) / 10
    assert result["final_pvc_round"] == pytest.approx(expected)
    assert result["rmc"] == pytest.approx(38.5308 * 700 + expected * 100)


def test_flat_pvc_term_needs_both_dimensions(sample_fields):
    only_b = _calc({**sample_fields, "flat_b": 4, "flat_w": 0})
    only_w = _calc({**sample_fields, "flat_b": 0, "flat_w": 8})
    both = _calc({**sample_fields, "flat_b": 4, "flat_w": 8})
    assert only_b["final_pvc_flat"] == 0
    assert only_w["final_pvc_flat"] == 0
    assert both["final_pvc_flat"] == pytest.approx(1.67 * (32 - 0.785 * 0.04 * 30 * 3) / 10)


@pytest.mark.parametrize("overrides", [
    {"cu_strands": 0}, {"gauge": 5}, {"no_of_cores": 40}, {"flat_b": 9, "flat_w": 9},
])
def test_round_pvc_zero_without_round_od(sample_fields, overrides):
    result = _calc({**sample_fields, **overrides, "round_od": 0})
    assert result["final_pvc_round"] == 0


def test_pvc_weight_may_go_negative(sample_fields):
    """Small inner OD for the conductor — reported as-is, no clamping."""
    result = _calc({**sample_fields, "inner_od": 0.5})
    assert result["pvc_weight"] < 0
    assert result["pvc_weight"] == pytest.approx(1.67 * 0.0785 * (0.25 - 1.2))


# ============================================================
# Identities
# ============================================================

@pytest.mark.parametrize("overrides", [
    {}, {"round_od": 5}, {"flat_b": 4, "flat_w": 8}, {"round_od": 3.3, "flat_b": 2.5, "flat_w": 6.1},
])
def test_bundle_weight_identity(sample_fields, overrides):
    result = _calc({**sample_fields, **overrides})
    assert result["bundle_weight"] == (
        result["final_copper"] + result["final_pvc_round"] + result["final_pvc_flat"]
    )


@pytest.mark.parametrize("plug,terminal", [(0, 0), (45, 0), (12.5, 7.25), ("30", "abc")])
def test_cord_cost_identity(sample_fields, plug, terminal):
    result = _calc({**sample_fields, "type": "Plug", "plug_cost": plug, "terminal_acc_cost": terminal})
    assert result["cord_cost"] == result["wire_cost"] + result["plug_cost"] + result["terminal_acc_cost"]


def test_idempotent(sample_fields):
    calc = WireCostingCalculator()
    assert calc.calculate(sample_fields) == calc.calculate(sample_fields)
    assert calc.calculate(dict(sample_fields)) == _calc(sample_fields)


# ============================================================
# Malformed input and defaults
# ============================================================

def test_non_numeric_strands_treated_as_zero(sample_fields):
    garbage = _calc({**sample_fields, "cu_strands": "abc"})
    zero = _calc({**sample_fields, "cu_strands": 0})
    assert garbage == zero
    assert garbage["bunch"] == 0
    assert garbage["copper_weight"] == pytest.approx(0)


def test_text_numbers_are_parsed(sample_fields):
    """Form text: leading number wins, like the entry form."""
    as_text = _calc({**sample_fields, "cu_strands": "30 strands", "gauge": " 0.2", "no_of_cores": "3"})
    assert as_text == _calc(sample_fields)
    assert as_text["cu_strands"] == 30.0


def test_empty_input_never_raises():
    result = _calc({})
    assert result["cord_cost"] == 0
    assert result["copper_rate"] == DEFAULT_COPPER_RATE
    assert result["pvc_rate"] == DEFAULT_PVC_RATE
    assert result["labour_on_wire"] == DEFAULT_LABOUR_ON_WIRE
    assert result["type"] == "Wire"
    assert result["specifications"] == ""
    assert result["company"] == ""


@pytest.mark.parametrize("huge", [10**400, -(10**400), "1e400", float("inf"), float("nan")])
def test_out_of_range_numbers_treated_as_absent(sample_fields, huge):
    result = _calc({**sample_fields, "length_req": huge})
    assert result["length_req"] == 0
    assert result["wire_cost"] == 0
    assert result["cord_cost"] == 0


@pytest.mark.parametrize("labour", [None, "", "n/a"])
def test_labour_defaults_to_12(sample_fields, labour):
    result = _calc({**sample_fields, "labour_on_wire": labour})
    assert result["labour_on_wire"] == 12
    assert result["bundle_cost"] == pytest.approx(result["rmc"] * 1.12)


def test_explicit_zero_labour_is_kept(sample_fields):
    result = _calc({**sample_fields, "labour_on_wire": 0})
    assert result["bundle_cost"] == result["rmc"]


def test_rate_arguments_override_fields(sample_fields):
    result = _calc({**sample_fields, "copper_rate": 650}, copper_rate=800, pvc_rate="120")
    assert result["copper_rate"] == 800
    assert result["pvc_rate"] == 120
    assert result["rmc"] == pytest.approx(38.5308 * 800)


def test_invalid_rates_fall_back_to_defaults(sample_fields):
    result = _calc({**sample_fields, "copper_rate": "call supplier", "pvc_rate": None})
    assert result["copper_rate"] == 700
    assert result["pvc_rate"] == 100


# ============================================================
# Precision modes
# ============================================================

def _precision_fields():
    # 14/0.203, 2 core — copper weight 0.405578978 rounds to 0.4056 in legacy mode
    return {"cu_strands": 14, "gauge": 0.203, "no_of_cores": 2, "length_req": 37}


def test_exact_mode_keeps_full_precision():
    calc = WireCostingCalculator(PrecisionMode.EXACT)
    result = calc.calculate(_precision_fields())
    assert result["final_copper"] == pytest.approx(0.811157956)
    assert calc.format_result(result)["rmc"] == "567.81"


def test_legacy_mode_rounds_intermediates():
    """Historical rows: rounded 4-dp copper reused in RMC -> 567.84, not 567.81."""
    calc = WireCostingCalculator(PrecisionMode.LEGACY)
    result = calc.calculate(_precision_fields())
    assert result["copper_weight"] == 0.4056
    assert result["final_copper"] == 0.8112
    assert result["rmc"] == 567.84
    assert calc.format_result(result)["rmc"] == "567.84"


def test_precision_mode_accepts_strings():
    assert WireCostingCalculator("legacy").precision is PrecisionMode.LEGACY
    with pytest.raises(ValueError):
        WireCostingCalculator("approximate")


# ============================================================
# Formatting and allowances
# ============================================================

def test_format_rounds_half_away_from_zero():
    calc = WireCostingCalculator()
    assert calc.format_fixed(2.675, 2) == "2.68"
    assert calc.format_fixed(-1.23455, 4) == "-1.2346"
    assert calc.format_fixed(-0.00004, 4) == "0.0000"


def test_format_passes_inputs_through(sample_fields):
    calc = WireCostingCalculator()
    display = calc.format_result(calc.calculate(sample_fields))
    assert display["cu_strands"] == "30"
    assert display["gauge"] == "0.2"
    assert display["copper_rate"] == "700"
    assert display["labour_on_wire"] == "12"
    assert display["type"] == "Wire"
    assert display["company"] == "Acme Cables"


@pytest.mark.parametrize("value,expected", [
    (0.00001, "0.00001"), ("0.00001", "0.00001"), (-0.0005, "-0.0005"),
    (1.5e-7, "0.00000015"), (1e16, "10000000000000000"), (2.5, "2.5"),
])
def test_pass_through_numbers_never_use_exponent(value, expected):
    calc = WireCostingCalculator()
    display = calc.format_result(calc.calculate({"gauge": value}))
    assert display["gauge"] == expected


def test_allowances_match_entry_form(sample_fields):
    calc = WireCostingCalculator()
    fields = {**sample_fields, "flat_b": "abc", "flat_w": 6}
    adjusted = calc.apply_allowances(fields)
    assert adjusted["gauge"] == 0.203
    assert adjusted["inner_od"] == 2.0
    assert adjusted["round_od"] == 0       # zero stays zero
    assert adjusted["flat_b"] == "abc"     # unparseable left alone
    assert adjusted["flat_w"] == 6.5
    assert fields["gauge"] == 0.2          # input not mutated
