"""Tests for colour schemes and legend labels."""

import pytest

from choropleth.colors import (
    DEFAULT_COLOR_RAMP,
    build_color_scheme,
    case_expression,
    color_for,
    validate_color_ramp,
)
from choropleth.errors import SetupConfigurationError
from choropleth.legend import build_labels, format_break, legend_entries


class TestColorFor:
    def test_lookup(self):
        assert color_for(0, DEFAULT_COLOR_RAMP) == "#f1eef6"
        assert color_for(4, DEFAULT_COLOR_RAMP) == "#045a8d"

    @pytest.mark.parametrize("index", [-1, 5, 99])
    def test_out_of_range(self, index):
        with pytest.raises(IndexError):
            color_for(index, DEFAULT_COLOR_RAMP)


class TestColorScheme:
    def test_every_bin_has_a_colour(self):
        for count in range(0, 7):
            breaks = [float(10 * (i + 1)) for i in range(count)]
            ramp = [f"#00000{i}" for i in range(count + 1)]
            scheme = build_color_scheme(breaks, ramp)
            assert [color_for(i, scheme.colors) for i in range(count + 1)] == ramp

    def test_ramp_length_mismatch(self):
        with pytest.raises(SetupConfigurationError, match="4 colours but the breaks define 5 bins"):
            build_color_scheme([10, 20, 30, 40], DEFAULT_COLOR_RAMP[:4])

    def test_blank_colour(self):
        with pytest.raises(SetupConfigurationError, match="empty"):
            validate_color_ramp(["#fff", " "], 2)

    def test_bad_breaks(self):
        with pytest.raises(SetupConfigurationError):
            build_color_scheme([30, 20], ["#a", "#b", "#c"])

    def test_color_for_value(self):
        scheme = build_color_scheme([10, 20, 30, 40], DEFAULT_COLOR_RAMP)
        assert scheme.color_for_value(20) == DEFAULT_COLOR_RAMP[1]
        assert scheme.color_for_value(20.01) == DEFAULT_COLOR_RAMP[2]
        assert scheme.color_for_value(None) == DEFAULT_COLOR_RAMP[0]

    def test_single_bin(self):
        scheme = build_color_scheme([], ["#123456"])
        assert scheme.bin_count == 1
        assert scheme.color_for_value(73.0) == "#123456"


def _evaluate(expression, properties):
    """Evaluate the subset of Mapbox GL expressions the paint expression uses."""
    if not isinstance(expression, list):
        return expression
    op, args = expression[0], expression[1:]
    if op == "get":
        return properties.get(args[0])
    if op == "to-number":
        for arg in args:
            value = _evaluate(arg, properties)
            if value is None:
                return 0
            try:
                return float(value)
            except (TypeError, ValueError):
                continue
        raise ValueError("no convertible argument")
    if op == "*":
        return _evaluate(args[0], properties) * _evaluate(args[1], properties)
    if op == "<=":
        return _evaluate(args[0], properties) <= _evaluate(args[1], properties)
    if op == "case":
        for condition, output in zip(args[:-1:2], args[1:-1:2]):
            if _evaluate(condition, properties):
                return output
        return args[-1]
    raise ValueError(f"unsupported operator {op}")


class TestCaseExpression:
    def test_fraction_dataset_is_scaled(self):
        scheme = build_color_scheme([10, 20], ["#a", "#b", "#c"])
        value = ["*", ["to-number", ["get", "pct_foreign_born"], 0], 100]
        assert case_expression(scheme, "pct_foreign_born", True) == [
            "case",
            ["<=", value, 10.0],
            "#a",
            ["<=", value, 20.0],
            "#b",
            "#c",
        ]

    def test_percentage_dataset(self):
        scheme = build_color_scheme([10], ["#a", "#b"])
        assert case_expression(scheme, "share", False) == [
            "case",
            ["<=", ["to-number", ["get", "share"], 0], 10.0],
            "#a",
            "#b",
        ]

    def test_single_bin_is_flat_colour(self):
        scheme = build_color_scheme([], ["#123456"])
        assert case_expression(scheme, "share", False) == "#123456"

    @pytest.mark.parametrize("raw", [None, 0, 9.99, 10, 10.01, 20, 25, 40, 40.5, 99, "30"])
    def test_agrees_with_bin_colour(self, raw):
        scheme = build_color_scheme([10, 20, 30, 40], DEFAULT_COLOR_RAMP)
        expression = case_expression(scheme, "share", False)

        expected = scheme.color_for_value(None if raw is None else float(raw))
        assert _evaluate(expression, {"share": raw}) == expected

    @pytest.mark.parametrize("raw", [0.1, 0.2, 0.25, 0.4])
    def test_fraction_boundaries_agree_with_bin_colour(self, raw):
        scheme = build_color_scheme([10, 20, 30, 40], DEFAULT_COLOR_RAMP)
        expression = case_expression(scheme, "share", True)

        assert _evaluate(expression, {"share": raw}) == scheme.color_for_value(raw * 100)


class TestFormatBreak:
    def test_small_values_keep_one_decimal(self):
        assert format_break(5) == "5.0%"
        assert format_break(9.94) == "9.9%"
        assert format_break(-3.21) == "-3.2%"

    def test_large_values_are_whole(self):
        assert format_break(10) == "10%"
        assert format_break(37.6) == "38%"

    def test_absent(self):
        assert format_break(None) == "—"
        assert format_break(float("nan")) == "—"
        assert format_break(float("inf")) == "—"


class TestBuildLabels:
    def test_four_breaks(self):
        assert build_labels([10, 20, 30, 40]) == [
            "≤ 10%",
            "10% – 20%",
            "20% – 30%",
            "30% – 40%",
            "≥ 40%",
        ]

    def test_mixed_precision(self):
        assert build_labels([2.5, 7.3, 12.6]) == [
            "≤ 2.5%",
            "2.5% – 7.3%",
            "7.3% – 13%",
            "≥ 13%",
        ]

    def test_no_breaks(self):
        assert build_labels([]) == ["All values"]

    def test_one_break(self):
        assert build_labels([5]) == ["≤ 5.0%", "≥ 5.0%"]

    def test_label_count(self):
        for count in range(0, 12):
            assert len(build_labels([float(i) for i in range(count)])) == count + 1

    def test_legend_entries_pair_colours_and_labels(self):
        scheme = build_color_scheme([10, 20, 30, 40], DEFAULT_COLOR_RAMP)
        entries = legend_entries(scheme)
        assert entries[0] == ("#f1eef6", "≤ 10%")
        assert entries[-1] == ("#045a8d", "≥ 40%")
        assert len(entries) == 5
