"""
===============================================================================
NATIVEBENCH - Algorithm Kernel Test Suite
===============================================================================
Both implementations of every algorithm must agree (by the algorithm's own
validator) on small inputs, and each kernel must reject invalid sizes.
===============================================================================
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import asyncio
import json

import numpy as np
from numpy.testing import assert_allclose
import pytest

from nativebench.algorithms import ALGORITHMS, get_algorithm
from nativebench.algorithms import (
    csv_parser,
    fft,
    gradient_descent,
    json_parser,
    matrix_multiply,
    numeric_integration,
)
from nativebench.core.errors import InputError
from nativebench.validation import DEFAULT_VALIDATORS


SMALL_INPUTS = {
    "matrix": 12,
    "fft": 64,
    "integration": 1001,
    "gradient": {"iterations": 50, "parameters": 8},
    "json": 0.01,
    "csv": 0.01,
}


def run_both(key, raw):
    definition = get_algorithm(key)
    definition.check_input(raw)
    data = definition.prepare(raw)
    native = asyncio.run(definition.native_factory().run(data))
    managed = asyncio.run(definition.managed_factory().run(data))
    return native, managed


# =============================================================================
# Test: registry
# =============================================================================

class TestRegistry:

    def test_order(self):
        assert list(ALGORITHMS) == ["matrix", "fft", "integration", "gradient", "json", "csv"]

    def test_unknown_key(self):
        with pytest.raises(InputError):
            get_algorithm("bogus")

    def test_every_definition_has_validator(self):
        for key, definition in ALGORITHMS.items():
            assert definition.validator is DEFAULT_VALIDATORS.get(key)
            assert definition.sizes
            assert definition.heavy_sizes

    def test_with_overrides(self):
        definition = get_algorithm("fft").with_overrides(iterations=1, sizes={"tiny": 8})
        assert definition.iterations == 1
        assert definition.sizes_for(False) == {"tiny": 8}
        assert get_algorithm("fft").iterations == 5


# =============================================================================
# Test: native vs managed agreement
# =============================================================================

class TestAgreement:

    @pytest.mark.parametrize("key", list(SMALL_INPUTS))
    def test_outputs_validate(self, key):
        native, managed = run_both(key, SMALL_INPUTS[key])
        outcome = DEFAULT_VALIDATORS.get(key).validate(native, managed)
        assert outcome.success, outcome.discrepancies


# =============================================================================
# Test: individual kernels
# =============================================================================

class TestMatrix:

    def test_checksum_matches_numpy(self):
        pair = matrix_multiply.generate_matrices(8)
        expected = float((np.array(pair.a) @ np.array(pair.b)).sum())
        assert_allclose(matrix_multiply.multiply_naive(pair), expected, rtol=1e-10)
        assert_allclose(matrix_multiply.multiply_numpy(pair), expected, rtol=1e-10)

    def test_generation_is_seeded(self):
        assert matrix_multiply.generate_matrices(5) == matrix_multiply.generate_matrices(5)
        pair = matrix_multiply.generate_matrices(5)
        assert pair.order == 5
        assert all(0.0 <= v < 100.0 for row in pair.a for v in row)

    @pytest.mark.parametrize("bad", [0, -3, 2.5, True, "10"])
    def test_invalid_order(self, bad):
        with pytest.raises(InputError):
            matrix_multiply.check_order(bad)


class TestFFT:

    def test_dominant_tone(self):
        for kernel in (fft.fft_numpy, fft.fft_pure_python):
            peak_magnitude, energy, mean_energy, peak_bin = kernel(64)
            assert peak_bin == 5.0
            assert_allclose(peak_magnitude, 32.0, rtol=1e-9)
            assert_allclose(mean_energy, energy / 64)

    def test_cooley_tukey_matches_numpy(self):
        rng = np.random.default_rng(0)
        x = rng.standard_normal(32)
        assert_allclose(np.array(fft.cooley_tukey(list(x))), np.fft.fft(x), atol=1e-9)

    @pytest.mark.parametrize("bad", [0, 100, -8, 64.0])
    def test_length_must_be_power_of_two(self, bad):
        with pytest.raises(InputError):
            fft.check_length(bad)


class TestIntegration:

    def test_simpson_exact_for_quadratic(self):
        exact = numeric_integration.analytical()
        assert_allclose(exact, 7.0 / 3.0)
        assert_allclose(numeric_integration.simpson_loop(10), exact, rtol=1e-12)
        assert_allclose(numeric_integration.integrate_scipy(10)[1], exact, rtol=1e-12)

    def test_trapezoid_error_term(self):
        trap, _, exact, error = numeric_integration.integrate_pure_python(100)
        assert_allclose(error, abs(trap - exact))
        # (b - a) * h^2 / 12 * f'' with f'' = 2
        assert_allclose(error, 2.0 * 0.01 ** 2 / 12.0, rtol=1e-6)

    @pytest.mark.parametrize("bad", [1, 0, 10.5])
    def test_too_few_intervals(self, bad):
        with pytest.raises(InputError):
            numeric_integration.check_intervals(bad)


class TestGradientDescent:

    def test_initial_parameters_deterministic(self):
        first = gradient_descent.initial_parameters(6)
        assert first == gradient_descent.initial_parameters(6)
        assert all(-1.0 <= v <= 1.0 for v in first)

    def test_cost_decreases(self):
        start = gradient_descent.rosenbrock(gradient_descent.initial_parameters(8))
        cost = gradient_descent.descend_pure_python({"iterations": 200, "parameters": 8})[0]
        assert cost < start

    def test_gradient_matches_numpy_path(self):
        config = gradient_descent.DescentConfig(iterations=20, parameters=5)
        assert_allclose(
            gradient_descent.descend_numpy(config),
            gradient_descent.descend_pure_python(config),
            rtol=1e-9,
        )

    @pytest.mark.parametrize("bad", [
        {"iterations": 10, "parameters": 1},
        {"iterations": 0, "parameters": 5},
        {"parameters": 5},
        [10, 5],
    ])
    def test_invalid_config(self, bad):
        with pytest.raises(InputError):
            gradient_descent.check_config(bad)


class TestJsonParser:

    def test_record_count_floors(self):
        records = json.loads(json_parser.generate_document(0.01))
        assert len(records) == int(0.01 * 1024 * 1024 // 120)

    def test_state_machine_handles_escapes_and_literals(self):
        text = '[{"id": 1, "name": "a\\"b, c", "value": 2.5, "active": true, "x": null}]'
        records = json_parser.parse_records(text)
        assert records == [{"id": 1, "name": 'a"b, c', "value": 2.5, "active": True, "x": None}]

    def test_summary_fields(self):
        text = json_parser.generate_document(0.01)
        count, size, average, parse_ms = json_parser.parse_managed(text)
        assert count == len(json.loads(text))
        assert size == len(text)
        assert parse_ms >= 0.0

    def test_invalid_size(self):
        with pytest.raises(InputError):
            json_parser.check_size(0)


class TestCsvParser:

    def test_header_and_columns(self):
        text = csv_parser.generate_table(0.01)
        lines = text.splitlines()
        assert lines[0].split(",") == list(csv_parser.COLUMNS)
        assert all(len(line.split(",")) == 20 for line in lines[1:])
        assert len(lines) - 1 == int(0.01 * 1024 * 1024 // 250)

    def test_managed_skips_malformed_rows(self):
        header = ",".join(csv_parser.COLUMNS)
        zero_id = ",".join(["0"] + csv_parser._row(0).split(",")[1:])
        text = "\n".join([header, csv_parser._row(0), "7,short", zero_id, "", csv_parser._row(1)])
        records = csv_parser.parse_rows(text)
        assert [r["id"] for r in records] == [1, 2]
        assert_allclose(records[1]["value1"], 3.0)

    def test_native_and_managed_counts(self):
        text = csv_parser.generate_table(0.02)
        assert csv_parser.parse_native(text)[0] == csv_parser.parse_managed(text)[0]

    def test_invalid_size(self):
        with pytest.raises(InputError):
            csv_parser.check_size(-1)
