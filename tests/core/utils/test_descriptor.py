"""Tests for descriptor serialization, validity and distance helpers."""
import math

import numpy as np
import pytest

from conftest import vector
from photomatch.core.exceptions import DescriptorDimensionError, InvalidDescriptorError
from photomatch.core.utils.descriptor import (
    DimensionGuard,
    euclidean_distance,
    format_descriptor,
    is_valid_descriptor,
    parse_descriptor,
    safe_distance,
    to_descriptor,
)


class TestDescriptorCodec:
    """Descriptors must come back from storage bit for bit."""

    def test_float64_is_lossless(self):
        rng = np.random.default_rng(7)
        descriptor = rng.normal(size=128)

        restored = parse_descriptor(format_descriptor(descriptor))

        assert restored.dtype == np.float64
        assert np.array_equal(restored, descriptor)

    def test_float32_is_widened_exactly(self):
        rng = np.random.default_rng(11)
        descriptor = rng.normal(size=128).astype(np.float32)

        restored = parse_descriptor(format_descriptor(descriptor))

        assert np.array_equal(restored, descriptor.astype(np.float64))
        assert np.array_equal(restored.astype(np.float32), descriptor)

    def test_awkward_values_survive(self):
        descriptor = [0.1, 1e-300, -2.5e17, 1 / 3, -0.0]

        restored = parse_descriptor(format_descriptor(descriptor))

        assert restored.tolist() == descriptor

    def test_empty_string_is_empty_descriptor(self):
        assert parse_descriptor("").size == 0
        assert parse_descriptor("   ").size == 0

    def test_malformed_string_raises(self):
        with pytest.raises(InvalidDescriptorError):
            parse_descriptor("0.1,abc,0.3")

    def test_to_descriptor_accepts_strings_and_lists(self):
        assert to_descriptor("1.0,2.0").tolist() == [1.0, 2.0]
        assert to_descriptor([[1, 2], [3, 4]]).tolist() == [1.0, 2.0, 3.0, 4.0]
        assert to_descriptor(None).size == 0

    def test_to_descriptor_rejects_non_numeric(self):
        with pytest.raises(InvalidDescriptorError):
            to_descriptor(["a", "b"])


class TestDescriptorValidity:

    @pytest.mark.parametrize("descriptor", [
        None,
        [],
        np.zeros(128),
        vector(1.0, float("nan")),
        vector(float("inf")),
    ])
    def test_invalid(self, descriptor):
        assert not is_valid_descriptor(descriptor, 128)

    def test_wrong_length_is_invalid(self):
        assert not is_valid_descriptor(vector(1.0, dimension=64), 128)
        assert is_valid_descriptor(vector(1.0, dimension=64))

    def test_valid(self):
        assert is_valid_descriptor(vector(0.3, -0.2), 128)


class TestDistance:

    def test_euclidean(self):
        assert euclidean_distance(np.array([0.0, 0.0]), np.array([3.0, 4.0])) == pytest.approx(5.0)

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            euclidean_distance(np.zeros(3), np.zeros(4))

    def test_safe_distance_treats_failure_as_infinite(self):
        assert safe_distance(np.zeros(3), np.zeros(4)) == math.inf

    def test_safe_distance_treats_nan_as_infinite(self):
        assert safe_distance(np.array([float("nan")]), np.array([1.0])) == math.inf


class TestDimensionGuard:

    def test_matching_population_passes(self):
        guard = DimensionGuard(128)
        guard.verify([vector(1.0), vector(0.5), vector(1.0, dimension=64)])

    def test_empty_population_passes(self):
        DimensionGuard(128).verify([])

    def test_drifted_population_raises(self):
        guard = DimensionGuard(128)
        population = [vector(1.0, dimension=512), vector(0.2, dimension=512), vector(1.0)]

        with pytest.raises(DescriptorDimensionError) as exc_info:
            guard.verify(population)

        assert exc_info.value.details == {"expected": 128, "observed": 512}
        # Raised again on every call, only reported once
        with pytest.raises(DescriptorDimensionError):
            guard.verify(population)

    def test_dominant_dimension_ignores_empty(self):
        guard = DimensionGuard(128)
        assert guard.dominant_dimension([[], "", vector(1.0)]) == 128
        assert guard.dominant_dimension([[]]) is None

    def test_check_rejects_wrong_length(self):
        guard = DimensionGuard(128)

        with pytest.raises(DescriptorDimensionError):
            guard.check([0.1, 0.2])

        assert guard.check(vector(0.1)).shape == (128,)
