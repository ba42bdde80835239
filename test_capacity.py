# Capacity model tests - ASCII only
import math

import numpy as np
import pytest

from constants import PIPE_SIZES, PIPE_SPECS
from capacity import pipe_capacity, capacity_curve, max_run_length, recommend_pipe_size


# == Test 1: degenerate lengths ==
@pytest.mark.parametrize("size", PIPE_SIZES)
def test_zero_length_has_zero_capacity(size):
    assert pipe_capacity(size, 0, 0.5) == 0
    assert pipe_capacity(size, -5, 0.5) == 0


def test_non_positive_pressure_drop_has_zero_capacity():
    assert pipe_capacity('1/2"', 10, 0.0) == 0


# == Test 2: monotonicity and rounding ==
@pytest.mark.parametrize("size", PIPE_SIZES)
def test_capacity_non_increasing_with_length(size):
    caps = [pipe_capacity(size, L, 0.5) for L in range(1, 301)]
    assert all(a >= b for a, b in zip(caps, caps[1:]))
    assert all(c >= 0 and c % 1000 == 0 for c in caps)


def test_half_inch_at_ten_feet_is_near_table_value():
    cap = pipe_capacity('1/2"', 10, 0.5)
    assert 75000 <= cap <= 80000
    assert isinstance(cap, int)


def test_larger_pipe_carries_more():
    caps = [pipe_capacity(s, 10, 0.5) for s in PIPE_SIZES]
    assert caps == sorted(caps)


def test_higher_pressure_drop_carries_more():
    assert pipe_capacity('3/4"', 40, 1.0) > pipe_capacity('3/4"', 40, 0.5)


# == Test 3: vectorized curve ==
def test_capacity_curve_matches_scalar_and_zeroes_degenerate():
    lengths = np.array([-1.0, 0.0, 10.0, 25.0, 80.0])
    curve = capacity_curve('1"', lengths, 0.5)
    assert curve[0] == 0 and curve[1] == 0
    for L, c in zip(lengths[2:], curve[2:]):
        assert abs(c - pipe_capacity('1"', float(L), 0.5)) <= 1000


# == Test 4: inverse and recommendation ==
def test_max_run_length_brackets_capacity():
    L = max_run_length('1/2"', 40000, 0.5)
    assert pipe_capacity('1/2"', L * 0.99, 0.5) >= 40000
    assert pipe_capacity('1/2"', L * 1.05, 0.5) < 40000


def test_max_run_length_zero_flow_is_unbounded():
    assert math.isinf(max_run_length('3/8"', 0, 0.5))


def test_recommend_smallest_sufficient_size():
    assert recommend_pipe_size(105000, 10, 0.5) == '3/4"'
    assert recommend_pipe_size(1000, 10, 0.5) == PIPE_SIZES[0]
    assert recommend_pipe_size(10 ** 9, 10, 0.5) is None


def test_every_size_has_coefficients():
    for spec in PIPE_SPECS.values():
        assert spec["coeff"] > 0 and spec["exp"] > 0
