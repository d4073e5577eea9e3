# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Unit tests for control sequence resolution used by simulate()
"""

import numpy as np
import pytest
from numpy.testing import assert_array_equal

from systemmodels.systems.base.utils.control_sequence import (
    make_control_getter,
    resolve_n_steps,
)


class TestResolveNSteps:
    """Test resolve_n_steps()."""

    def test_explicit_n_steps_wins(self):
        assert resolve_n_steps(np.zeros((10, 2)), 4, nu=2) == 4

    def test_sequence_length(self):
        assert resolve_n_steps(np.zeros((10, 2)), None, nu=2) == 10
        assert resolve_n_steps([[0.0], [1.0], [2.0]], None, nu=1) == 3

    def test_scalar_sequence_for_single_input(self):
        assert resolve_n_steps([0.0, 1.0, 2.0], None, nu=1) == 3

    @pytest.mark.parametrize("u_sequence", [None, lambda k: [0.0], 1.0])
    def test_requires_n_steps(self, u_sequence):
        with pytest.raises(ValueError, match="n_steps is required"):
            resolve_n_steps(u_sequence, None, nu=1)

    def test_constant_vector_requires_n_steps(self):
        with pytest.raises(ValueError, match="constant"):
            resolve_n_steps(np.array([1.0, 2.0]), None, nu=2)

    def test_negative_n_steps(self):
        with pytest.raises(ValueError, match="non-negative"):
            resolve_n_steps(None, -1, nu=1)

    def test_n_steps_longer_than_sequence(self):
        with pytest.raises(ValueError, match="fewer than n_steps=5"):
            resolve_n_steps(np.ones((2, 1)), 5, nu=1)
        with pytest.raises(ValueError, match="fewer than n_steps"):
            resolve_n_steps([0.0, 1.0, 2.0], 4, nu=1)

    def test_n_steps_shorter_than_sequence(self):
        assert resolve_n_steps(np.ones((10, 2)), 3, nu=2) == 3

    def test_single_value_with_n_steps_is_constant(self):
        assert resolve_n_steps(np.array([1.0]), 5, nu=1) == 5

    def test_single_value_without_n_steps_is_one_step(self):
        assert resolve_n_steps(np.array([1.0]), None, nu=1) == 1


class TestMakeControlGetter:
    """Test make_control_getter()."""

    def test_none_is_zero(self):
        get_u = make_control_getter(None, nu=3)
        assert_array_equal(get_u(5), np.zeros(3))

    def test_scalar_constant(self):
        get_u = make_control_getter(2.5, nu=1)
        assert_array_equal(get_u(0), [2.5])
        assert_array_equal(get_u(99), [2.5])

    def test_vector_constant(self):
        get_u = make_control_getter([1.0, -1.0], nu=2)
        assert_array_equal(get_u(7), [1.0, -1.0])

    def test_sequence(self):
        get_u = make_control_getter([[1.0, 2.0], [3.0, 4.0]], nu=2)
        assert_array_equal(get_u(1), [3.0, 4.0])

    def test_scalar_sequence(self):
        get_u = make_control_getter([1.0, 2.0, 3.0], nu=1)
        assert_array_equal(get_u(2), [3.0])

    def test_callable(self):
        get_u = make_control_getter(lambda k: [k, 2 * k], nu=2)
        assert_array_equal(get_u(3), [3.0, 6.0])

    def test_dtype(self):
        get_u = make_control_getter([[1.0]], nu=1, dtype=np.float32)
        assert get_u(0).dtype == np.float32

    def test_single_value_constant_with_n_steps(self):
        get_u = make_control_getter(np.array([1.5]), nu=1, n_steps=5)
        assert_array_equal(get_u(0), [1.5])
        assert_array_equal(get_u(4), [1.5])

    def test_scalar_sequence_with_n_steps(self):
        get_u = make_control_getter([1.0, 2.0], nu=1, n_steps=2)
        assert_array_equal(get_u(1), [2.0])
