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
Unit Tests for StateSpaceModel
==============================

Tests cover:
1. Construction and dimension validation
2. update_state(), get_output() and the per-cycle call
3. State access
4. simulate() and rollout()
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_equal

from systemmodels.systems.base.core.discrete_model_base import DiscreteModelBase
from systemmodels.systems.base.utils.model_validator import DimensionError, ValidationError
from systemmodels.systems.lti.state_space import StateSpaceModel


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def static_model():
    """Identity dynamics, no input coupling, measures the first state."""
    return StateSpaceModel(
        A=np.eye(2),
        B=np.zeros((2, 1)),
        C=np.array([[1.0, 0.0]]),
        D=np.zeros((1, 1)),
        x0=np.array([3.0, 4.0]),
    )


@pytest.fixture
def double_integrator():
    dt = 0.1
    return StateSpaceModel(
        A=np.array([[1.0, dt], [0.0, 1.0]]),
        B=np.array([[0.5 * dt**2], [dt]]),
        C=np.array([[1.0, 0.0]]),
    )


@pytest.fixture
def scalar_feedthrough():
    """x[k+1] = 2x + u, y = x + u, x0 = 1."""
    return StateSpaceModel(A=[[2.0]], B=[[1.0]], C=[[1.0]], D=[[1.0]], x0=[1.0])


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    """Test dimensions, defaults and validation."""

    def test_dimensions(self):
        model = StateSpaceModel(np.eye(3), np.ones((3, 2)), np.ones((4, 3)))
        assert (model.nx, model.nu, model.ny) == (3, 2, 4)

    def test_is_discrete_model(self, static_model):
        assert isinstance(static_model, DiscreteModelBase)

    def test_default_direct_transfer_is_zero(self):
        model = StateSpaceModel(np.eye(2), np.ones((2, 3)), np.ones((1, 2)))
        assert_array_equal(model.D, np.zeros((1, 3)))

    def test_default_state_is_zero(self, double_integrator):
        assert_array_equal(double_integrator.state, np.zeros(2))

    def test_column_initial_state(self):
        model = StateSpaceModel(np.eye(2), np.zeros((2, 1)), np.eye(2), x0=[[1.0], [2.0]])
        assert_array_equal(model.state, [1.0, 2.0])

    @pytest.mark.parametrize(
        "kwargs",
        [
            # A not square
            dict(A=np.ones((2, 3)), B=np.ones((2, 1)), C=np.ones((1, 2))),
            # A not 2-D
            dict(A=np.ones(2), B=np.ones((2, 1)), C=np.ones((1, 2))),
            # B rows != nx
            dict(A=np.eye(2), B=np.ones((3, 1)), C=np.ones((1, 2))),
            # C cols != nx
            dict(A=np.eye(2), B=np.ones((2, 1)), C=np.ones((1, 3))),
            # D wrong shape
            dict(A=np.eye(2), B=np.ones((2, 1)), C=np.ones((1, 2)), D=np.ones((2, 1))),
            # x0 wrong length
            dict(A=np.eye(2), B=np.ones((2, 1)), C=np.ones((1, 2)), x0=np.ones(3)),
            # empty state
            dict(A=np.ones((0, 0)), B=np.ones((0, 1)), C=np.ones((1, 0))),
            # no outputs
            dict(A=np.eye(2), B=np.ones((2, 1)), C=np.ones((0, 2))),
        ],
    )
    def test_dimension_mismatch_rejected(self, kwargs):
        with pytest.raises(DimensionError):
            StateSpaceModel(**kwargs)

    def test_non_finite_rejected(self):
        with pytest.raises(ValidationError, match="non-finite"):
            StateSpaceModel([[np.nan]], [[1.0]], [[1.0]])

    def test_error_lists_every_problem(self):
        with pytest.raises(DimensionError) as exc_info:
            StateSpaceModel(np.eye(2), np.ones((3, 1)), np.ones((1, 3)))
        message = str(exc_info.value)
        assert "B must have 2 rows" in message
        assert "C must have 2 columns" in message

    def test_matrices_are_read_only(self, double_integrator):
        for matrix in (double_integrator.A, double_integrator.B,
                       double_integrator.C, double_integrator.D):
            with pytest.raises(ValueError):
                matrix[0, 0] = 42.0

    def test_matrices_have_no_setters(self, double_integrator):
        with pytest.raises(AttributeError):
            double_integrator.A = np.eye(2)

    def test_inputs_not_aliased(self):
        A = np.eye(2)
        x0 = np.array([1.0, 1.0])
        model = StateSpaceModel(A, np.zeros((2, 1)), np.eye(2), x0=x0)

        A[0, 0] = 5.0
        x0[0] = 5.0
        model.update_state([0.0])

        assert_array_equal(model.state, [1.0, 1.0])


# ============================================================================
# Stepping
# ============================================================================


class TestStepping:
    """Test update_state, get_output and __call__."""

    def test_zero_input_matrix_keeps_state(self, static_model):
        static_model.update_state([123.0])
        assert_array_equal(static_model.state, [3.0, 4.0])

    def test_observation_of_first_state(self, static_model):
        assert_array_equal(static_model.get_output([-7.0]), [3.0])

    @pytest.mark.parametrize("seed", range(5))
    def test_zero_input_matrix_invariant(self, seed):
        rng = np.random.default_rng(seed)
        model = StateSpaceModel(
            np.eye(3), np.zeros((3, 2)), np.eye(3), x0=rng.standard_normal(3)
        )
        x_before = model.state.copy()
        for _ in range(10):
            model.update_state(rng.standard_normal(2) * 1e3)
        assert_array_equal(model.state, x_before)

    def test_update_state(self, double_integrator):
        double_integrator.update_state([1.0])
        assert_allclose(double_integrator.state, [0.005, 0.1])

    def test_update_state_returns_none(self, double_integrator):
        assert double_integrator.update_state([1.0]) is None

    def test_update_state_is_in_place(self, double_integrator):
        state = double_integrator.state
        double_integrator.update_state([1.0])
        assert state is double_integrator.state
        assert_allclose(state, [0.005, 0.1])

    def test_get_output_does_not_mutate(self, scalar_feedthrough):
        y1 = scalar_feedthrough.get_output([1.0])
        y2 = scalar_feedthrough.get_output([1.0])
        assert_array_equal(y1, [2.0])
        assert_array_equal(y2, [2.0])
        assert_array_equal(scalar_feedthrough.state, [1.0])

    def test_call_observes_before_advancing(self, scalar_feedthrough):
        y = scalar_feedthrough([1.0])
        assert_array_equal(y, [2.0])                       # C·x0 + D·u
        assert_array_equal(scalar_feedthrough.state, [3.0])  # A·x0 + B·u

    def test_update_then_get_output_observes_advanced_state(self, scalar_feedthrough):
        scalar_feedthrough.update_state([1.0])
        assert_array_equal(scalar_feedthrough.get_output([1.0]), [4.0])

    def test_call_equals_get_output_then_update(self, double_integrator):
        other = StateSpaceModel(double_integrator.A, double_integrator.B, double_integrator.C)
        for u in ([1.0], [-0.5], [2.0]):
            y_call = double_integrator(u)
            y_manual = other.get_output(u)
            other.update_state(u)
            assert_allclose(y_call, y_manual)
        assert_allclose(double_integrator.state, other.state)

    def test_none_is_zero_control(self, scalar_feedthrough):
        assert_array_equal(scalar_feedthrough(None), [1.0])
        assert_array_equal(scalar_feedthrough.state, [2.0])

    def test_column_control_accepted(self):
        model = StateSpaceModel(np.eye(2), np.eye(2), np.eye(2))
        model.update_state(np.array([[1.0], [2.0]]))
        assert_array_equal(model.state, [1.0, 2.0])

    def test_wrong_control_length(self, double_integrator):
        with pytest.raises(DimensionError, match="1 elements"):
            double_integrator.update_state([1.0, 2.0])
        with pytest.raises(DimensionError):
            double_integrator.get_output([])

    def test_autonomous_model(self):
        model = StateSpaceModel([[0.5]], np.zeros((1, 0)), [[1.0]], x0=[2.0])
        assert model.nu == 0
        assert_array_equal(model(), [2.0])
        assert_array_equal(model.state, [1.0])

    def test_mimo_direct_transfer(self):
        model = StateSpaceModel(
            A=np.zeros((2, 2)),
            B=np.eye(2),
            C=np.eye(2),
            D=np.array([[1.0, 2.0], [3.0, 4.0]]),
        )
        assert_array_equal(model.get_output([1.0, 1.0]), [3.0, 7.0])


# ============================================================================
# State Access
# ============================================================================


class TestStateAccess:
    """Test the state property."""

    def test_in_place_write(self, double_integrator):
        double_integrator.state[1] = 2.0
        double_integrator.update_state([0.0])
        assert_allclose(double_integrator.state, [0.2, 2.0])

    def test_assignment(self, double_integrator):
        double_integrator.state = [1.0, -1.0]
        assert_array_equal(double_integrator.state, [1.0, -1.0])

    def test_assignment_wrong_length(self, double_integrator):
        with pytest.raises(DimensionError):
            double_integrator.state = [1.0, 2.0, 3.0]
        assert_array_equal(double_integrator.state, [0.0, 0.0])

    def test_estimator_style_correction(self, double_integrator):
        K = np.array([0.5, 0.1])
        innovation = 2.0
        double_integrator.state += K * innovation
        assert_allclose(double_integrator.state, [1.0, 0.2])


# ============================================================================
# Multi-step Helpers
# ============================================================================


class TestSimulate:
    """Test simulate() and rollout()."""

    def test_shapes(self, double_integrator):
        result = double_integrator.simulate(np.ones((50, 1)))
        assert result["states"].shape == (51, 2)
        assert result["controls"].shape == (50, 1)
        assert result["outputs"].shape == (50, 1)
        assert_array_equal(result["time_steps"], np.arange(51))
        assert result["dt"] is None

    def test_outputs_observe_states(self, scalar_feedthrough):
        result = scalar_feedthrough.simulate([[1.0], [0.0], [2.0]])
        assert_array_equal(result["states"][:, 0], [1.0, 3.0, 6.0, 14.0])
        assert_array_equal(result["outputs"][:, 0], [2.0, 3.0, 8.0])

    def test_simulate_advances_model(self, scalar_feedthrough):
        result = scalar_feedthrough.simulate(None, n_steps=3)
        assert_array_equal(scalar_feedthrough.state, result["states"][-1])
        assert_array_equal(result["states"][:, 0], [1.0, 2.0, 4.0, 8.0])

    def test_constant_control_vector(self):
        model = StateSpaceModel(np.eye(2), np.eye(2), np.eye(2))
        result = model.simulate(np.array([1.0, -1.0]), n_steps=4)
        assert_array_equal(result["states"][-1], [4.0, -4.0])

    def test_constant_control_single_input(self):
        model = StateSpaceModel([[1.0]], [[1.0]], [[1.0]])
        result = model.simulate(np.array([1.0]), n_steps=5)
        assert_array_equal(result["states"][:, 0], [0.0, 1.0, 2.0, 3.0, 4.0, 5.0])
        assert_array_equal(result["controls"][:, 0], np.ones(5))

    def test_n_steps_longer_than_sequence(self, scalar_feedthrough):
        with pytest.raises(ValueError, match="fewer than n_steps"):
            scalar_feedthrough.simulate(np.ones((2, 1)), n_steps=5)

    def test_callable_control(self, double_integrator):
        result = double_integrator.simulate(lambda k: [float(k)], n_steps=3)
        assert_array_equal(result["controls"][:, 0], [0.0, 1.0, 2.0])

    def test_rollout_closed_loop(self, double_integrator):
        K = np.array([[10.0, 5.0]])
        double_integrator.state = [1.0, 0.0]
        result = double_integrator.rollout(lambda x, k: -K @ x, n_steps=20)

        A_cl = double_integrator.A - double_integrator.B @ K
        x = np.array([1.0, 0.0])
        for k in range(20):
            x = A_cl @ x
            assert_allclose(result["states"][k + 1], x, atol=1e-12)

        assert result["metadata"]["closed_loop"] is True
        assert result["metadata"]["method"] == "rollout"

    def test_rollout_policy_gets_copy(self, double_integrator):
        def policy(x, k):
            x[:] = 100.0
            return np.zeros(1)

        double_integrator.rollout(policy, n_steps=2)
        assert_array_equal(double_integrator.state, [0.0, 0.0])

    def test_repr(self, double_integrator):
        assert repr(double_integrator) == "StateSpaceModel(nx=2, nu=1, ny=1)"
