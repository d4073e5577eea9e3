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
Discrete Model Base
===================

Abstract base class for the MIMO discrete-time models (linear state-space
and nonlinear). It fixes the per-cycle convention shared by both:

    y[k]   = h(x[k], u[k])      observe the current state
    x[k+1] = f(x[k], u[k])      then advance

and builds the multi-step helpers ``simulate()`` and ``rollout()`` on top
of that single cycle.
"""

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from systemmodels.systems.base.utils.control_sequence import (
    make_control_getter,
    resolve_n_steps,
)
from systemmodels.systems.base.utils.model_validator import DimensionError
from systemmodels.types.core import (
    ArrayLike,
    ControlVector,
    DiscreteControlInput,
    DiscreteFeedbackPolicy,
    OutputVector,
    StateVector,
)
from systemmodels.types.trajectories import DiscreteSimulationResult


class DiscreteModelBase(ABC):
    """
    Abstract base class for MIMO discrete-time models.

    Subclasses provide:
    1. nx, nu, ny: state, control and output dimensions
    2. dtype: element type
    3. _cycle(u): observe the current state, advance it, return the observation
    4. _state_view(): the current state array (not copied)

    Concrete methods provided:
    - simulate(): open-loop multi-step run
    - rollout(): closed-loop run with a state-feedback policy
    """

    nx: int
    nu: int
    ny: int
    dtype: np.dtype

    @abstractmethod
    def _cycle(self, u: ControlVector) -> OutputVector:
        """One control cycle on a validated (nu,) control."""
        pass

    @abstractmethod
    def _state_view(self) -> StateVector:
        pass

    def _as_control(self, u: Optional[ArrayLike]) -> ControlVector:
        """Flatten to (nu,); None means zero control."""
        if u is None:
            return np.zeros(self.nu, dtype=self.dtype)
        u = np.asarray(u, dtype=self.dtype).reshape(-1)
        if u.shape[0] != self.nu:
            raise DimensionError(f"Control must have {self.nu} elements, got {u.shape[0]}")
        return u

    # =========================================================================
    # Multi-step Helpers
    # =========================================================================

    def simulate(
        self,
        u_sequence: DiscreteControlInput = None,
        n_steps: Optional[int] = None,
    ) -> DiscreteSimulationResult:
        """
        Run one cycle per control for k = 0, ..., n_steps - 1 from the current state.

        The model is advanced by the run; ``result['states'][0]`` is where
        it started.

        Parameters
        ----------
        u_sequence : DiscreteControlInput
            None (zero control), constant (nu,) vector, (n_steps, nu) array
            or sequence, or callable u_func(k)
        n_steps : Optional[int]
            Number of steps (default: length of the sequence)

        Returns
        -------
        DiscreteSimulationResult
            TIME-MAJOR arrays:
            - states: (n_steps + 1, nx), includes the initial state
            - controls: (n_steps, nu)
            - outputs: (n_steps, ny), outputs[k] observes states[k]
            - time_steps: (n_steps + 1,)

        Examples
        --------
        Constant control:

        >>> result = model.simulate(np.array([0.5, 0.0]), n_steps=100)

        Time-indexed control:

        >>> result = model.simulate(lambda k: np.array([np.sin(0.1 * k)]), n_steps=100)
        """
        n_steps = resolve_n_steps(u_sequence, n_steps, self.nu)
        get_u = make_control_getter(u_sequence, self.nu, self.dtype, n_steps=n_steps)

        states = np.zeros((n_steps + 1, self.nx), dtype=self.dtype)
        controls = np.zeros((n_steps, self.nu), dtype=self.dtype)
        outputs = np.zeros((n_steps, self.ny), dtype=self.dtype)
        states[0, :] = self._state_view()

        for k in range(n_steps):
            u = self._as_control(get_u(k))
            controls[k, :] = u
            outputs[k, :] = self._cycle(u)
            states[k + 1, :] = self._state_view()

        return {
            "states": states,
            "controls": controls,
            "outputs": outputs,
            "time_steps": np.arange(n_steps + 1),
            "dt": getattr(self, "dt", None),
            "metadata": {"method": "simulate", "closed_loop": False},
        }

    def rollout(
        self,
        policy: DiscreteFeedbackPolicy,
        n_steps: int = 100,
    ) -> DiscreteSimulationResult:
        """
        Closed-loop run with u[k] = policy(x[k], k).

        The policy receives a copy of the state, so it cannot modify the model.

        Examples
        --------
        State feedback:

        >>> K = np.array([[10.0, 5.0]])
        >>> result = model.rollout(lambda x, k: -K @ x, n_steps=200)
        >>> result["metadata"]["closed_loop"]
        True
        """
        result = self.simulate(lambda k: policy(self._state_view().copy(), k), n_steps=n_steps)
        result["metadata"] = {"method": "rollout", "closed_loop": True}
        return result

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        nx = getattr(self, "nx", "?")
        nu = getattr(self, "nu", "?")
        ny = getattr(self, "ny", "?")
        return f"{class_name}(nx={nx}, nu={nu}, ny={ny})"


__all__ = ["DiscreteModelBase"]
