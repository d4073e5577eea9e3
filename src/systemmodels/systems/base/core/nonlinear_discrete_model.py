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
Nonlinear Discrete Model (Layer 1)
==================================

Abstract contract for nonlinear time-invariant MIMO models:

    x[k+1] = f(x[k], u[k])
    y[k]   = h(x[k], u[k])

Concrete physical models (vehicles, sensors, ...) implement f and h as PURE
functions, ``step(x, u)`` and ``observe(x, u)``. The base class owns the
state and output storage: ``update(u)`` and ``calculate_output(u)`` call the
pure functions on the stored state and commit their results. Subclasses
never write to the stored state themselves, and ``step``/``observe`` can be
tested in isolation.

The time step ``dt`` is fixed at construction and is available to
subclasses for explicit integration (e.g. ``x + dt * xdot``). The caller's
scheduler is expected to invoke the model every ``dt`` seconds (or a
multiple of it).

Results returned by ``step``/``observe`` are flattened to 1-D and converted
to the model dtype before they are committed, so column vectors (nx, 1) are
accepted. Returning an array of the wrong length is a bug in the
subclass and is not checked here.
"""

from abc import abstractmethod
from typing import Optional

import numpy as np

from systemmodels.systems.base.core.discrete_model_base import DiscreteModelBase
from systemmodels.systems.base.utils.model_validator import DimensionError, ValidationError
from systemmodels.types.core import (
    ArrayLike,
    ControlVector,
    DTypeLike,
    OutputVector,
    ScalarLike,
    StateVector,
)


class NonlinearDiscreteModel(DiscreteModelBase):
    """
    Abstract base class for nonlinear discrete-time MIMO models.

    Subclasses must define:
    1. nx, nu, ny: state, control and output dimensions (class attributes
       or set before calling ``super().__init__``)
    2. step(x, u): next state, pure
    3. observe(x, u): observation, pure

    Parameters
    ----------
    dt : ScalarLike
        Time step in seconds, positive and finite
    x0 : Optional[ArrayLike]
        Initial state (nx,). Zeros if omitted.
    dtype : Optional[DTypeLike]
        Element type (default float64)

    Raises
    ------
    ValidationError
        If dt is not positive and finite, or the dimensions are not defined
    DimensionError
        If x0 does not have nx elements

    Examples
    --------
    >>> class Unicycle(NonlinearDiscreteModel):
    ...     nx, nu, ny = 3, 2, 2
    ...
    ...     def step(self, x, u):
    ...         px, py, theta = x
    ...         v, omega = u
    ...         return np.array([
    ...             px + self.dt * v * np.cos(theta),
    ...             py + self.dt * v * np.sin(theta),
    ...             theta + self.dt * omega,
    ...         ])
    ...
    ...     def observe(self, x, u):
    ...         return x[:2]
    >>>
    >>> robot = Unicycle(dt=0.1)
    >>> robot.update(np.array([1.0, 0.0]))
    array([0.1, 0. , 0. ])
    >>> robot.calculate_output(np.array([1.0, 0.0]))
    array([0.1, 0. ])
    """

    nx: int
    nu: int
    ny: int

    def __init__(
        self,
        dt: ScalarLike,
        x0: Optional[ArrayLike] = None,
        dtype: Optional[DTypeLike] = None,
    ):
        self._validate_dimensions()

        dt = float(dt)
        if not np.isfinite(dt) or dt <= 0:
            raise ValidationError(f"Time step dt must be positive and finite, got {dt}")

        self._dtype = np.dtype(np.float64 if dtype is None else dtype)
        self._dt = dt
        self._states = np.zeros(self.nx, dtype=self._dtype)
        self._outputs = np.zeros(self.ny, dtype=self._dtype)

        if x0 is not None:
            self.set_states(x0)

    def _validate_dimensions(self):
        for name, minimum in (("nx", 1), ("nu", 0), ("ny", 1)):
            value = getattr(self, name, None)
            if not isinstance(value, (int, np.integer)) or isinstance(value, bool):
                raise ValidationError(
                    f"{self.__class__.__name__} must define integer dimension '{name}', "
                    f"got {value!r}"
                )
            if value < minimum:
                raise ValidationError(f"{name} must be >= {minimum}, got {value}")

    # =========================================================================
    # Abstract Methods (MUST be implemented by subclasses)
    # =========================================================================

    @abstractmethod
    def step(self, x: StateVector, u: ControlVector) -> StateVector:
        """
        State transition x[k+1] = f(x[k], u[k]).

        Must not modify ``x`` or the model; the base class commits the
        returned state.

        Parameters
        ----------
        x : StateVector
            Current state (nx,), a copy of the stored state
        u : ControlVector
            Control (nu,)

        Returns
        -------
        StateVector
            Next state (nx,)
        """
        pass

    @abstractmethod
    def observe(self, x: StateVector, u: ControlVector) -> OutputVector:
        """
        Observation y = h(x, u).

        Must not modify ``x`` or the model; the base class commits the
        returned output.

        Returns
        -------
        OutputVector
            Observation (ny,)
        """
        pass

    # =========================================================================
    # Stepping
    # =========================================================================

    def update(self, u: Optional[ArrayLike] = None) -> StateVector:
        """
        Advance the stored state with ``step`` and return it.

        Parameters
        ----------
        u : Optional[ArrayLike]
            Control (nu,). None means zero control.

        Returns
        -------
        StateVector
            Copy of the new state
        """
        u = self._as_control(u)
        x_next = self.step(self._states.copy(), u)
        self._states = np.array(x_next, dtype=self._dtype).reshape(-1)
        return self._states.copy()

    def calculate_output(self, u: Optional[ArrayLike] = None) -> OutputVector:
        """
        Observe the stored state with ``observe``, store and return the result.

        The state is not changed.

        Returns
        -------
        OutputVector
            Copy of the new output
        """
        u = self._as_control(u)
        y = self.observe(self._states.copy(), u)
        self._outputs = np.array(y, dtype=self._dtype).reshape(-1)
        return self._outputs.copy()

    def _cycle(self, u: ControlVector) -> OutputVector:
        y = self.calculate_output(u)
        self.update(u)
        return y

    def _state_view(self) -> StateVector:
        return self._states

    # =========================================================================
    # Getters / Setters
    # =========================================================================

    def get_states(self) -> StateVector:
        """Current state (a copy)."""
        return self._states.copy()

    def get_output(self) -> OutputVector:
        """Output from the last ``calculate_output`` call (zeros before), a copy."""
        return self._outputs.copy()

    def get_time_step(self) -> float:
        return self._dt

    def set_states(self, x: ArrayLike):
        """
        Overwrite the state, bypassing ``step``.

        Used to reinitialize the model, e.g. after an estimator's
        correction step.

        Raises
        ------
        DimensionError
            If x does not have nx elements
        """
        x = np.array(x, dtype=self._dtype).reshape(-1)
        if x.shape[0] != self.nx:
            raise DimensionError(f"State must have {self.nx} elements, got {x.shape[0]}")
        self._states = x

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def dt(self) -> float:
        """Time step in seconds (read-only)."""
        return self._dt

    @property
    def sampling_frequency(self) -> float:
        """Invocation frequency 1 / dt in Hz."""
        return 1.0 / self._dt

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    def __repr__(self) -> str:
        class_name = self.__class__.__name__
        return f"{class_name}(nx={self.nx}, nu={self.nu}, ny={self.ny}, dt={self._dt})"


__all__ = ["NonlinearDiscreteModel"]
