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
State-Space Model (linear MIMO)
===============================

Linear time-invariant discrete-time model:

    x[k+1] = A·x[k] + B·u[k]
    y[k]   = C·x[k] + D·u[k]

with nx states, nu controls and ny outputs. The matrices are validated
against each other once, at construction, and are read-only afterwards.

Step ordering
-------------
``model(u)`` returns the observation of the CURRENT state and then
advances it:

    y = C·x[k] + D·u[k]
    x ← A·x[k] + B·u[k]

so the sequence of returned outputs is y[0], y[1], ... for the inputs
u[0], u[1], .... This is the same sequence an equivalent transfer function
produces from zero initial conditions (see
``DiscreteTransferFunction.to_state_space``). Callers that want the
observation of the advanced state call ``update_state(u)`` followed by
``get_output(u)``.

The model is not thread-safe; one owner drives it.
"""

from typing import Optional

import numpy as np

from systemmodels.systems.base.core.discrete_model_base import DiscreteModelBase
from systemmodels.systems.base.utils.model_validator import (
    DimensionError,
    StateSpaceValidator,
)
from systemmodels.types.core import (
    ArrayLike,
    ControlVector,
    DTypeLike,
    FeedthroughMatrix,
    InputMatrix,
    OutputMatrix,
    OutputVector,
    StateMatrix,
    StateVector,
)


class StateSpaceModel(DiscreteModelBase):
    """
    Discrete-time linear state-space model.

    Per-cycle stepping follows DiscreteModelBase: ``model(u)`` observes the
    current state, then advances it. ``simulate()`` and ``rollout()`` are
    inherited.

    Parameters
    ----------
    A : ArrayLike
        State transition matrix (nx, nx)
    B : ArrayLike
        Input matrix (nx, nu)
    C : ArrayLike
        Measurement matrix (ny, nx)
    D : Optional[ArrayLike]
        Direct transfer matrix (ny, nu). Zeros if omitted.
    x0 : Optional[ArrayLike]
        Initial state (nx,). Zeros if omitted.
    dtype : Optional[DTypeLike]
        Element type (default float64)

    Raises
    ------
    DimensionError
        If the matrix shapes are inconsistent
    ValidationError
        If any entry is non-numeric or non-finite

    Examples
    --------
    Discrete double integrator with position measurement:

    >>> dt = 0.1
    >>> model = StateSpaceModel(
    ...     A=[[1.0, dt], [0.0, 1.0]],
    ...     B=[[0.5 * dt**2], [dt]],
    ...     C=[[1.0, 0.0]],
    ... )
    >>> y = model(np.array([1.0]))     # observe, then advance
    >>> model.state                     # x[1]
    array([0.005, 0.1  ])
    """

    def __init__(
        self,
        A: ArrayLike,
        B: ArrayLike,
        C: ArrayLike,
        D: Optional[ArrayLike] = None,
        x0: Optional[ArrayLike] = None,
        dtype: Optional[DTypeLike] = None,
    ):
        validator = StateSpaceValidator(A, B, C, D, x0, dtype=dtype)
        result = validator.validate()

        self._dtype = validator.dtype
        self._nx = result.info["nx"]
        self._nu = result.info["nu"]
        self._ny = result.info["ny"]

        self._A = validator.arrays["A"]
        self._B = validator.arrays["B"]
        self._C = validator.arrays["C"]
        self._D = validator.arrays["D"]
        for matrix in (self._A, self._B, self._C, self._D):
            matrix.setflags(write=False)

        self._x = validator.arrays["x0"]

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def state(self) -> StateVector:
        """
        Current state vector (nx,).

        This is the live array: in-place writes (e.g. an estimator's
        correction ``model.state += K @ innovation``) change the model.
        Assigning ``model.state = x`` copies x into it after a shape check.
        """
        return self._x

    @state.setter
    def state(self, x: ArrayLike):
        x = np.asarray(x, dtype=self._dtype).reshape(-1)
        if x.shape[0] != self._nx:
            raise DimensionError(f"State must have {self._nx} elements, got {x.shape[0]}")
        self._x[:] = x

    # =========================================================================
    # Stepping
    # =========================================================================

    def update_state(self, u: Optional[ArrayLike] = None):
        """
        Advance the state in place: x ← A·x + B·u.

        Parameters
        ----------
        u : Optional[ArrayLike]
            Control vector (nu,). None means zero control.

        Raises
        ------
        DimensionError
            If u does not have nu elements
        """
        u = self._as_control(u)
        self._x[:] = self._A @ self._x + self._B @ u

    def get_output(self, u: Optional[ArrayLike] = None) -> OutputVector:
        """
        Observation of the current state, y = C·x + D·u. The state is not changed.

        Parameters
        ----------
        u : Optional[ArrayLike]
            Control vector (nu,). None means zero control.

        Returns
        -------
        OutputVector
            New array (ny,)
        """
        u = self._as_control(u)
        return self._C @ self._x + self._D @ u

    def __call__(self, u: Optional[ArrayLike] = None) -> OutputVector:
        """
        One control cycle: observe the current state, then advance it.

        Equivalent to::

            y = model.get_output(u)
            model.update_state(u)
            return y
        """
        return self._cycle(self._as_control(u))

    def _cycle(self, u: ControlVector) -> OutputVector:
        y = self._C @ self._x + self._D @ u
        self._x[:] = self._A @ self._x + self._B @ u
        return y

    def _state_view(self) -> StateVector:
        return self._x

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def A(self) -> StateMatrix:
        """State transition matrix (read-only)."""
        return self._A

    @property
    def B(self) -> InputMatrix:
        """Input matrix (read-only)."""
        return self._B

    @property
    def C(self) -> OutputMatrix:
        """Measurement matrix (read-only)."""
        return self._C

    @property
    def D(self) -> FeedthroughMatrix:
        """Direct transfer matrix (read-only)."""
        return self._D

    @property
    def nx(self) -> int:
        return self._nx

    @property
    def nu(self) -> int:
        return self._nu

    @property
    def ny(self) -> int:
        return self._ny

    @property
    def dtype(self) -> np.dtype:
        return self._dtype


__all__ = ["StateSpaceModel"]
