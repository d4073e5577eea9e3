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
Core Types - Fundamental Building Blocks

Semantic names for the arrays that flow through the discrete-time models:
- State, control and output vectors
- State-space matrices (A, B, C, D)
- Transfer function coefficient vectors
- Control inputs and feedback policies accepted by simulate()/rollout()

All models store NumPy arrays internally. The aliases carry mathematical
meaning only; they do not enforce shapes (shapes are checked by the model
validators at construction time).

Usage
-----
>>> from systemmodels.types.core import (
...     StateVector,
...     ControlVector,
...     StateMatrix,
... )
>>>
>>> def predict(A: StateMatrix, x: StateVector) -> StateVector:
...     return A @ x
"""

from typing import Callable, Sequence, Union

import numpy as np
import numpy.typing as npt

# ============================================================================
# Basic Array Types
# ============================================================================

ArrayLike = npt.ArrayLike
"""
Anything NumPy can turn into an array: lists, tuples, scalars, ndarrays.

Constructors and step methods accept ArrayLike and convert with
``np.asarray``.
"""

NumpyArray = np.ndarray
"""Pure NumPy array (what the models store and return)."""

ScalarLike = Union[float, int, np.number]
"""
Scalar value.

Examples
--------
>>> dt: ScalarLike = 0.01
>>> u: ScalarLike = np.float64(1.0)
"""

DTypeLike = npt.DTypeLike
"""Element type of a model (``np.float64`` by default)."""


# ============================================================================
# Vector Types - Semantic Naming by Role
# ============================================================================

StateVector = NumpyArray
"""
State vector x ∈ ℝⁿˣ.

Shapes:
- Single state: (nx,)
- Trajectory: (n_steps + 1, nx), time-major

Examples
--------
>>> x: StateVector = np.array([3.0, 4.0])
"""

ControlVector = NumpyArray
"""
Control input vector u ∈ ℝⁿᵘ.

Shapes:
- Single control: (nu,)
- Control sequence: (n_steps, nu), time-major
"""

OutputVector = NumpyArray
"""
Output/observation/measurement vector y ∈ ℝⁿʸ.

Shapes:
- Single output: (ny,)
- Output sequence: (n_steps, ny), time-major
"""

CoefficientVector = NumpyArray
"""
Polynomial coefficients in the unit delay z⁻¹, lowest delay first.

[b0, b1, b2] represents b0 + b1·z⁻¹ + b2·z⁻².
"""


# ============================================================================
# Matrix Types
# ============================================================================

StateMatrix = NumpyArray
"""State transition matrix A (nx, nx): x[k+1] = A·x[k] + B·u[k]."""

InputMatrix = NumpyArray
"""Input matrix B (nx, nu)."""

OutputMatrix = NumpyArray
"""Measurement matrix C (ny, nx): y[k] = C·x[k] + D·u[k]."""

FeedthroughMatrix = NumpyArray
"""Direct transfer matrix D (ny, nu). Zero for strictly proper systems."""


# ============================================================================
# Control Inputs
# ============================================================================

TimeIndexedControl = Callable[[int], ArrayLike]
"""
Open-loop control as a function of the step index: u[k] = u_func(k).

Examples
--------
>>> def u_func(k: int) -> np.ndarray:
...     return np.array([np.sin(0.1 * k)])
"""

DiscreteFeedbackPolicy = Callable[[StateVector, int], ArrayLike]
"""
Closed-loop policy u[k] = policy(x[k], k), used by rollout().

Examples
--------
>>> K = np.array([[0.5, 1.0]])
>>> def policy(x: StateVector, k: int) -> ControlVector:
...     return -K @ x
"""

DiscreteControlInput = Union[ArrayLike, Sequence[ArrayLike], TimeIndexedControl, None]
"""
Control argument accepted by simulate():

- None: zero control
- Array (nu,) or scalar: constant control
- Sequence / array (n_steps, nu): pre-computed sequence
- Callable: u[k] = u_func(k)
"""


__all__ = [
    # Arrays
    "ArrayLike",
    "NumpyArray",
    "ScalarLike",
    "DTypeLike",
    # Vectors
    "StateVector",
    "ControlVector",
    "OutputVector",
    "CoefficientVector",
    # Matrices
    "StateMatrix",
    "InputMatrix",
    "OutputMatrix",
    "FeedthroughMatrix",
    # Control inputs
    "TimeIndexedControl",
    "DiscreteFeedbackPolicy",
    "DiscreteControlInput",
]
