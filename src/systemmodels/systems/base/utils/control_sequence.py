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
Control Sequence Resolution
===========================

Turns the ``u_sequence`` argument of ``simulate()`` into one control per
step. Accepted forms (see DiscreteControlInput):

- None: zero control
- scalar or array (nu,): constant control (for nu == 1 a 1-D array is a
  sequence, and a single value is constant only when n_steps is given)
- sequence / array (n_steps, nu): pre-computed control u[k]
- callable: u[k] = u_func(k)
"""

from typing import Callable, Optional

import numpy as np

from systemmodels.types.core import DiscreteControlInput, DTypeLike


def resolve_n_steps(u_sequence: DiscreteControlInput, n_steps: Optional[int], nu: int) -> int:
    """
    Number of steps to run.

    An explicit ``n_steps`` always wins, but may not exceed the length of a
    pre-computed sequence. Otherwise the length of the sequence is used;
    constant, callable and None controls need ``n_steps``.

    Raises
    ------
    ValueError
        If the number of steps cannot be determined, is negative, or is
        longer than the given sequence
    """
    if n_steps is not None:
        if n_steps < 0:
            raise ValueError(f"n_steps must be non-negative, got {n_steps}")
        if u_sequence is not None and not callable(u_sequence):
            u_array = np.asarray(u_sequence)
            if not _is_constant(u_array, nu, n_steps) and u_array.shape[0] < n_steps:
                raise ValueError(
                    f"u_sequence has {u_array.shape[0]} steps, fewer than n_steps={n_steps}"
                )
        return int(n_steps)

    if u_sequence is None or callable(u_sequence):
        raise ValueError("n_steps is required when u_sequence is None or callable")

    u_array = np.asarray(u_sequence)
    if _is_constant(u_array, nu):
        raise ValueError("n_steps is required for a constant control")
    return u_array.shape[0]


def make_control_getter(
    u_sequence: DiscreteControlInput,
    nu: int,
    dtype: DTypeLike = np.float64,
    n_steps: Optional[int] = None,
) -> Callable[[int], np.ndarray]:
    """
    Build ``get_u(k)`` returning the control of step k as a (nu,) array.

    ``n_steps`` is the resolved run length; with nu == 1 it makes a
    single-element array a constant control instead of a 1-step sequence.

    Examples
    --------
    >>> get_u = make_control_getter([[1.0], [2.0]], nu=1)
    >>> get_u(1)
    array([2.])
    """
    if u_sequence is None:
        zero = np.zeros(nu, dtype=dtype)
        return lambda k: zero

    if callable(u_sequence):
        return lambda k: np.asarray(u_sequence(k), dtype=dtype).reshape(-1)

    u_array = np.asarray(u_sequence, dtype=dtype)
    if _is_constant(u_array, nu, n_steps):
        constant = u_array.reshape(-1)
        return lambda k: constant

    return lambda k: u_array[k].reshape(-1)


def _is_constant(u_array: np.ndarray, nu: int, n_steps: Optional[int] = None) -> bool:
    # A (nu,) vector is constant. With nu == 1 a 1-D array is a sequence of
    # scalar controls, unless it holds one value and n_steps is given.
    if u_array.ndim == 0:
        return True
    if u_array.ndim != 1 or u_array.shape[0] != nu:
        return False
    return nu > 1 or n_steps is not None


__all__ = ["resolve_n_steps", "make_control_getter"]
