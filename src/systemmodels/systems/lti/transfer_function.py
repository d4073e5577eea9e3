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
Discrete Transfer Function (SISO)
=================================

Single-input single-output model given as a ratio of polynomials in the
unit delay z⁻¹:

            b0 + b1·z⁻¹ + ... + b(n_num-1)·z^-(n_num-1)
    H(z) = ---------------------------------------------
            a0 + a1·z⁻¹ + ... + a(n_den-1)·z^-(n_den-1)

Each call consumes one input sample and produces one output sample:

    y[k] = (Σᵢ bᵢ·u[k-i] - Σⱼ₌₁ aⱼ·y[k-j]) / a0

The input memory holds n_num samples although the recursion reads only the
n_num - 1 newest past inputs. The oldest slot is kept but unused, so an input
leaves the memory after n_num + 1 calls while its effect on the output ends
after n_num calls.

The model is advanced by an external scheduler, one call per control
period. It is not thread-safe; one owner drives it.
"""

from typing import Optional

import numpy as np
from scipy import signal

from systemmodels.systems.base.utils.control_sequence import (
    make_control_getter,
    resolve_n_steps,
)
from systemmodels.systems.base.utils.model_validator import (
    DimensionError,
    TransferFunctionValidator,
)
from systemmodels.systems.lti.state_space import StateSpaceModel
from systemmodels.types.core import ArrayLike, CoefficientVector, DiscreteControlInput, DTypeLike, ScalarLike
from systemmodels.types.trajectories import DiscreteSimulationResult


class DiscreteTransferFunction:
    """
    Transfer function in the z-domain, expressed in z⁻¹.

    Holds the numerator, the denominator split into its leading coefficient
    a0 and the remaining terms, and two history buffers ordered
    most-recent-first:

    - input memory: the n_num most recent inputs
    - output memory: the n_den - 1 most recent outputs

    Orders are fixed by the coefficient vectors given at construction.

    Parameters
    ----------
    num : ArrayLike
        Numerator coefficients [b0, b1, ...], length n_num >= 1
    den : ArrayLike
        Denominator coefficients [a0, a1, ...], length n_den >= 1, a0 != 0
    dtype : DTypeLike, optional
        Element type (default float64)

    Raises
    ------
    DimensionError
        If a coefficient vector is empty or not a vector
    ZeroLeadingCoefficientError
        If den[0] == 0
    ValidationError
        If coefficients are non-numeric or non-finite

    Examples
    --------
    First-order low-pass y[k] = u[k] + 0.5·y[k-1]:

    >>> tf = DiscreteTransferFunction([1.0, 0.0], [1.0, -0.5])
    >>> [tf(1.0) for _ in range(3)]
    [1.0, 1.5, 1.75]
    >>> tf.dc_gain()
    2.0
    """

    def __init__(
        self,
        num: ArrayLike,
        den: ArrayLike,
        dtype: Optional[DTypeLike] = None,
    ):
        validator = TransferFunctionValidator(num=num, den=den, dtype=dtype)
        validator.validate()

        self._dtype = validator.dtype
        self._num = validator.arrays["num"]
        self._den_coef = validator.arrays["den"][0]
        self._den = validator.arrays["den"][1:].copy()

        self._mem_input = np.zeros(self.n_num, dtype=self._dtype)
        self._mem_output = np.zeros(self.n_den - 1, dtype=self._dtype)
        self._output = self._dtype.type(0)

    @classmethod
    def from_orders(
        cls,
        n_num: int,
        n_den: int,
        dtype: Optional[DTypeLike] = None,
    ) -> "DiscreteTransferFunction":
        """
        Zero-initialized model of the given orders.

        The numerator is all zeros and the denominator is [1, 0, ..., 0],
        so the model outputs zero until coefficients are set with
        ``set_num`` / ``set_den``.

        Examples
        --------
        >>> tf = DiscreteTransferFunction.from_orders(3, 2)
        >>> tf.set_num([0.2, 0.3, 0.1])
        >>> tf.set_den([1.0, -0.4])
        """
        if n_num < 1 or n_den < 1:
            raise DimensionError(
                f"n_num and n_den must be >= 1, got n_num={n_num}, n_den={n_den}"
            )
        den = np.zeros(n_den)
        den[0] = 1.0
        return cls(np.zeros(n_num), den, dtype=dtype)

    # =========================================================================
    # Stepping
    # =========================================================================

    def __call__(self, u: ScalarLike) -> float:
        """
        Apply the transfer function to the next input sample.

        Parameters
        ----------
        u : ScalarLike
            Current input u[k] (a scalar or any size-1 array)

        Returns
        -------
        float
            Current output y[k]
        """
        u = np.asarray(u, dtype=self._dtype).item()

        # num[1:] pairs with the n_num - 1 most recent inputs
        y = (
            self._num[0] * u
            + np.dot(self._num[1:], self._mem_input[: self.n_num - 1])
            - np.dot(self._den, self._mem_output)
        ) / self._den_coef

        self._shift_memory(self._mem_input, u)
        self._shift_memory(self._mem_output, y)
        self._output = self._dtype.type(y)
        return self._output.item()

    @staticmethod
    def _shift_memory(memory: np.ndarray, value: ScalarLike):
        """Drop the oldest entry and insert ``value`` at the front, in place."""
        if memory.shape[0] == 0:
            return
        memory[1:] = memory[:-1]
        memory[0] = value

    def clear_memory(self):
        """
        Zero both history buffers.

        Coefficients are kept. Use after a coefficient change or to drop a
        stale transient response.
        """
        self._mem_input.fill(0)
        self._mem_output.fill(0)
        self._output = self._dtype.type(0)

    def simulate(
        self,
        u_sequence: DiscreteControlInput,
        n_steps: Optional[int] = None,
    ) -> DiscreteSimulationResult:
        """
        Feed a sequence of inputs, one call per step.

        The model's memory carries over: starting from a cleared model gives
        the zero-initial-condition response.

        Parameters
        ----------
        u_sequence : DiscreteControlInput
            Scalar (constant input), 1-D sequence, callable u_func(k), or None
        n_steps : Optional[int]
            Number of steps (default: length of the sequence)

        Returns
        -------
        DiscreteSimulationResult
            'controls' (n_steps,), 'outputs' (n_steps,), 'time_steps'
            (n_steps + 1,) and metadata

        Examples
        --------
        >>> tf.clear_memory()
        >>> result = tf.simulate(1.0, n_steps=50)
        >>> result["outputs"][-1]    # approaches tf.dc_gain()
        """
        n_steps = resolve_n_steps(u_sequence, n_steps, nu=1)
        get_u = make_control_getter(u_sequence, nu=1, dtype=self._dtype, n_steps=n_steps)

        controls = np.zeros(n_steps, dtype=self._dtype)
        outputs = np.zeros(n_steps, dtype=self._dtype)
        for k in range(n_steps):
            u = get_u(k).item()
            controls[k] = u
            outputs[k] = self(u)

        return {
            "controls": controls,
            "outputs": outputs,
            "time_steps": np.arange(n_steps + 1),
            "dt": None,
            "metadata": {"method": "simulate", "closed_loop": False},
        }

    # =========================================================================
    # Coefficients
    # =========================================================================

    def set_num(self, num: ArrayLike):
        """Replace the numerator. Length must stay n_num; history is kept."""
        validator = TransferFunctionValidator(num=num, n_num=self.n_num, dtype=self._dtype)
        validator.validate()
        self._num = validator.arrays["num"]

    def set_den(self, den: ArrayLike):
        """
        Replace the denominator. Length must stay n_den; history is kept.

        Raises
        ------
        ZeroLeadingCoefficientError
            If den[0] == 0. The previous coefficients stay in place.
        """
        validator = TransferFunctionValidator(den=den, n_den=self.n_den, dtype=self._dtype)
        validator.validate()
        self._den_coef = validator.arrays["den"][0]
        self._den = validator.arrays["den"][1:].copy()

    def get_num(self) -> CoefficientVector:
        """Numerator coefficients [b0, ..., b(n_num-1)] (a copy)."""
        return self._num.copy()

    def get_den(self) -> CoefficientVector:
        """Denominator coefficients without the leading one, [a1, ...] (a copy)."""
        return self._den.copy()

    def get_den_current(self) -> float:
        """Leading denominator coefficient a0, generally normalized to 1."""
        return self._den_coef.item()

    def get_output(self) -> float:
        """Last computed output (0 before the first step), no recomputation."""
        return self._output.item()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def n_num(self) -> int:
        """Numerator length."""
        return self._num.shape[0]

    @property
    def n_den(self) -> int:
        """Denominator length, including the leading coefficient."""
        return self._den.shape[0] + 1

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def input_memory(self) -> np.ndarray:
        """The n_num most recent inputs, most recent first (a copy)."""
        return self._mem_input.copy()

    @property
    def output_memory(self) -> np.ndarray:
        """The n_den - 1 most recent outputs, most recent first (a copy)."""
        return self._mem_output.copy()

    # =========================================================================
    # Conversions
    # =========================================================================

    def dc_gain(self) -> float:
        """
        Steady-state gain H(1) = Σb / Σa.

        The output converges to dc_gain() · u for a constant input u when
        the model is stable.

        Raises
        ------
        ValueError
            If Σa == 0 (pole at z = 1, e.g. an integrator)
        """
        den_sum = self._den_coef + np.sum(self._den)
        if den_sum == 0:
            raise ValueError("Denominator sums to zero (pole at z = 1); DC gain is unbounded")
        return (np.sum(self._num) / den_sum).item()

    def to_state_space(self) -> StateSpaceModel:
        """
        Controllable canonical state-space realization of this model.

        Coefficients are padded to a common length and passed to
        ``scipy.signal.tf2ss``. The returned model starts from a zero state,
        so ``model(u)`` reproduces the outputs of a cleared transfer function
        fed the same inputs.

        Returns
        -------
        StateSpaceModel
            Model with nu = ny = 1 and nx = max(n_num, n_den) - 1

        Raises
        ------
        ValueError
            If both orders are 1 (a static gain has no state)

        Examples
        --------
        >>> ss = DiscreteTransferFunction([1.0, 0.0], [1.0, -0.5]).to_state_space()
        >>> [ss(np.array([1.0]))[0] for _ in range(3)]
        [1.0, 1.5, 1.75]
        """
        n = max(self.n_num, self.n_den)
        if n == 1:
            raise ValueError("A static gain (n_num = n_den = 1) has no state-space states")

        num = np.zeros(n, dtype=self._dtype)
        num[: self.n_num] = self._num
        den = np.zeros(n, dtype=self._dtype)
        den[0] = self._den_coef
        den[1 : self.n_den] = self._den

        A, B, C, D = signal.tf2ss(num, den)
        return StateSpaceModel(A, B, C, D, dtype=self._dtype)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(num={self._num.tolist()}, "
            f"den={[self._den_coef.item()] + self._den.tolist()})"
        )


__all__ = ["DiscreteTransferFunction"]
