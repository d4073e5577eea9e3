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
Trajectory Types

Result containers returned by the multi-step helpers of the models
(``simulate()`` and ``rollout()``).

All arrays are TIME-MAJOR: the first axis is the step index.
"""

from typing import Any, Dict, Optional

from typing_extensions import TypedDict

from systemmodels.types.core import ControlVector, NumpyArray, OutputVector, StateVector


class DiscreteSimulationResult(TypedDict, total=False):
    """
    Result from a discrete-time multi-step run.

    Attributes
    ----------
    states : StateVector
        State trajectory (n_steps + 1, nx), including the initial state.
        Absent for transfer functions, which have no state vector.
    controls : ControlVector
        Controls applied (n_steps, nu). For transfer functions (n_steps,).
    outputs : OutputVector
        Outputs produced (n_steps, ny). For transfer functions (n_steps,).
    time_steps : NumpyArray
        Step indices [0, 1, ..., n_steps].
    dt : Optional[float]
        Sampling period, when the model carries one.
    metadata : Dict[str, Any]
        Additional information:
        - 'method': 'simulate' or 'rollout'
        - 'closed_loop': whether a state-feedback policy was used

    Examples
    --------
    >>> result = model.simulate(np.ones((100, 1)))
    >>> result["states"].shape       # (101, nx)
    >>> result["outputs"][-1]        # last observation
    """

    states: StateVector
    controls: ControlVector
    outputs: OutputVector
    time_steps: NumpyArray
    dt: Optional[float]
    metadata: Dict[str, Any]


__all__ = ["DiscreteSimulationResult"]
