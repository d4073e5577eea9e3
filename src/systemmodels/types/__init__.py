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
Type definitions for discrete-time system models.

>>> from systemmodels.types import StateVector, DiscreteSimulationResult
"""

from systemmodels.types.core import (
    ArrayLike,
    CoefficientVector,
    ControlVector,
    DiscreteControlInput,
    DiscreteFeedbackPolicy,
    DTypeLike,
    FeedthroughMatrix,
    InputMatrix,
    NumpyArray,
    OutputMatrix,
    OutputVector,
    ScalarLike,
    StateMatrix,
    StateVector,
    TimeIndexedControl,
)
from systemmodels.types.trajectories import DiscreteSimulationResult
from systemmodels.types.utilities import ValidationResult

__all__ = [
    "ArrayLike",
    "CoefficientVector",
    "ControlVector",
    "DiscreteControlInput",
    "DiscreteFeedbackPolicy",
    "DTypeLike",
    "FeedthroughMatrix",
    "InputMatrix",
    "NumpyArray",
    "OutputMatrix",
    "OutputVector",
    "ScalarLike",
    "StateMatrix",
    "StateVector",
    "TimeIndexedControl",
    "DiscreteSimulationResult",
    "ValidationResult",
]
