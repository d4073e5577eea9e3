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
systemmodels
============

Discrete-time dynamical system models for fixed-period control and
estimation loops:

- DiscreteTransferFunction: SISO rational transfer function in z⁻¹
- StateSpaceModel: linear MIMO x[k+1] = A·x + B·u, y = C·x + D·u
- NonlinearDiscreteModel: abstract nonlinear MIMO contract

Each model advances by exactly one step per call; scheduling is the
caller's job.

>>> from systemmodels import DiscreteTransferFunction
>>> tf = DiscreteTransferFunction([1.0, 0.0], [1.0, -0.5])
>>> tf(1.0)
1.0

License
-------
GNU Affero General Public License v3.0
"""

from systemmodels.systems import (
    DiscreteModelBase,
    DiscreteTransferFunction,
    NonlinearDiscreteModel,
    StateSpaceModel,
)
from systemmodels.systems.base.utils.model_validator import (
    DimensionError,
    ValidationError,
    ZeroLeadingCoefficientError,
)

__version__ = "0.1.0"

__all__ = [
    "DiscreteModelBase",
    "DiscreteTransferFunction",
    "NonlinearDiscreteModel",
    "StateSpaceModel",
    "ValidationError",
    "DimensionError",
    "ZeroLeadingCoefficientError",
]
