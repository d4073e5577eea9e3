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
Utilities shared by the models: parameter validation and control
sequence resolution.
"""

from systemmodels.systems.base.utils.control_sequence import (
    make_control_getter,
    resolve_n_steps,
)
from systemmodels.systems.base.utils.model_validator import (
    DimensionError,
    ModelValidator,
    StateSpaceValidator,
    TransferFunctionValidator,
    ValidationError,
    ZeroLeadingCoefficientError,
)

__all__ = [
    "make_control_getter",
    "resolve_n_steps",
    "DimensionError",
    "ModelValidator",
    "StateSpaceValidator",
    "TransferFunctionValidator",
    "ValidationError",
    "ZeroLeadingCoefficientError",
]
