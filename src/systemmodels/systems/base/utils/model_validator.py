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
Model Validator
===============

Construction-time validation of model parameters.

The models encode their orders (n_num, n_den) and dimensions (nx, nu, ny)
in the arrays they are given, so every dimension check that a statically
sized matrix type would perform at build time happens here, before a model
instance exists. A model is never built from parameters that fail
validation.

Each validator collects every problem it finds, then either returns a
ValidationResult or raises a single exception listing them all. Non-fatal
findings are issued as UserWarning.
"""

import warnings
from typing import Dict, List, Optional, Tuple, Type

import numpy as np

from systemmodels.types.core import ArrayLike, DTypeLike
from systemmodels.types.utilities import ValidationResult

# Leading denominator coefficients smaller than this fraction of the largest
# coefficient make every step divide by a near-zero value.
ILL_CONDITIONED_RATIO = 1e-12


# ============================================================================
# Exceptions
# ============================================================================


class ValidationError(ValueError):
    """Raised when model parameters fail validation"""
    pass


class DimensionError(ValidationError):
    """Raised when array shapes disagree with the model order/dimensions"""
    pass


class ZeroLeadingCoefficientError(ValidationError):
    """Raised when the leading denominator coefficient is zero"""
    pass


# ============================================================================
# Base Validator
# ============================================================================


class ModelValidator:
    """
    Base class for parameter validators.

    Subclasses implement ``_run_checks()`` and record problems with
    ``_add_error()`` / ``_add_warning()``. Converted arrays are stored in
    ``self.arrays`` so the model can keep exactly what was validated.

    Examples
    --------
    >>> validator = StateSpaceValidator(A, B, C)
    >>> result = validator.validate(raise_on_error=False)
    >>> if not result.is_valid:
    ...     print(result.errors)
    """

    _model_name = "Model"

    def __init__(self, dtype: Optional[DTypeLike] = None):
        self.dtype = np.dtype(np.float64 if dtype is None else dtype)
        self.arrays: Dict[str, np.ndarray] = {}
        self._errors: List[Tuple[Type[ValidationError], str]] = []
        self._warnings: List[str] = []
        self._info: Dict = {}

    # ========================================================================
    # Public API
    # ========================================================================

    def validate(self, raise_on_error: bool = True) -> ValidationResult:
        """
        Validate the parameters.

        Parameters
        ----------
        raise_on_error : bool
            If True, raise on validation failure.
            If False, return a ValidationResult with the errors.

        Returns
        -------
        ValidationResult
            Validation results with errors, warnings, and info

        Raises
        ------
        DimensionError
            If the first problem found is a shape/length mismatch
        ZeroLeadingCoefficientError
            If the first problem found is a zero leading denominator
        ValidationError
            For any other failure (non-numeric or non-finite values)
        """
        self.arrays = {}
        self._errors = []
        self._warnings = []
        self._info = {"dtype": str(self.dtype)}

        if np.issubdtype(self.dtype, np.integer):
            self._add_warning(
                f"dtype {self.dtype} is an integer type; step results will be truncated"
            )

        self._run_checks()

        is_valid = len(self._errors) == 0
        result = ValidationResult(
            is_valid=is_valid,
            errors=[message for _, message in self._errors],
            warnings=self._warnings.copy(),
            info=dict(self._info),
        )

        if result.warnings:
            self._issue_warnings(result.warnings)

        if not is_valid and raise_on_error:
            error_type = self._errors[0][0]
            raise error_type(self._format_error_message())

        return result

    # ========================================================================
    # Hooks and Helpers
    # ========================================================================

    def _run_checks(self):
        raise NotImplementedError

    def _add_error(self, message: str, error_type: Type[ValidationError] = ValidationError):
        self._errors.append((error_type, message))

    def _add_warning(self, message: str):
        self._warnings.append(message)

    def _convert(self, name: str, value: ArrayLike) -> Optional[np.ndarray]:
        """Convert to a finite array of the model dtype, or record an error."""
        try:
            array = np.array(value, dtype=self.dtype)
        except (TypeError, ValueError) as e:
            self._add_error(f"{name} could not be converted to a numeric array: {e}")
            return None

        if np.issubdtype(array.dtype, np.inexact) and not np.all(np.isfinite(array)):
            self._add_error(f"{name} contains non-finite values (NaN or inf)")
            return None

        return array

    def _convert_vector(self, name: str, value: ArrayLike) -> Optional[np.ndarray]:
        """Convert to 1-D; row and column vectors are flattened."""
        array = self._convert(name, value)
        if array is None:
            return None

        if array.ndim == 2 and 1 in array.shape:
            array = array.reshape(-1)
        elif array.ndim != 1:
            self._add_error(
                f"{name} must be a vector (n,), (n, 1) or (1, n), got shape {array.shape}",
                DimensionError,
            )
            return None
        return array

    def _convert_matrix(self, name: str, value: ArrayLike) -> Optional[np.ndarray]:
        array = self._convert(name, value)
        if array is None:
            return None

        if array.ndim != 2:
            self._add_error(
                f"{name} must be a 2-D matrix, got {array.ndim}-D array with shape {array.shape}",
                DimensionError,
            )
            return None
        return array

    def _issue_warnings(self, warnings_list: List[str]):
        """Issue Python warnings for validation warnings"""
        for warning in warnings_list:
            warnings.warn(f"Model validation warning: {warning}", UserWarning, stacklevel=4)

    def _format_error_message(self) -> str:
        """Format error messages in a readable way"""
        msg = f"{self._model_name} validation failed:\n\n"
        msg += "Errors:\n"
        msg += "\n".join(f"  • {message}" for _, message in self._errors)

        if self._warnings:
            msg += "\n\nWarnings:\n"
            msg += "\n".join(f"  • {warning}" for warning in self._warnings)
        return msg

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(dtype={self.dtype})"


# ============================================================================
# State-Space Validator
# ============================================================================


class StateSpaceValidator(ModelValidator):
    """
    Validates the matrices of x[k+1] = A·x[k] + B·u[k], y[k] = C·x[k] + D·u[k].

    Dimensions are taken from the matrices themselves:
    nx from A, nu from the columns of B, ny from the rows of C. D defaults
    to zeros (ny, nu) and x0 to zeros (nx,).

    After ``validate()``, ``arrays`` holds 'A', 'B', 'C', 'D' and 'x0'
    and ``info`` holds 'nx', 'nu', 'ny'.

    Examples
    --------
    >>> validator = StateSpaceValidator(np.eye(2), np.zeros((2, 1)), [[1.0, 0.0]])
    >>> result = validator.validate()
    >>> result.info["nx"], result.info["nu"], result.info["ny"]
    (2, 1, 1)
    """

    _model_name = "State-space model"

    def __init__(
        self,
        A: ArrayLike,
        B: ArrayLike,
        C: ArrayLike,
        D: Optional[ArrayLike] = None,
        x0: Optional[ArrayLike] = None,
        dtype: Optional[DTypeLike] = None,
    ):
        super().__init__(dtype)
        self._A = A
        self._B = B
        self._C = C
        self._D = D
        self._x0 = x0

    def _run_checks(self):
        A = self._convert_matrix("A", self._A)
        B = self._convert_matrix("B", self._B)
        C = self._convert_matrix("C", self._C)
        D = self._convert_matrix("D", self._D) if self._D is not None else None
        x0 = self._convert_vector("x0", self._x0) if self._x0 is not None else None

        if A is None or B is None or C is None:
            return

        nx = A.shape[0]
        nu = B.shape[1]
        ny = C.shape[0]

        if A.shape[0] != A.shape[1]:
            self._add_error(f"A must be square, got shape {A.shape}", DimensionError)
        if nx == 0:
            self._add_error("A must have at least one state (nx >= 1)", DimensionError)
        if B.shape[0] != nx:
            self._add_error(
                f"B must have {nx} rows to match A, got shape {B.shape}", DimensionError
            )
        if C.shape[1] != nx:
            self._add_error(
                f"C must have {nx} columns to match A, got shape {C.shape}", DimensionError
            )
        if ny == 0:
            self._add_error("C must have at least one output row (ny >= 1)", DimensionError)

        if self._D is None:
            D = np.zeros((ny, nu), dtype=self.dtype)
        elif D is not None and D.shape != (ny, nu):
            self._add_error(
                f"D must have shape ({ny}, {nu}) to match C and B, got {D.shape}",
                DimensionError,
            )

        if self._x0 is None:
            x0 = np.zeros(nx, dtype=self.dtype)
        elif x0 is not None and x0.shape != (nx,):
            self._add_error(
                f"x0 must have {nx} elements to match A, got shape {x0.shape}",
                DimensionError,
            )

        self._info.update({"nx": nx, "nu": nu, "ny": ny})
        self.arrays = {"A": A, "B": B, "C": C, "D": D, "x0": x0}


# ============================================================================
# Transfer Function Validator
# ============================================================================


class TransferFunctionValidator(ModelValidator):
    """
    Validates transfer function coefficients in the unit delay z⁻¹.

    Either coefficient vector may be omitted, so setters can validate only
    what they replace. When ``n_num`` / ``n_den`` are given, the vectors
    must have exactly that length (the order of an existing model never
    changes).

    After ``validate()``, ``arrays`` holds 'num' and/or 'den'.

    Examples
    --------
    >>> TransferFunctionValidator(num=[1.0, 0.0], den=[0.0, 1.0]).validate()
    Traceback (most recent call last):
    ...
    ZeroLeadingCoefficientError: ...
    """

    _model_name = "Transfer function"

    def __init__(
        self,
        num: Optional[ArrayLike] = None,
        den: Optional[ArrayLike] = None,
        n_num: Optional[int] = None,
        n_den: Optional[int] = None,
        dtype: Optional[DTypeLike] = None,
    ):
        super().__init__(dtype)
        self._num = num
        self._den = den
        self._n_num = n_num
        self._n_den = n_den

    def _run_checks(self):
        if self._num is not None:
            num = self._check_coefficients("num", self._num, self._n_num)
            if num is not None:
                self.arrays["num"] = num
                self._info["n_num"] = num.shape[0]

        if self._den is not None:
            den = self._check_coefficients("den", self._den, self._n_den)
            if den is not None:
                self.arrays["den"] = den
                self._info["n_den"] = den.shape[0]
                self._check_leading_coefficient(den)

    def _check_coefficients(
        self, name: str, value: ArrayLike, expected: Optional[int]
    ) -> Optional[np.ndarray]:
        coefficients = self._convert_vector(name, value)
        if coefficients is None:
            return None

        if coefficients.shape[0] == 0:
            self._add_error(f"{name} must have at least one coefficient", DimensionError)
            return None
        if expected is not None and coefficients.shape[0] != expected:
            self._add_error(
                f"{name} must have {expected} coefficients to match the model order, "
                f"got {coefficients.shape[0]}",
                DimensionError,
            )
            return None
        return coefficients

    def _check_leading_coefficient(self, den: np.ndarray):
        leading = den[0]
        if leading == 0:
            self._add_error(
                "Leading denominator coefficient den[0] must be non-zero "
                "(every step divides by it)",
                ZeroLeadingCoefficientError,
            )
            return

        scale = np.max(np.abs(den))
        if self._num is not None and "num" in self.arrays:
            scale = max(scale, np.max(np.abs(self.arrays["num"])))
        if abs(leading) < ILL_CONDITIONED_RATIO * scale:
            self._add_warning(
                f"Leading denominator coefficient {leading!r} is tiny relative to the "
                f"other coefficients (max |c| = {scale!r}); outputs may overflow"
            )


__all__ = [
    "ValidationError",
    "DimensionError",
    "ZeroLeadingCoefficientError",
    "ModelValidator",
    "StateSpaceValidator",
    "TransferFunctionValidator",
    "ILL_CONDITIONED_RATIO",
]
