"""Error types and warning helpers for block_matrix.

This module centralizes:
- explicit error classes with actionable messages, and
- small helpers that raise or warn with standardized text.

Every error class also derives from ValueError so callers that only care about
"bad input" can catch the builtin.
"""

from __future__ import annotations

import warnings
from typing import Final

_SHAPE_MISMATCH_MSG: Final[str] = "{name} has shape {got}; expected {expected}."
_NEGATIVE_DIMENSION_MSG: Final[str] = (
    "Matrix dimensions must be non-negative; got rows={rows}, columns={columns}."
)
_TRUNCATION_MSG: Final[str] = (
    "{operation}: truncating {operand} from {got} to {kept} {axis} to match the "
    "other operand."
)


class BlockMatrixError(Exception):
    """Base exception for block_matrix errors."""


class ShapeMismatchError(BlockMatrixError, ValueError):
    """Raised when a block grid or array is not consistently shaped."""


class SizeMismatchError(BlockMatrixError, ValueError):
    """Raised when a target matrix is too small for the requested blocks."""


class InvalidArgumentError(BlockMatrixError, ValueError):
    """Raised when a scalar argument is out of its valid range."""


class TruncationWarning(RuntimeWarning):
    """Issued when a concatenation drops cells of its larger operand."""


def raise_shape_mismatch(*, name: str, expected: object, got: object) -> None:
    """Raise a standardized ShapeMismatchError.

    Args:
        name: Name of the object with the shape issue.
        expected: Expected shape (or human-readable description).
        got: Actual observed shape.

    Raises:
        ShapeMismatchError: Always.
    """
    msg = _SHAPE_MISMATCH_MSG.format(name=name, expected=expected, got=got)
    raise ShapeMismatchError(msg)


def check_dimensions(rows: int, columns: int) -> tuple[int, int]:
    """Validate and normalize a (rows, columns) pair.

    Args:
        rows: Requested number of rows.
        columns: Requested number of columns.

    Raises:
        InvalidArgumentError: If either dimension is negative.

    Returns:
        The dimensions converted to plain ints.
    """
    rows_i = int(rows)
    columns_i = int(columns)
    if rows_i < 0 or columns_i < 0:
        raise InvalidArgumentError(
            _NEGATIVE_DIMENSION_MSG.format(rows=rows_i, columns=columns_i)
        )
    return rows_i, columns_i


def warn_truncation(
    *,
    operation: str,
    operand: str,
    axis: str,
    got: int,
    kept: int,
) -> None:
    """Issue a TruncationWarning for an append operation.

    Args:
        operation: Name of the public operation (e.g. "append_columns").
        operand: Which operand was truncated.
        axis: "rows" or "columns".
        got: Original extent along axis.
        kept: Extent kept after truncation.
    """
    warnings.warn(
        _TRUNCATION_MSG.format(
            operation=operation, operand=operand, got=got, kept=kept, axis=axis
        ),
        TruncationWarning,
        stacklevel=3,
    )
