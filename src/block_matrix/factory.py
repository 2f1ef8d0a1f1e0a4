"""Factory for dense and sparse 2D matrices.

:class:`BlockMatrixFactory` builds :class:`~block_matrix.matrix2d.Matrix2D`
instances of one storage kind and offers the usual construction helpers:

- allocation from a shape, a nested array or a column-major packed array,
- concatenation (append rows/columns) and block composition,
- diagonal/identity builders,
- debug fills (ascending/descending), tiling, uniform random fills and
  exact-count random sampling.

Every builder is written in terms of ``make``, ``view_part`` / ``view_row`` /
``view_column`` and ``assign``, so the storage kind only matters inside
``make``. Two ready-made factories are exported: :data:`DENSE` and
:data:`SPARSE`.
"""

from __future__ import annotations

import warnings
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import DTypeLike, NDArray

from . import block_ops
from .errors import (
    InvalidArgumentError,
    ShapeMismatchError,
    check_dimensions,
    warn_truncation,
)
from .matrix2d import DEFAULT_DTYPE, Matrix2D, MatrixKind, resolve_dtype, resolve_kind
from .sampling import (
    SamplingConfig,
    clamp_fraction,
    mersenne_twister,
    round_half_up,
    sample_indices,
    uniform_open,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .block_ops import BlockGrid


# =============================================================================
# Error message constants
# =============================================================================

_PACKED_LENGTH_ERROR = (
    "Array length must be a multiple of m. Got length {length} for rows={rows}."
)
_NOT_RECTANGULAR_ERROR = "All rows of array must have same number of columns."
_VECTOR_1D_ERROR = "vector must be 1D; got ndim={ndim}"
_REPEAT_ERROR = "Repeat counts must be non-negative; got ({rows}, {columns})"
_FRACTION_CLAMPED_MSG = "non_zero_fraction {value} clamped to {clamped}"
_BIDIAGONAL_EMPTY_ERROR = "compose_bidiagonal requires A to have at least one row"


class BlockMatrixFactory:
    """Builds matrices of a single storage kind and element dtype.

    Args:
        kind: Storage strategy for every matrix built by ``make``.
        dtype: Floating element dtype.
        sampling: Seed and tolerance used by :meth:`sample`.
        random_seed: Seed for :meth:`random`; None draws from OS entropy.
    """

    __slots__ = ("_dtype", "_kind", "_rng", "_sampling")

    def __init__(
        self,
        kind: MatrixKind | str = MatrixKind.DENSE,
        *,
        dtype: DTypeLike = DEFAULT_DTYPE,
        sampling: SamplingConfig | None = None,
        random_seed: int | None = None,
    ) -> None:
        self._kind = resolve_kind(kind)
        self._dtype = resolve_dtype(dtype)
        self._sampling = sampling if sampling is not None else SamplingConfig()
        self._rng = mersenne_twister(random_seed)

    @property
    def kind(self) -> MatrixKind:
        """Storage strategy of matrices built by this factory."""
        return self._kind

    @property
    def dtype(self) -> np.dtype[Any]:
        """Element dtype of matrices built by this factory."""
        return self._dtype

    @property
    def sampling(self) -> SamplingConfig:
        """Sampling configuration."""
        return self._sampling

    def __repr__(self) -> str:
        kind = self._kind.value
        return f"BlockMatrixFactory(kind={kind!r}, dtype={self._dtype.name})"

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def make(self, rows: int, columns: int, fill: float = 0.0) -> Matrix2D:
        """Construct a matrix of the given shape.

        Args:
            rows: Number of rows.
            columns: Number of columns.
            fill: Initial value of every cell.

        Returns:
            New rows x columns matrix.
        """
        matrix = Matrix2D.zeros(rows, columns, kind=self._kind, dtype=self._dtype)
        if fill != 0:
            matrix.assign(fill)
        return matrix

    def make_from_values(
        self, values: Sequence[Sequence[float]] | NDArray[Any]
    ) -> Matrix2D:
        """Construct a matrix from ``values[row][column]``; values are copied.

        Raises:
            ShapeMismatchError: If the rows of values differ in length.
        """
        if not isinstance(values, np.ndarray) and len({len(r) for r in values}) > 1:
            raise ShapeMismatchError(_NOT_RECTANGULAR_ERROR)
        arr = np.asarray(values, dtype=self._dtype)
        if arr.ndim == 1 and arr.size == 0:
            arr = arr.reshape(0, 0)
        return Matrix2D.from_array(arr, kind=self._kind, dtype=self._dtype)

    def make_from_packed(
        self, values: Sequence[float] | NDArray[Any], rows: int
    ) -> Matrix2D:
        """Construct a matrix from a column-major (Fortran order) packed array.

        ``matrix.get(row, column) == values[row + column * rows]``.

        Raises:
            InvalidArgumentError: If len(values) is not a multiple of rows.
        """
        flat = np.asarray(values, dtype=self._dtype).ravel()
        rows_i = int(rows)
        columns = flat.shape[0] // rows_i if rows_i != 0 else 0
        if rows_i < 0 or rows_i * columns != flat.shape[0]:
            raise InvalidArgumentError(
                _PACKED_LENGTH_ERROR.format(length=flat.shape[0], rows=rows_i)
            )
        return Matrix2D.from_array(
            flat.reshape((rows_i, columns), order="F"),
            kind=self._kind,
            dtype=self._dtype,
        )

    def make_vector(self, size: int) -> NDArray[np.floating]:
        """Construct a zero vector of the factory dtype."""
        size_i, _ = check_dimensions(size, 0)
        return np.zeros(size_i, dtype=self._dtype)

    # ------------------------------------------------------------------
    # Concatenation
    # ------------------------------------------------------------------

    def append_column(self, a: Matrix2D, b: Sequence[float] | NDArray[Any]) -> Matrix2D:
        """C = A||b; append vector b as a new last column.

        Both operands are cut to their shared number of rows.
        """
        vec = self._as_vector(b)
        if vec.shape[0] > a.rows:
            warn_truncation(
                operation="append_column",
                operand="b",
                axis="rows",
                got=vec.shape[0],
                kept=a.rows,
            )
            vec = vec[: a.rows]
        elif vec.shape[0] < a.rows:
            warn_truncation(
                operation="append_column",
                operand="A",
                axis="rows",
                got=a.rows,
                kept=vec.shape[0],
            )
            a = a.view_part(0, 0, vec.shape[0], a.columns)

        r, ac = a.shape
        matrix = self.make(r, ac + 1)
        matrix.view_part(0, 0, r, ac).assign(a)
        matrix.view_column(ac).assign(vec)
        return matrix

    def append_columns(self, a: Matrix2D, b: Matrix2D) -> Matrix2D:
        """C = A||B; column-wise concatenation cut to the shared number of rows."""
        if b.rows > a.rows:
            warn_truncation(
                operation="append_columns",
                operand="B",
                axis="rows",
                got=b.rows,
                kept=a.rows,
            )
            b = b.view_part(0, 0, a.rows, b.columns)
        elif b.rows < a.rows:
            warn_truncation(
                operation="append_columns",
                operand="A",
                axis="rows",
                got=a.rows,
                kept=b.rows,
            )
            a = a.view_part(0, 0, b.rows, a.columns)

        r, ac = a.shape
        bc = b.columns
        matrix = self.make(r, ac + bc)
        matrix.view_part(0, 0, r, ac).assign(a)
        matrix.view_part(0, ac, r, bc).assign(b)
        return matrix

    def append_row(self, a: Matrix2D, b: Sequence[float] | NDArray[Any]) -> Matrix2D:
        """C = A over b; append vector b as a new last row.

        Both operands are cut to their shared number of columns.
        """
        vec = self._as_vector(b)
        if vec.shape[0] > a.columns:
            warn_truncation(
                operation="append_row",
                operand="b",
                axis="columns",
                got=vec.shape[0],
                kept=a.columns,
            )
            vec = vec[: a.columns]
        elif vec.shape[0] < a.columns:
            warn_truncation(
                operation="append_row",
                operand="A",
                axis="columns",
                got=a.columns,
                kept=vec.shape[0],
            )
            a = a.view_part(0, 0, a.rows, vec.shape[0])

        ar, c = a.shape
        matrix = self.make(ar + 1, c)
        matrix.view_part(0, 0, ar, c).assign(a)
        matrix.view_row(ar).assign(vec)
        return matrix

    def append_rows(self, a: Matrix2D, b: Matrix2D) -> Matrix2D:
        """C = A over B; row-wise concatenation cut to the shared number of columns."""
        if b.columns > a.columns:
            warn_truncation(
                operation="append_rows",
                operand="B",
                axis="columns",
                got=b.columns,
                kept=a.columns,
            )
            b = b.view_part(0, 0, b.rows, a.columns)
        elif b.columns < a.columns:
            warn_truncation(
                operation="append_rows",
                operand="A",
                axis="columns",
                got=a.columns,
                kept=b.columns,
            )
            a = a.view_part(0, 0, a.rows, b.columns)

        ar, c = a.shape
        br = b.rows
        matrix = self.make(ar + br, c)
        matrix.view_part(0, 0, ar, c).assign(a)
        matrix.view_part(ar, 0, br, c).assign(b)
        return matrix

    # ------------------------------------------------------------------
    # Block algebra
    # ------------------------------------------------------------------

    def compose(self, parts: BlockGrid) -> Matrix2D:
        """Concatenate a block grid into a new matrix of this factory's kind.

        See :func:`block_matrix.block_ops.compose`.
        """
        return block_ops.compose(parts, make=self.make)

    def decompose(self, parts: BlockGrid, matrix: Matrix2D) -> None:
        """Copy blocks of matrix into the present parts, in place.

        See :func:`block_matrix.block_ops.decompose`.
        """
        block_ops.decompose(parts, matrix)

    def compose_diagonal(
        self, a: Matrix2D, b: Matrix2D, c: Matrix2D | None = None
    ) -> Matrix2D:
        """Direct sum of two or three matrices.

        ::

            A 0 0
            0 B 0
            0 0 C

        Returns:
            New matrix with the operands on the block diagonal, zeros elsewhere.
        """
        operands = [a, b] if c is None else [a, b, c]
        matrix = self.make(
            sum(m.rows for m in operands), sum(m.columns for m in operands)
        )
        r = 0
        col = 0
        for m in operands:
            matrix.view_part(r, col, m.rows, m.columns).assign(m)
            r += m.rows
            col += m.columns
        return matrix

    def compose_bidiagonal(self, a: Matrix2D, b: Matrix2D) -> Matrix2D:
        """Block-diagonal sum of A and B sharing one row at the seam.

        The result has ``A.rows + B.rows - 1`` rows and ``A.columns + B.columns``
        columns. B is written after A, starting at ``(A.rows - 1, A.columns)``.

        Raises:
            InvalidArgumentError: If A has no rows.
        """
        ar, ac = a.shape
        br, bc = b.shape
        if ar == 0:
            raise InvalidArgumentError(_BIDIAGONAL_EMPTY_ERROR)
        matrix = self.make(ar + br - 1, ac + bc)
        matrix.view_part(0, 0, ar, ac).assign(a)
        matrix.view_part(ar - 1, ac, br, bc).assign(b)
        return matrix

    def repeat(self, a: Matrix2D, row_repeat: int, column_repeat: int) -> Matrix2D:
        """C = A||A||..||A; tile A row_repeat x column_repeat times.

        Raises:
            InvalidArgumentError: If a repeat count is negative.
        """
        if row_repeat < 0 or column_repeat < 0:
            raise InvalidArgumentError(
                _REPEAT_ERROR.format(rows=row_repeat, columns=column_repeat)
            )
        r, c = a.shape
        matrix = self.make(r * row_repeat, c * column_repeat)
        for i in range(row_repeat):
            for j in range(column_repeat):
                matrix.view_part(r * i, c * j, r, c).assign(a)
        return matrix

    # ------------------------------------------------------------------
    # Diagonals
    # ------------------------------------------------------------------

    def diagonal(self, vector: Sequence[float] | NDArray[Any]) -> Matrix2D:
        """Square matrix with vector on the main diagonal and zeros elsewhere."""
        vec = self._as_vector(vector)
        size = vec.shape[0]
        matrix = self.make(size, size)
        for i in range(size):
            if vec[i] != 0:
                matrix.set(i, i, float(vec[i]))
        return matrix

    def diagonal_of(self, matrix: Matrix2D) -> NDArray[np.floating]:
        """Copy of the main diagonal of a (not necessarily square) matrix.

        Returns:
            1D array of length min(rows, columns).
        """
        size = min(matrix.rows, matrix.columns)
        diag = self.make_vector(size)
        for i in range(size):
            diag[i] = matrix.get(i, i)
        return diag

    def identity(self, size: int) -> Matrix2D:
        """size x size matrix with ones on the diagonal."""
        matrix = self.make(size, size)
        for i in range(size):
            matrix.set(i, i, 1.0)
        return matrix

    # ------------------------------------------------------------------
    # Fills
    # ------------------------------------------------------------------

    def ascending(self, rows: int, columns: int) -> Matrix2D:
        """Debug matrix with row-major values 0, 1, 2, ..."""
        rows_i, columns_i = check_dimensions(rows, columns)
        values = np.arange(rows_i * columns_i, dtype=self._dtype)
        return self.make(rows_i, columns_i).assign(values.reshape(rows_i, columns_i))

    def descending(self, rows: int, columns: int) -> Matrix2D:
        """Debug matrix with row-major values rows*columns-1, ..., 1, 0."""
        rows_i, columns_i = check_dimensions(rows, columns)
        values = np.arange(rows_i * columns_i, dtype=self._dtype)[::-1]
        return self.make(rows_i, columns_i).assign(values.reshape(rows_i, columns_i))

    def random(self, rows: int, columns: int) -> Matrix2D:
        """Matrix of uniform values in the open interval (0, 1)."""
        rows_i, columns_i = check_dimensions(rows, columns)
        values = uniform_open(self._rng, (rows_i, columns_i), dtype=self._dtype)
        return self.make(rows_i, columns_i).assign(values)

    def sample(
        self, matrix: Matrix2D, value: float, non_zero_fraction: float
    ) -> Matrix2D:
        """Overwrite matrix with an exact-count random sample, in place.

        Exactly ``round(rows * columns * non_zero_fraction)`` cells (ties
        rounded up) are set to value and every other cell to zero. This is not
        the same as setting each cell with probability non_zero_fraction. The
        cells are picked uniformly without replacement by a sampler seeded with
        ``self.sampling.seed``, so repeated calls give identical results.

        Args:
            matrix: Matrix to overwrite.
            value: Value of the selected cells.
            non_zero_fraction: Fraction of cells to select, in [0, 1].

        Raises:
            InvalidArgumentError: If non_zero_fraction is outside [0, 1] by more
                than the configured tolerance.

        Returns:
            The same matrix.
        """
        fraction = clamp_fraction(non_zero_fraction, self._sampling.tolerance)
        if fraction != float(non_zero_fraction):
            warnings.warn(
                _FRACTION_CLAMPED_MSG.format(value=non_zero_fraction, clamped=fraction),
                RuntimeWarning,
                stacklevel=2,
            )

        matrix.assign(0.0)
        rows, columns = matrix.shape
        size = rows * columns
        # Count in element precision: 50 * 0.29 is a tie in float32 but not
        # in float64.
        scalar = self._dtype.type
        n = min(round_half_up(float(scalar(size) * scalar(fraction))), size)
        if n == 0:
            return matrix

        picked = sample_indices(n, size, mersenne_twister(self._sampling.seed))
        picked_rows, picked_columns = np.divmod(picked, columns)
        for i, j in zip(picked_rows.tolist(), picked_columns.tolist(), strict=True):
            matrix.set(i, j, value)
        return matrix

    def sample_shape(
        self, rows: int, columns: int, value: float, non_zero_fraction: float
    ) -> Matrix2D:
        """New rows x columns matrix filled by :meth:`sample`."""
        return self.sample(self.make(rows, columns), value, non_zero_fraction)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _as_vector(
        self, vector: Sequence[float] | NDArray[Any]
    ) -> NDArray[np.floating]:
        vec = np.asarray(vector, dtype=self._dtype)
        if vec.ndim != 1:
            raise ValueError(_VECTOR_1D_ERROR.format(ndim=vec.ndim))
        return vec


# =============================================================================
# Shared instances
# =============================================================================

DENSE = BlockMatrixFactory(MatrixKind.DENSE)
"""Factory producing dense (NumPy-backed) matrices."""

SPARSE = BlockMatrixFactory(MatrixKind.SPARSE)
"""Factory producing sparse (hash-backed) matrices."""


def get_factory(kind: MatrixKind | str) -> BlockMatrixFactory:
    """Return the shared factory for a storage kind."""
    return DENSE if resolve_kind(kind) is MatrixKind.DENSE else SPARSE
