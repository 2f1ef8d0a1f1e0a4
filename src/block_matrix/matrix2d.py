"""View-capable 2D matrices over dense or sparse shared storage.

A :class:`Matrix2D` is a rectangular window (row offset, column offset, rows,
columns) onto a root storage object. The root storage is either:

- a 2D ``numpy.ndarray`` (``MatrixKind.DENSE``), or
- a ``scipy.sparse.dok_array`` (``MatrixKind.SPARSE``), a hash map from
  (row, column) to value where zero cells are not stored.

Views created with :meth:`Matrix2D.view_part`, :meth:`Matrix2D.view_row` and
:meth:`Matrix2D.view_column` never copy: they reference the same root storage
with a different window, so a write through a view is visible in the parent and
vice versa.

Design notes:
    * Dense and sparse are a storage strategy chosen by :class:`MatrixKind`,
      not a class hierarchy; each method branches on the kind.
    * Dense bulk reads/writes are NumPy slice operations on the root array.
    * Sparse bulk reads/writes only touch stored (non-zero) entries.
"""

from __future__ import annotations

from enum import Enum
from numbers import Real
from typing import TYPE_CHECKING, Any, TypeAlias, cast

import numpy as np
from numpy.typing import DTypeLike, NDArray
from scipy.sparse import coo_array, csr_array, dok_array

from .errors import check_dimensions, raise_shape_mismatch

if TYPE_CHECKING:
    from collections.abc import Iterator


# =============================================================================
# Types
# =============================================================================


class MatrixKind(str, Enum):
    """Storage strategy of a matrix."""

    DENSE = "dense"
    SPARSE = "sparse"


DenseStore: TypeAlias = NDArray[np.floating]
SparseStore: TypeAlias = dok_array
Store: TypeAlias = DenseStore | SparseStore

DEFAULT_DTYPE: np.dtype[Any] = np.dtype(np.float32)


# =============================================================================
# Error message constants
# =============================================================================

_INDEX_ERROR = "Cell ({row}, {column}) out of range for shape {shape}"
_VIEW_ERROR = (
    "View (row={row}, column={column}, height={height}, width={width}) "
    "out of range for shape {shape}"
)
_ROW_ERROR = "Row {row} out of range for shape {shape}"
_COLUMN_ERROR = "Column {column} out of range for shape {shape}"
_VALUES_2D_ERROR = "values must be 2D; got ndim={ndim}"
_FLOAT_DTYPE_ERROR = "dtype must be a floating dtype; got {dtype}"
_NO_COPY_ERROR = "A {kind} Matrix2D cannot be converted to an array without a copy"


def resolve_kind(kind: MatrixKind | str) -> MatrixKind:
    """Normalize a kind given as enum member or string.

    Args:
        kind: MatrixKind member or its value ("dense" / "sparse").

    Returns:
        The MatrixKind member.
    """
    if isinstance(kind, MatrixKind):
        return kind
    return MatrixKind(str(kind).strip().lower())


def resolve_dtype(dtype: DTypeLike) -> np.dtype[Any]:
    """Normalize a floating dtype.

    Args:
        dtype: Any NumPy dtype-like.

    Raises:
        TypeError: If dtype is not a floating dtype.

    Returns:
        The resolved NumPy dtype.
    """
    dtype_obj = np.dtype(dtype)
    if not np.issubdtype(dtype_obj, np.floating):
        raise TypeError(_FLOAT_DTYPE_ERROR.format(dtype=dtype_obj))
    return dtype_obj


def _allocate(
    kind: MatrixKind, rows: int, columns: int, dtype: np.dtype[Any]
) -> Store:
    if kind is MatrixKind.SPARSE:
        return dok_array((rows, columns), dtype=dtype)
    return np.zeros((rows, columns), dtype=dtype)


# =============================================================================
# Matrix2D
# =============================================================================


class Matrix2D:
    """A rectangular window onto dense or sparse root storage.

    Instances are normally created through
    :class:`block_matrix.factory.BlockMatrixFactory`; the classmethods
    :meth:`zeros` and :meth:`from_array` are the low-level constructors.
    """

    __slots__ = ("_columns", "_kind", "_row0", "_col0", "_rows", "_store")

    def __init__(
        self,
        store: Store,
        kind: MatrixKind,
        *,
        row0: int = 0,
        col0: int = 0,
        rows: int | None = None,
        columns: int | None = None,
    ) -> None:
        self._store = store
        self._kind = kind
        self._row0 = row0
        self._col0 = col0
        self._rows = store.shape[0] if rows is None else rows
        self._columns = store.shape[1] if columns is None else columns

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def zeros(
        cls,
        rows: int,
        columns: int,
        *,
        kind: MatrixKind | str = MatrixKind.DENSE,
        dtype: DTypeLike = DEFAULT_DTYPE,
    ) -> Matrix2D:
        """Allocate a zero-filled matrix.

        Args:
            rows: Number of rows.
            columns: Number of columns.
            kind: Storage strategy.
            dtype: Floating element dtype.

        Returns:
            A new matrix owning its storage.
        """
        rows_i, columns_i = check_dimensions(rows, columns)
        kind_obj = resolve_kind(kind)
        store = _allocate(kind_obj, rows_i, columns_i, resolve_dtype(dtype))
        return cls(store, kind_obj)

    @classmethod
    def from_array(
        cls,
        values: object,
        *,
        kind: MatrixKind | str = MatrixKind.DENSE,
        dtype: DTypeLike = DEFAULT_DTYPE,
    ) -> Matrix2D:
        """Copy a 2D array-like into a new matrix.

        Args:
            values: 2D array-like of numbers.
            kind: Storage strategy.
            dtype: Floating element dtype.

        Raises:
            ValueError: If values is not 2D.

        Returns:
            A new matrix holding a copy of values.
        """
        arr = np.asarray(values, dtype=resolve_dtype(dtype))
        if arr.ndim != 2:
            raise ValueError(_VALUES_2D_ERROR.format(ndim=arr.ndim))
        matrix = cls.zeros(arr.shape[0], arr.shape[1], kind=kind, dtype=arr.dtype)
        return matrix.assign(arr)

    def like(self, rows: int, columns: int) -> Matrix2D:
        """Allocate a zero matrix of the same kind and dtype.

        Returns:
            A new matrix of shape (rows, columns).
        """
        return Matrix2D.zeros(rows, columns, kind=self._kind, dtype=self.dtype)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def kind(self) -> MatrixKind:
        """Storage strategy of the root storage."""
        return self._kind

    @property
    def dtype(self) -> np.dtype[Any]:
        """Element dtype."""
        return cast("np.dtype[Any]", self._store.dtype)

    @property
    def rows(self) -> int:
        """Number of rows of this window."""
        return self._rows

    @property
    def columns(self) -> int:
        """Number of columns of this window."""
        return self._columns

    @property
    def shape(self) -> tuple[int, int]:
        """(rows, columns) of this window."""
        return (self._rows, self._columns)

    @property
    def size(self) -> int:
        """Number of cells."""
        return self._rows * self._columns

    @property
    def is_view(self) -> bool:
        """Whether this matrix is a strict window of its root storage."""
        return (
            self._row0 != 0
            or self._col0 != 0
            or self.shape != tuple(self._store.shape)
        )

    def shares_storage(self, other: Matrix2D) -> bool:
        """Whether two matrices are windows onto the same root storage."""
        return self._store is other._store

    # ------------------------------------------------------------------
    # Cell access
    # ------------------------------------------------------------------

    def _check_cell(self, row: int, column: int) -> None:
        if not (0 <= row < self._rows and 0 <= column < self._columns):
            raise IndexError(
                _INDEX_ERROR.format(row=row, column=column, shape=self.shape)
            )

    def get(self, row: int, column: int) -> float:
        """Return the value of a cell.

        Raises:
            IndexError: If the cell is outside this matrix.
        """
        self._check_cell(row, column)
        return float(self._store[self._row0 + row, self._col0 + column])

    def set(self, row: int, column: int, value: float) -> None:
        """Set the value of a cell.

        Raises:
            IndexError: If the cell is outside this matrix.
        """
        self._check_cell(row, column)
        self._store[self._row0 + row, self._col0 + column] = value

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def view_part(self, row: int, column: int, height: int, width: int) -> Matrix2D:
        """Return a window onto a sub-rectangle sharing this matrix's storage.

        Args:
            row: Top row of the window, relative to this matrix.
            column: Left column of the window, relative to this matrix.
            height: Number of rows in the window.
            width: Number of columns in the window.

        Raises:
            IndexError: If the window does not fit inside this matrix.

        Returns:
            A view; writes through it are visible in this matrix.
        """
        if (
            row < 0
            or column < 0
            or height < 0
            or width < 0
            or row + height > self._rows
            or column + width > self._columns
        ):
            raise IndexError(
                _VIEW_ERROR.format(
                    row=row,
                    column=column,
                    height=height,
                    width=width,
                    shape=self.shape,
                )
            )
        return Matrix2D(
            self._store,
            self._kind,
            row0=self._row0 + row,
            col0=self._col0 + column,
            rows=height,
            columns=width,
        )

    def view_row(self, row: int) -> Matrix2D:
        """Return a 1 x columns view onto one row.

        Raises:
            IndexError: If row is out of range.
        """
        if not 0 <= row < self._rows:
            raise IndexError(_ROW_ERROR.format(row=row, shape=self.shape))
        return self.view_part(row, 0, 1, self._columns)

    def view_column(self, column: int) -> Matrix2D:
        """Return a rows x 1 view onto one column.

        Raises:
            IndexError: If column is out of range.
        """
        if not 0 <= column < self._columns:
            raise IndexError(_COLUMN_ERROR.format(column=column, shape=self.shape))
        return self.view_part(0, column, self._rows, 1)

    # ------------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------------

    def _slices(self) -> tuple[slice, slice]:
        return (
            slice(self._row0, self._row0 + self._rows),
            slice(self._col0, self._col0 + self._columns),
        )

    def _dense_window(self) -> DenseStore:
        # Basic slicing of the root ndarray is itself a NumPy view.
        return cast("DenseStore", self._store[self._slices()])

    def _in_window(self, i: int, j: int) -> bool:
        return (
            self._row0 <= i < self._row0 + self._rows
            and self._col0 <= j < self._col0 + self._columns
        )

    def _stored_keys(self) -> list[tuple[int, int]]:
        """Root keys of the sparse entries inside this window.

        Probes the window's own cells when it is smaller than the store, so
        a small view of a large matrix costs O(rows * columns).
        """
        keys = self._store.keys()
        if self.size < len(keys):
            return [
                (i, j)
                for i in range(self._row0, self._row0 + self._rows)
                for j in range(self._col0, self._col0 + self._columns)
                if (i, j) in keys
            ]
        return [(i, j) for (i, j) in list(keys) if self._in_window(i, j)]

    def iter_nonzero(self) -> Iterator[tuple[int, int, float]]:
        """Yield (row, column, value) for every non-zero cell, window-relative.

        Dense matrices yield in row-major order; the order of sparse matrices
        is unspecified.
        """
        if self._kind is MatrixKind.DENSE:
            window = self._dense_window()
            rr, cc = np.nonzero(window)
            for i, j in zip(rr.tolist(), cc.tolist(), strict=True):
                yield i, j, float(window[i, j])
            return

        for i, j in self._stored_keys():
            value = self._store.get((i, j), 0.0)
            if value != 0:
                yield i - self._row0, j - self._col0, float(value)

    def to_numpy(self) -> NDArray[np.floating]:
        """Return a dense copy of this matrix."""
        if self._kind is MatrixKind.DENSE:
            return np.array(self._dense_window(), copy=True)

        out = np.zeros(self.shape, dtype=self.dtype)
        for i, j, value in self.iter_nonzero():
            out[i, j] = value
        return out

    def to_scipy(self) -> csr_array:
        """Return a CSR copy of this matrix."""
        if self._kind is MatrixKind.DENSE:
            return csr_array(self._dense_window())

        cells = list(self.iter_nonzero())
        rows_idx = np.fromiter((c[0] for c in cells), dtype=np.int64, count=len(cells))
        cols_idx = np.fromiter((c[1] for c in cells), dtype=np.int64, count=len(cells))
        data = np.fromiter((c[2] for c in cells), dtype=self.dtype, count=len(cells))
        return coo_array((data, (rows_idx, cols_idx)), shape=self.shape).tocsr()

    def cardinality(self) -> int:
        """Return the number of non-zero cells."""
        if self._kind is MatrixKind.DENSE:
            return int(np.count_nonzero(self._dense_window()))
        return sum(1 for _ in self.iter_nonzero())

    def __array__(
        self, dtype: DTypeLike | None = None, copy: bool | None = None
    ) -> NDArray[Any]:
        if copy is False:
            same_dtype = dtype is None or np.dtype(dtype) == self.dtype
            if self._kind is MatrixKind.SPARSE or not same_dtype:
                raise ValueError(_NO_COPY_ERROR.format(kind=self._kind.value))
            return self._dense_window()
        arr = self.to_numpy()
        if dtype is None:
            return arr
        return arr.astype(dtype, copy=False)

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    def _clear_sparse_window(self) -> None:
        for i, j in self._stored_keys():
            self._store[i, j] = 0.0

    def _write_sparse_cells(self, cells: list[tuple[int, int, float]]) -> None:
        self._clear_sparse_window()
        for i, j, value in cells:
            self._store[self._row0 + i, self._col0 + j] = value

    def _coerce_array(self, source: object) -> NDArray[np.floating]:
        arr = np.asarray(source, dtype=self.dtype)
        # A 1D source may fill a single row or a single column.
        if arr.ndim == 1 and 1 in self.shape and arr.shape[0] == self.size:
            arr = arr.reshape(self.shape)
        if arr.shape != self.shape:
            raise_shape_mismatch(name="source", expected=self.shape, got=arr.shape)
        return arr

    def assign(self, source: Matrix2D | float | object) -> Matrix2D:
        """Overwrite every cell of this matrix from a scalar or same-shaped source.

        Args:
            source: A scalar, another Matrix2D, or an array-like of the same
                shape. A 1D array-like is accepted for single-row and
                single-column matrices.

        Raises:
            ShapeMismatchError: If a non-scalar source has a different shape.

        Returns:
            This matrix.
        """
        if isinstance(source, Real):
            return self._assign_scalar(float(source))

        if isinstance(source, Matrix2D):
            if source.shape != self.shape:
                raise_shape_mismatch(
                    name="source", expected=self.shape, got=source.shape
                )
            return self._assign_matrix(source)

        if np.ndim(source) == 0:
            return self._assign_scalar(float(source))

        arr = self._coerce_array(source)
        if self._kind is MatrixKind.DENSE:
            self._dense_window()[...] = arr
        else:
            rr, cc = np.nonzero(arr)
            self._write_sparse_cells([
                (i, j, float(arr[i, j]))
                for i, j in zip(rr.tolist(), cc.tolist(), strict=True)
            ])
        return self

    def _assign_scalar(self, value: float) -> Matrix2D:
        if self._kind is MatrixKind.DENSE:
            self._dense_window()[...] = value
            return self

        if value == 0.0:
            self._clear_sparse_window()
            return self

        for i in range(self._rows):
            for j in range(self._columns):
                self._store[self._row0 + i, self._col0 + j] = value
        return self

    def _assign_matrix(self, source: Matrix2D) -> Matrix2D:
        if self._kind is MatrixKind.DENSE:
            if source.kind is MatrixKind.DENSE:
                # NumPy buffers overlapping windows of the same root array.
                self._dense_window()[...] = source._dense_window()
            else:
                self._dense_window()[...] = source.to_numpy()
            return self

        # Materialize first: source may overlap this window.
        self._write_sparse_cells(list(source.iter_nonzero()))
        return self

    # ------------------------------------------------------------------
    # Representation
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"Matrix2D(kind={self._kind.value!r}, shape={self.shape}, "
            f"dtype={self.dtype.name})"
        )

    def __str__(self) -> str:
        return f"{self._rows} x {self._columns} {self._kind.value} matrix\n" + str(
            self.to_numpy()
        )
