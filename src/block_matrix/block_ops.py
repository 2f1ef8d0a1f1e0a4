"""Block composition and decomposition of 2D matrices.

A *block grid* is a row-major nested sequence of optional matrices::

    grid = [
        [None,    a,    None],
        [b,       None, c   ],
        [None,    d,    None],
    ]

``None`` marks an absent block. :func:`compose` concatenates the blocks into a
single new matrix; :func:`decompose` is its inverse and copies sub-rectangles
of a matrix back into the blocks in place.

Shape inference:
    Every grid column j gets a width and every grid row i a height. All present
    blocks in a grid column must agree on their (non-zero) width, and all
    present blocks in a grid row on their (non-zero) height. A grid line made
    only of absent blocks has extent 0. Grid row i then occupies result rows
    ``[sum(heights[:i]), sum(heights[:i + 1]))``, symmetrically for columns, and
    each block is placed at the top-left corner of its grid cell.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from itertools import accumulate
from typing import TypeAlias

from .errors import ShapeMismatchError, SizeMismatchError
from .matrix2d import DEFAULT_DTYPE, Matrix2D, MatrixKind

BlockRow: TypeAlias = Sequence[Matrix2D | None]
BlockGrid: TypeAlias = Sequence[BlockRow | None]
MatrixMaker: TypeAlias = Callable[[int, int], Matrix2D]


# =============================================================================
# Error message constants
# =============================================================================

_NOT_RECTANGULAR_ERROR = "All rows of array must have same number of columns."
_COLUMNS_MISMATCH_ERROR = (
    "Different number of columns. Grid column {column}: block at grid row {row} "
    "has {got} columns, others have {expected}."
)
_ROWS_MISMATCH_ERROR = (
    "Different number of rows. Grid row {row}: block at grid column {column} "
    "has {got} rows, others have {expected}."
)
_PARTS_TOO_LARGE_ERROR = (
    "Parts larger than matrix. Blocks need {need}, matrix has {have}."
)


# =============================================================================
# Shape inference
# =============================================================================


@dataclass(frozen=True, slots=True)
class BlockShape:
    """Inferred layout of a block grid.

    Attributes:
        heights: Height of every grid row.
        widths: Width of every grid column.
    """

    heights: tuple[int, ...]
    widths: tuple[int, ...]

    @property
    def rows(self) -> int:
        """Total number of rows of the composed matrix."""
        return sum(self.heights)

    @property
    def columns(self) -> int:
        """Total number of columns of the composed matrix."""
        return sum(self.widths)

    @property
    def shape(self) -> tuple[int, int]:
        """(rows, columns) of the composed matrix."""
        return (self.rows, self.columns)

    @property
    def row_offsets(self) -> tuple[int, ...]:
        """First result row of every grid row."""
        return tuple(accumulate(self.heights[:-1], initial=0))

    @property
    def column_offsets(self) -> tuple[int, ...]:
        """First result column of every grid column."""
        return tuple(accumulate(self.widths[:-1], initial=0))

    @property
    def is_empty(self) -> bool:
        """Whether the grid has no rows or no columns."""
        return not self.heights or not self.widths


def _grid_columns(parts: BlockGrid) -> int:
    """Return the common length of all present grid rows.

    Raises:
        ShapeMismatchError: If two present rows differ in length.
    """
    columns = -1
    for row in parts:
        if row is None:
            continue
        if columns == -1:
            columns = len(row)
        elif len(row) != columns:
            raise ShapeMismatchError(_NOT_RECTANGULAR_ERROR)
    return max(columns, 0)


def _block(parts: BlockGrid, row: int, column: int) -> Matrix2D | None:
    grid_row = parts[row]
    if grid_row is None:
        return None
    return grid_row[column]


def infer_block_shape(parts: BlockGrid) -> BlockShape:
    """Validate a block grid and infer its row heights and column widths.

    Args:
        parts: Block grid; entries (and whole rows) may be None.

    Raises:
        ShapeMismatchError: If the grid is not rectangular, or if blocks in one
            grid column (row) have different numbers of columns (rows).

    Returns:
        The inferred BlockShape. An empty grid yields empty heights/widths.
    """
    n_columns = _grid_columns(parts)
    n_rows = len(parts)
    if n_rows == 0 or n_columns == 0:
        return BlockShape(heights=(), widths=())

    widths = [0] * n_columns
    for column in range(n_columns):
        width = 0
        for row in range(n_rows):
            part = _block(parts, row, column)
            if part is None:
                continue
            if width > 0 and part.columns > 0 and part.columns != width:
                raise ShapeMismatchError(
                    _COLUMNS_MISMATCH_ERROR.format(
                        column=column, row=row, got=part.columns, expected=width
                    )
                )
            width = max(width, part.columns)
        widths[column] = width

    heights = [0] * n_rows
    for row in range(n_rows):
        height = 0
        for column in range(n_columns):
            part = _block(parts, row, column)
            if part is None:
                continue
            if height > 0 and part.rows > 0 and part.rows != height:
                raise ShapeMismatchError(
                    _ROWS_MISMATCH_ERROR.format(
                        row=row, column=column, got=part.rows, expected=height
                    )
                )
            height = max(height, part.rows)
        heights[row] = height

    return BlockShape(heights=tuple(heights), widths=tuple(widths))


# =============================================================================
# Compose / decompose
# =============================================================================


def _default_maker(parts: BlockGrid) -> MatrixMaker:
    """Allocate results like the first present block (dense float32 if none)."""
    for row in parts:
        for part in row or ():
            if part is not None:
                return part.like
    return lambda rows, columns: Matrix2D.zeros(
        rows, columns, kind=MatrixKind.DENSE, dtype=DEFAULT_DTYPE
    )


def compose(parts: BlockGrid, *, make: MatrixMaker | None = None) -> Matrix2D:
    """Concatenate a block grid into a new matrix.

    Args:
        parts: Block grid; absent blocks leave zeros in the result.
        make: Allocator for the zero-initialized result. Defaults to the kind
            and dtype of the first present block.

    Returns:
        New matrix of shape (sum of heights, sum of widths); 0 x 0 for an empty
        grid. Input blocks are not modified.
    """
    maker = make if make is not None else _default_maker(parts)
    layout = infer_block_shape(parts)
    if layout.is_empty:
        return maker(0, 0)

    matrix = maker(layout.rows, layout.columns)
    for row, r in enumerate(layout.row_offsets):
        for column, c in enumerate(layout.column_offsets):
            part = _block(parts, row, column)
            if part is not None:
                matrix.view_part(r, c, part.rows, part.columns).assign(part)
    return matrix


def decompose(parts: BlockGrid, matrix: Matrix2D) -> None:
    """Copy sub-rectangles of a matrix into the blocks of a grid, in place.

    This is the inverse of :func:`compose`: every present block at grid cell
    (i, j) receives the cells of ``matrix`` at the offsets compose would have
    placed it, keeping its own shape. Absent blocks are skipped.

    Args:
        parts: Block grid whose present blocks are overwritten.
        matrix: Source matrix.

    Raises:
        SizeMismatchError: If matrix is smaller than the inferred total shape.
    """
    layout = infer_block_shape(parts)
    if layout.is_empty:
        return

    if matrix.rows < layout.rows or matrix.columns < layout.columns:
        raise SizeMismatchError(
            _PARTS_TOO_LARGE_ERROR.format(need=layout.shape, have=matrix.shape)
        )

    for row, r in enumerate(layout.row_offsets):
        for column, c in enumerate(layout.column_offsets):
            part = _block(parts, row, column)
            if part is not None:
                part.assign(matrix.view_part(r, c, part.rows, part.columns))
