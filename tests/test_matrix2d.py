"""Unit tests for block_matrix.matrix2d.

This module verifies:
- allocation and cell access for dense and sparse storage,
- that views share storage with their parent in both directions,
- assign from scalars, matrices, arrays and 1D vectors,
- conversion helpers (to_numpy, to_scipy, cardinality, __array__).
"""

from __future__ import annotations

import numpy as np
import pytest
from scipy.sparse import issparse

from block_matrix import Matrix2D, MatrixKind, ShapeMismatchError
from block_matrix.errors import InvalidArgumentError

KINDS = [MatrixKind.DENSE, MatrixKind.SPARSE]


def _ascending(rows: int, columns: int, kind: MatrixKind) -> Matrix2D:
    """Build a matrix holding 0..rows*columns-1 in row-major order."""
    values = np.arange(rows * columns, dtype=np.float32).reshape(rows, columns)
    return Matrix2D.from_array(values, kind=kind)


# -------------------------------------------------------------------
# Allocation / cell access
# -------------------------------------------------------------------


@pytest.mark.parametrize("kind", KINDS)
def test_zeros_shape_and_dtype(kind: MatrixKind) -> None:
    """zeros allocates a zero matrix of the requested kind and dtype."""
    m = Matrix2D.zeros(3, 4, kind=kind, dtype=np.float64)
    assert m.shape == (3, 4)
    assert m.rows == 3
    assert m.columns == 4
    assert m.size == 12
    assert m.kind is kind
    assert m.dtype == np.float64
    assert m.cardinality() == 0
    assert not m.is_view


def test_zeros_accepts_kind_string() -> None:
    """Kinds may be given as strings."""
    m = Matrix2D.zeros(1, 1, kind="Sparse")
    assert m.kind is MatrixKind.SPARSE


def test_zeros_negative_dimension_raises() -> None:
    """Negative dimensions raise InvalidArgumentError."""
    with pytest.raises(InvalidArgumentError, match="non-negative"):
        Matrix2D.zeros(-1, 2)


def test_zeros_rejects_integer_dtype() -> None:
    """Only floating dtypes are accepted."""
    with pytest.raises(TypeError, match="floating dtype"):
        Matrix2D.zeros(2, 2, dtype=np.int32)


@pytest.mark.parametrize("kind", KINDS)
def test_get_set_round_trip(kind: MatrixKind) -> None:
    """set then get returns the stored value."""
    m = Matrix2D.zeros(2, 3, kind=kind)
    m.set(1, 2, 4.5)
    assert m.get(1, 2) == pytest.approx(4.5)
    assert m.get(0, 0) == 0.0
    assert m.cardinality() == 1


@pytest.mark.parametrize("kind", KINDS)
def test_set_zero_clears_sparse_entry(kind: MatrixKind) -> None:
    """Writing zero over a value leaves no non-zero cell behind."""
    m = Matrix2D.zeros(2, 2, kind=kind)
    m.set(0, 1, 3.0)
    m.set(0, 1, 0.0)
    assert m.cardinality() == 0


@pytest.mark.parametrize(("row", "column"), [(-1, 0), (0, -1), (2, 0), (0, 3)])
def test_get_out_of_range_raises(row: int, column: int) -> None:
    """Cell access outside the matrix raises IndexError."""
    m = Matrix2D.zeros(2, 3)
    with pytest.raises(IndexError, match="out of range"):
        m.get(row, column)


def test_from_array_requires_2d() -> None:
    """from_array rejects non-2D input."""
    with pytest.raises(ValueError, match="2D"):
        Matrix2D.from_array([1.0, 2.0])


# -------------------------------------------------------------------
# Views
# -------------------------------------------------------------------


@pytest.mark.parametrize("kind", KINDS)
def test_view_part_reads_parent(kind: MatrixKind) -> None:
    """A view exposes the parent's cells at its offset."""
    m = _ascending(4, 5, kind)
    v = m.view_part(1, 2, 2, 3)
    assert v.shape == (2, 3)
    assert v.is_view
    assert v.shares_storage(m)
    np.testing.assert_array_equal(v.to_numpy(), [[7, 8, 9], [12, 13, 14]])


@pytest.mark.parametrize("kind", KINDS)
def test_write_through_view_is_visible_in_parent(kind: MatrixKind) -> None:
    """Assigning into a view mutates the parent."""
    m = Matrix2D.zeros(3, 3, kind=kind)
    m.view_part(1, 1, 2, 2).assign(5.0)
    expected = np.zeros((3, 3))
    expected[1:, 1:] = 5.0
    np.testing.assert_array_equal(m.to_numpy(), expected)


@pytest.mark.parametrize("kind", KINDS)
def test_write_to_parent_is_visible_in_view(kind: MatrixKind) -> None:
    """Mutating the parent is observed through an existing view."""
    m = Matrix2D.zeros(3, 3, kind=kind)
    v = m.view_part(1, 0, 2, 3)
    m.set(2, 1, 9.0)
    assert v.get(1, 1) == 9.0


@pytest.mark.parametrize("kind", KINDS)
def test_nested_views_accumulate_offsets(kind: MatrixKind) -> None:
    """A view of a view is offset relative to the intermediate view."""
    m = _ascending(5, 5, kind)
    inner = m.view_part(1, 1, 4, 4).view_part(1, 2, 2, 2)
    np.testing.assert_array_equal(inner.to_numpy(), [[13, 14], [18, 19]])
    inner.set(0, 0, -1.0)
    assert m.get(2, 3) == -1.0


@pytest.mark.parametrize("kind", KINDS)
def test_view_row_and_column(kind: MatrixKind) -> None:
    """view_row / view_column select one line as a 1-wide matrix."""
    m = _ascending(3, 4, kind)
    row = m.view_row(1)
    col = m.view_column(2)
    assert row.shape == (1, 4)
    assert col.shape == (3, 1)
    np.testing.assert_array_equal(row.to_numpy(), [[4, 5, 6, 7]])
    np.testing.assert_array_equal(col.to_numpy(), [[2], [6], [10]])


def test_view_out_of_range_raises() -> None:
    """Views must fit inside their parent."""
    m = Matrix2D.zeros(3, 3)
    with pytest.raises(IndexError, match="View"):
        m.view_part(2, 0, 2, 1)
    with pytest.raises(IndexError, match="Row"):
        m.view_row(3)
    with pytest.raises(IndexError, match="Column"):
        m.view_column(-1)


def test_empty_view_is_allowed() -> None:
    """Zero-height and zero-width views at the boundary are valid."""
    m = Matrix2D.zeros(2, 2)
    assert m.view_part(2, 0, 0, 2).shape == (0, 2)
    assert m.view_part(0, 2, 2, 0).shape == (2, 0)


# -------------------------------------------------------------------
# Assign
# -------------------------------------------------------------------


@pytest.mark.parametrize("target_kind", KINDS)
@pytest.mark.parametrize("source_kind", KINDS)
def test_assign_matrix_across_kinds(
    target_kind: MatrixKind, source_kind: MatrixKind
) -> None:
    """assign copies values between any combination of kinds."""
    source = _ascending(2, 3, source_kind)
    target = Matrix2D.zeros(2, 3, kind=target_kind)
    result = target.assign(source)
    assert result is target
    np.testing.assert_array_equal(target.to_numpy(), source.to_numpy())


@pytest.mark.parametrize("kind", KINDS)
def test_assign_overwrites_existing_values_with_zeros(kind: MatrixKind) -> None:
    """assign replaces every cell, including turning non-zeros into zeros."""
    target = Matrix2D.zeros(2, 2, kind=kind).assign(7.0)
    target.assign([[0.0, 1.0], [0.0, 0.0]])
    np.testing.assert_array_equal(target.to_numpy(), [[0, 1], [0, 0]])
    assert target.cardinality() == 1


@pytest.mark.parametrize("kind", KINDS)
def test_assign_overlapping_views_of_same_storage(kind: MatrixKind) -> None:
    """Overlapping source and target windows copy the original values."""
    m = Matrix2D.from_array([[1.0, 2.0, 3.0, 4.0]], kind=kind)
    m.view_part(0, 1, 1, 3).assign(m.view_part(0, 0, 1, 3))
    np.testing.assert_array_equal(m.to_numpy(), [[1, 1, 2, 3]])


@pytest.mark.parametrize("kind", KINDS)
def test_assign_scalar_zero_clears_window_only(kind: MatrixKind) -> None:
    """Assigning 0 to a view leaves cells outside the view untouched."""
    m = Matrix2D.zeros(2, 2, kind=kind).assign(1.0)
    m.view_column(0).assign(0.0)
    np.testing.assert_array_equal(m.to_numpy(), [[0, 1], [0, 1]])


@pytest.mark.parametrize("kind", KINDS)
def test_assign_vector_into_row_and_column(kind: MatrixKind) -> None:
    """A 1D source fills a single row or column."""
    m = Matrix2D.zeros(2, 3, kind=kind)
    m.view_row(0).assign([1.0, 2.0, 3.0])
    m.view_column(2).assign(np.array([3.0, 9.0]))
    np.testing.assert_array_equal(m.to_numpy(), [[1, 2, 3], [0, 0, 9]])


@pytest.mark.parametrize("kind", KINDS)
def test_assign_zero_dim_array_is_scalar(kind: MatrixKind) -> None:
    """A 0-d array fills every cell like a scalar."""
    m = Matrix2D.zeros(2, 2, kind=kind)
    m.assign(np.array(2.0))
    np.testing.assert_array_equal(m.to_numpy(), np.full((2, 2), 2.0))
    m.assign(np.array(0.0))
    assert m.cardinality() == 0


def test_small_sparse_view_of_dense_store() -> None:
    """A view smaller than the stored entries reads and clears only its cells."""
    m = Matrix2D.from_array(np.ones((6, 6), dtype=np.float32), kind="sparse")
    view = m.view_part(2, 3, 2, 2)
    assert sorted(view.iter_nonzero()) == [
        (0, 0, 1.0),
        (0, 1, 1.0),
        (1, 0, 1.0),
        (1, 1, 1.0),
    ]
    view.assign(0.0)
    assert m.cardinality() == 32
    assert view.cardinality() == 0
    assert m.get(2, 2) == 1.0


def test_sparse_repeat_scans_scale_with_cells(monkeypatch: pytest.MonkeyPatch) -> None:
    """Block writes into a sparse matrix do not rescan the whole store."""
    calls = 0
    in_window = Matrix2D._in_window  # noqa: SLF001

    def counting(self: Matrix2D, i: int, j: int) -> bool:
        nonlocal calls
        calls += 1
        return in_window(self, i, j)

    monkeypatch.setattr(Matrix2D, "_in_window", counting)
    block = Matrix2D.zeros(1, 1, kind="sparse").assign(1.0)
    n = 40
    m = Matrix2D.zeros(n, n, kind="sparse")
    for i in range(n):
        for j in range(n):
            m.view_part(i, j, 1, 1).assign(block)
    assert m.cardinality() == n * n
    assert calls <= 4 * n * n


def test_assign_shape_mismatch_raises() -> None:
    """assign from a different shape raises ShapeMismatchError."""
    m = Matrix2D.zeros(2, 2)
    with pytest.raises(ShapeMismatchError, match="expected"):
        m.assign(Matrix2D.zeros(2, 3))
    with pytest.raises(ShapeMismatchError):
        m.assign([[1.0, 2.0, 3.0]])


# -------------------------------------------------------------------
# Conversions / representation
# -------------------------------------------------------------------


@pytest.mark.parametrize("kind", KINDS)
def test_to_numpy_returns_copy(kind: MatrixKind) -> None:
    """to_numpy is detached from the matrix storage."""
    m = _ascending(2, 2, kind)
    arr = m.to_numpy()
    arr[0, 0] = 100.0
    assert m.get(0, 0) == 0.0


@pytest.mark.parametrize("kind", KINDS)
def test_to_scipy_matches_values(kind: MatrixKind) -> None:
    """to_scipy returns a sparse copy of the window."""
    m = _ascending(3, 3, kind).view_part(1, 1, 2, 2)
    sp = m.to_scipy()
    assert issparse(sp)
    np.testing.assert_array_equal(sp.toarray(), [[4, 5], [7, 8]])


def test_array_protocol() -> None:
    """np.asarray works on Matrix2D."""
    m = _ascending(2, 2, MatrixKind.SPARSE)
    np.testing.assert_array_equal(np.asarray(m), [[0, 1], [2, 3]])
    assert np.asarray(m, dtype=np.float64).dtype == np.float64


def test_array_protocol_without_copy() -> None:
    """copy=False exposes a dense window and refuses when a copy is needed."""
    dense = _ascending(3, 3, MatrixKind.DENSE).view_part(1, 1, 2, 2)
    window = dense.__array__(copy=False)
    window[0, 0] = 40.0
    assert dense.get(0, 0) == 40.0

    with pytest.raises(ValueError, match="without a copy"):
        dense.__array__(dtype=np.float64, copy=False)
    with pytest.raises(ValueError, match="without a copy"):
        _ascending(2, 2, MatrixKind.SPARSE).__array__(copy=False)


def test_like_preserves_kind_and_dtype() -> None:
    """like allocates a zero matrix with the same kind and dtype."""
    m = Matrix2D.zeros(1, 1, kind=MatrixKind.SPARSE, dtype=np.float64)
    other = m.like(2, 5)
    assert other.shape == (2, 5)
    assert other.kind is MatrixKind.SPARSE
    assert other.dtype == np.float64
    assert not other.shares_storage(m)


def test_repr_and_str() -> None:
    """repr names kind and shape; str renders the values."""
    m = _ascending(1, 2, MatrixKind.DENSE)
    assert repr(m) == "Matrix2D(kind='dense', shape=(1, 2), dtype=float32)"
    assert str(m).startswith("1 x 2 dense matrix")
