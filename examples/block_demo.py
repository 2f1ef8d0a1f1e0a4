# block_matrix/examples/block_demo.py
"""Compose and decompose block matrices with the shared factories.

This example demonstrates the core API:

- compose() concatenates a grid of blocks; None blocks are left as zeros and
  every grid line takes the extent of its present blocks.
- decompose() copies the matching sub-rectangles back into the blocks.
- the same grid composes with either storage kind.

This script only prints to stdout.
"""

from __future__ import annotations

from block_matrix import DENSE, SPARSE, BlockMatrixFactory, Matrix2D


def cross_grid(factory: BlockMatrixFactory) -> list[list[Matrix2D | None]]:
    """Build a 3x3 block grid with blocks on a cross pattern.

    Args:
        factory: Factory used to allocate the blocks.

    Returns:
        Block grid with four present blocks.
    """
    return [
        [None, factory.make(2, 2, 1.0), None],
        [factory.make(4, 4, 2.0), None, factory.make(4, 3, 3.0)],
        [None, factory.make(2, 2, 4.0), None],
    ]


def main() -> None:
    """Run the demo."""
    grid = cross_grid(DENSE)
    matrix = DENSE.compose(grid)
    print(matrix)

    for row in grid:
        for block in row:
            if block is not None:
                block.assign(9.0)
    DENSE.decompose(grid, matrix)
    for row in grid:
        for block in row:
            if block is not None:
                print(block)

    a = DENSE.ascending(2, 2)
    b = DENSE.descending(2, 2)
    print(DENSE.compose([[a, None, a, None], [None, a, None, b]]))

    sparse = SPARSE.compose(cross_grid(SPARSE))
    print(repr(sparse), "non-zeros:", sparse.cardinality())


if __name__ == "__main__":
    main()
