"""Global pytest configuration and shared fixtures for block_matrix."""

from __future__ import annotations

import pytest

from block_matrix import BlockMatrixFactory, MatrixKind

# -----------------------------------------------------------------------------
# Factories
# -----------------------------------------------------------------------------


@pytest.fixture(params=[MatrixKind.DENSE, MatrixKind.SPARSE], ids=["dense", "sparse"])
def factory(request: pytest.FixtureRequest) -> BlockMatrixFactory:
    """A fresh factory of each storage kind, with a fixed random seed."""
    return BlockMatrixFactory(request.param, random_seed=1234)


@pytest.fixture
def dense_factory() -> BlockMatrixFactory:
    """A fresh dense factory."""
    return BlockMatrixFactory(MatrixKind.DENSE)
