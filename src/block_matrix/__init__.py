"""block_matrix dense/sparse matrix factory and block algebra package."""

from __future__ import annotations

from .block_ops import BlockGrid, BlockShape, compose, decompose, infer_block_shape
from .config import FactoryConfig
from .errors import (
    BlockMatrixError,
    InvalidArgumentError,
    ShapeMismatchError,
    SizeMismatchError,
    TruncationWarning,
)
from .factory import DENSE, SPARSE, BlockMatrixFactory, get_factory
from .matrix2d import Matrix2D, MatrixKind
from .sampling import RandomSamplingAssistant, SamplingConfig

__all__ = [
    "DENSE",
    "SPARSE",
    "BlockGrid",
    "BlockMatrixError",
    "BlockMatrixFactory",
    "BlockShape",
    "FactoryConfig",
    "InvalidArgumentError",
    "Matrix2D",
    "MatrixKind",
    "RandomSamplingAssistant",
    "SamplingConfig",
    "ShapeMismatchError",
    "SizeMismatchError",
    "TruncationWarning",
    "compose",
    "decompose",
    "get_factory",
    "infer_block_shape",
]

__version__ = "0.1.0"
