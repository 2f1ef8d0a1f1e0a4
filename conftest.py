"""Pytest configuration for the examples in ``docs/``."""

from pathlib import Path
from typing import Any

import numpy as np
from sybil import Sybil
from sybil.parsers.markdown import PythonCodeBlockParser, SkipParser

import block_matrix


def documentation_setup(namespace: dict[str, Any]) -> None:
    """Preload numpy and the shared factories into every document."""
    namespace.update(
        np=np,
        DENSE=block_matrix.DENSE,
        SPARSE=block_matrix.SPARSE,
        BlockMatrixFactory=block_matrix.BlockMatrixFactory,
    )


pytest_collect_file = Sybil(
    parsers=[
        PythonCodeBlockParser(),
        SkipParser(),
    ],
    path=str(Path(__file__).parent / "docs"),
    pattern="**/*.md",
    setup=documentation_setup,
).pytest()
