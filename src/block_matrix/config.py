"""Configuration model for building a BlockMatrixFactory from user settings.

This module defines the pydantic-facing configuration object used when factory
settings come from YAML/JSON files or keyword dictionaries, and translates it
into a native :class:`block_matrix.factory.BlockMatrixFactory`.

Notes:
    - Unknown fields are allowed and ignored (`extra="allow"`), so the block can
      be embedded in a larger application config.
    - Sampling defaults reproduce the fixed-seed behavior of
      :meth:`BlockMatrixFactory.sample`.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .factory import BlockMatrixFactory
from .matrix2d import MatrixKind
from .sampling import DEFAULT_FRACTION_TOLERANCE, DEFAULT_SAMPLE_SEED, SamplingConfig

KindName = Literal["dense", "sparse"]
DTypeName = Literal["float32", "float64"]


class FactoryConfig(BaseModel):
    """Configuration schema for a BlockMatrixFactory.

    Attributes:
        kind: Storage strategy of built matrices.
        dtype: Floating element dtype.
        sample_seed: Seed of the sampling engine used by ``sample``.
        sample_tolerance: Allowed excursion of ``non_zero_fraction`` outside
            [0, 1] before it is rejected.
        random_seed: Seed for ``random``; None draws from OS entropy.
    """

    model_config = ConfigDict(extra="allow")

    kind: KindName = Field(
        default="dense",
        description="Matrix storage strategy",
    )

    dtype: DTypeName = Field(
        default="float32",
        description="Element dtype",
    )

    sample_seed: int = Field(default=DEFAULT_SAMPLE_SEED, ge=0)
    sample_tolerance: float = Field(default=DEFAULT_FRACTION_TOLERANCE, ge=0.0)
    random_seed: int | None = Field(default=None, ge=0)

    def to_sampling_config(self) -> SamplingConfig:
        """Convert the sampling fields to a native SamplingConfig.

        Returns:
            SamplingConfig instance.
        """
        return SamplingConfig(seed=self.sample_seed, tolerance=self.sample_tolerance)

    def to_factory(self) -> BlockMatrixFactory:
        """Build a factory from this config.

        Returns:
            Fully constructed BlockMatrixFactory instance.
        """
        return BlockMatrixFactory(
            MatrixKind(self.kind),
            dtype=self.dtype,
            sampling=self.to_sampling_config(),
            random_seed=self.random_seed,
        )
