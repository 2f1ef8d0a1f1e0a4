"""Deterministic random helpers for matrix builders.

- :class:`RandomSamplingAssistant` streams an exact-size uniform sample without
  replacement from ``range(size)`` (selection sampling, Knuth's Algorithm S).
- :func:`mersenne_twister` builds a NumPy generator over MT19937.
- :func:`uniform_open` draws uniform values in the open interval (0, 1).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

import numpy as np
from numpy.typing import DTypeLike, NDArray

from .errors import InvalidArgumentError

# Seed of the sampling engine; fixed so sampled matrices are reproducible.
DEFAULT_SAMPLE_SEED: Final[int] = 4357
DEFAULT_FRACTION_TOLERANCE: Final[float] = 1e-5

_SAMPLER_ARGS_ERROR = "Sampler requires 0 <= n <= size; got n={n}, size={size}"
_SAMPLER_EXHAUSTED_ERROR = "Sampler exhausted after {size} elements"
_FRACTION_ERROR = "non_zero_fraction must be in [0, 1] (tolerance {tol}); got {value}"


@dataclass(slots=True, frozen=True)
class SamplingConfig:
    """Configuration for sampled matrix construction.

    Attributes:
        seed: Seed of the MT19937 engine created for every sample call.
        tolerance: How far outside [0, 1] a fraction may be before it is
            rejected instead of clamped.
    """

    seed: int = DEFAULT_SAMPLE_SEED
    tolerance: float = DEFAULT_FRACTION_TOLERANCE


def mersenne_twister(seed: int | None = None) -> np.random.Generator:
    """Build a NumPy generator backed by the MT19937 bit generator.

    Args:
        seed: Seed, or None to seed from OS entropy.

    Returns:
        A numpy.random.Generator.
    """
    return np.random.Generator(np.random.MT19937(seed))


class RandomSamplingAssistant:
    """Sequentially decide which of ``size`` elements belong to an ``n``-sample.

    Each call to :meth:`sample_next_element` consumes one element of the
    population. Exactly ``n`` of the ``size`` calls return True, and every
    subset of size ``n`` is equally likely.
    """

    __slots__ = ("_n", "_needed", "_remaining", "_rng", "_size")

    def __init__(self, n: int, size: int, rng: np.random.Generator) -> None:
        if n < 0 or size < 0 or n > size:
            raise InvalidArgumentError(_SAMPLER_ARGS_ERROR.format(n=n, size=size))
        self._n = n
        self._size = size
        self._needed = n
        self._remaining = size
        self._rng = rng

    @property
    def n(self) -> int:
        """Sample size."""
        return self._n

    @property
    def size(self) -> int:
        """Population size."""
        return self._size

    def sample_next_element(self) -> bool:
        """Decide whether the next population element is selected.

        Raises:
            RuntimeError: If all ``size`` elements were already consumed.

        Returns:
            True if the element is part of the sample.
        """
        if self._remaining == 0:
            raise RuntimeError(_SAMPLER_EXHAUSTED_ERROR.format(size=self._size))

        if self._needed == 0:
            self._remaining -= 1
            return False

        selected = self._rng.random() * self._remaining < self._needed
        self._remaining -= 1
        if selected:
            self._needed -= 1
        return bool(selected)


def sample_indices(n: int, size: int, rng: np.random.Generator) -> NDArray[np.int64]:
    """Select n distinct indices from range(size), in ascending order.

    Args:
        n: Number of indices to select.
        size: Population size.
        rng: Random generator driving the selection.

    Returns:
        Sorted 1D int64 array of length n.
    """
    sampler = RandomSamplingAssistant(n, size, rng)
    picked = [i for i in range(size) if sampler.sample_next_element()]
    return np.asarray(picked, dtype=np.int64)


def clamp_fraction(fraction: float, tolerance: float) -> float:
    """Validate a non-zero fraction and clamp it into [0, 1].

    Args:
        fraction: Requested fraction of non-zero cells.
        tolerance: Allowed excursion outside [0, 1].

    Raises:
        InvalidArgumentError: If fraction is NaN or further than tolerance
            outside [0, 1].

    Returns:
        The fraction clamped into [0, 1].
    """
    value = float(fraction)
    if not (-tolerance <= value <= 1.0 + tolerance):
        raise InvalidArgumentError(_FRACTION_ERROR.format(tol=tolerance, value=value))
    return min(max(value, 0.0), 1.0)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    return int(np.floor(value + 0.5))


def uniform_open(
    rng: np.random.Generator,
    shape: tuple[int, ...],
    dtype: DTypeLike = np.float64,
) -> NDArray[np.floating]:
    """Draw uniform values in the open interval (0, 1).

    Args:
        rng: Random generator.
        shape: Output shape.
        dtype: float32 or float64.

    Returns:
        Array of the requested shape with no value equal to 0 or 1.
    """
    dtype_obj = np.dtype(dtype)
    out = rng.random(shape, dtype=dtype_obj)
    zeros = out == 0
    while np.any(zeros):
        out[zeros] = rng.random(int(np.count_nonzero(zeros)), dtype=dtype_obj)
        zeros = out == 0
    return out
