"""
vikos Vectors
==============
Numeric vectors used as model features and model weights.

Two flavours share one contract:

    StaticVector[n]
        The dimension is part of the type. ``StaticVector[3]`` is a class
        whose ``DIMENSION`` is 3, known before any instance exists, so a
        model built from it knows its feature dimension up front and can
        be created without a size hint (``StaticVector[3].zero()``).
        Vectors of different static classes never meet in a dot product.

    DynamicVector
        The dimension is only known at runtime (the length of the data)
        and is checked each time two vectors meet.

Both are thin wrappers around a one-dimensional ``numpy.float64`` array.
Models and costs are written against ``Vector``, never against a flavour,
so callers pick the tradeoff.

Usage:
    >>> a = DynamicVector([1.0, 2.0])
    >>> a.dot(DynamicVector([3.0, 4.0]))
    11.0
    >>> Point = StaticVector[2]
    >>> Point.DIMENSION
    2
    >>> Point.zero().dot(Point([3.0, 4.0]))
    0.0
"""

from __future__ import annotations

from typing import ClassVar, Iterator, TypeVar

import numpy as np

from vikos.errors import DimensionMismatch

V = TypeVar("V", bound="Vector")


def _components(vector) -> np.ndarray:
    """Components of ``vector`` as a float64 array, read by iteration if needed."""
    if isinstance(vector, Vector):
        return vector.values
    return np.fromiter(vector, dtype=np.float64, count=vector.dimension)


class Vector:
    """
    Vector whose components are projections along orthogonal base vectors.

    Parameters
    ----------
    values : array-like
        Components of the vector. Converted to a one-dimensional float64
        array; an existing float64 array is wrapped without copying.
    """

    def __init__(self, values):
        array = np.asarray(values, dtype=np.float64)
        if array.ndim != 1:
            raise ValueError(
                f"{type(self).__name__} needs one-dimensional values, "
                f"got shape {array.shape}"
            )
        self._values = array

    @classmethod
    def zero_from_dimension(cls: type[V], dimension: int) -> V:
        """Vector of ``dimension`` zeros."""
        return cls(np.zeros(dimension, dtype=np.float64))

    @classmethod
    def coerce(cls: type[V], value) -> V:
        """
        Interpret ``value`` as an instance of this vector class.

        Instances of the class are returned unchanged; other vectors,
        sequences and arrays are wrapped. Static classes validate the
        number of components while wrapping.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Vector):
            value = value.values
        return cls(value)

    @property
    def dimension(self) -> int:
        return int(self._values.shape[0])

    @property
    def values(self) -> np.ndarray:
        """Live view of the components. Writes go through to the vector."""
        return self._values

    def at(self, index: int) -> float:
        """Length of the projection along the ``index``-th base."""
        return float(self._values[index])

    def dot(self, other: Vector) -> float:
        """
        Scalar product with ``other``.

        ``other`` may be any vector that reports its ``dimension`` and
        iterates its components; it need not be backed by numpy.

        Raises
        ------
        DimensionMismatch
            If the two vectors have different dimensions.
        """
        if self.dimension != other.dimension:
            raise DimensionMismatch(self.dimension, other.dimension, "dot product")
        return float(np.dot(self._values, _components(other)))

    def copy(self: V) -> V:
        return type(self)(self._values.copy())

    def __len__(self) -> int:
        return self.dimension

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._values)

    def __getitem__(self, index: int) -> float:
        return float(self._values[index])

    def __setitem__(self, index: int, value: float) -> None:
        self._values[index] = value

    def __array__(self, dtype=None, copy=None):
        if dtype is None:
            return self._values
        return self._values.astype(dtype)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._values.tolist()})"


class DynamicVector(Vector):
    """Vector whose dimension is only known at runtime."""


class StaticVector(Vector):
    """
    Vector whose dimension is fixed by its class.

    Use ``StaticVector[n]`` to obtain the class for dimension ``n``. The
    same class object is returned for every request of the same ``n``.
    """

    DIMENSION: ClassVar[int] = 0

    _classes: ClassVar[dict[int, type[StaticVector]]] = {}

    def __class_getitem__(cls, dimension: int) -> type[StaticVector]:
        if isinstance(dimension, bool) or not isinstance(dimension, int):
            raise TypeError(
                f"StaticVector dimension must be an int, got {dimension!r}"
            )
        if dimension < 1:
            raise ValueError(
                f"StaticVector dimension must be positive, got {dimension}"
            )
        if dimension not in StaticVector._classes:
            StaticVector._classes[dimension] = type(
                f"StaticVector{dimension}",
                (StaticVector,),
                {"DIMENSION": dimension, "__module__": __name__},
            )
        return StaticVector._classes[dimension]

    def __init__(self, values):
        if type(self).DIMENSION == 0:
            raise TypeError(
                "StaticVector has no dimension of its own; "
                "instantiate StaticVector[n] instead"
            )
        super().__init__(values)
        if self.dimension != self.DIMENSION:
            raise DimensionMismatch(
                self.DIMENSION, self.dimension, type(self).__name__
            )

    @classmethod
    def zero(cls: type[V]) -> V:
        """Vector of zeros. No size hint needed, the class knows it."""
        return cls(np.zeros(cls.DIMENSION, dtype=np.float64))

    @classmethod
    def zero_from_dimension(cls: type[V], dimension: int) -> V:
        if dimension != cls.DIMENSION:
            raise DimensionMismatch(cls.DIMENSION, dimension, cls.__name__)
        return cls.zero()

    def dot(self, other: Vector) -> float:
        # Two static classes must be the same class; the data is never read
        # when the types already disagree.
        if isinstance(other, StaticVector) and type(other) is not type(self):
            raise DimensionMismatch(self.DIMENSION, other.DIMENSION, "dot product")
        return super().dot(other)

    def __reduce__(self):
        return (_rebuild_static, (self.DIMENSION, self._values.copy()))


def _rebuild_static(dimension: int, values: np.ndarray) -> StaticVector:
    return StaticVector[dimension](values)


def is_static(vector_type: type) -> bool:
    """True if ``vector_type`` is a ``StaticVector[n]`` class."""
    return (
        isinstance(vector_type, type)
        and issubclass(vector_type, StaticVector)
        and vector_type.DIMENSION > 0
    )
