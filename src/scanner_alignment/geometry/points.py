"""
Integer point primitives.

Beacons live on the integer lattice, so points are exact values that can be
hashed and compared. Bulk work (rotation, translation) is done on ``(N, 3)``
int64 arrays; set-membership tests are done on plain coordinate tuples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

PointKey = Tuple[int, int, int]


@dataclass(frozen=True)
class Point3D:
    """A point (or offset) on the integer 3D lattice."""

    x: int
    y: int
    z: int

    @classmethod
    def origin(cls) -> "Point3D":
        return cls(0, 0, 0)

    @classmethod
    def from_sequence(cls, values: Sequence[int]) -> "Point3D":
        """Build a point from any length-3 sequence of integers (tuple, list, array row)."""
        if len(values) != 3:
            raise ValueError(f"Expected 3 coordinates, got {len(values)}")
        return cls(int(values[0]), int(values[1]), int(values[2]))

    def __add__(self, other: "Point3D") -> "Point3D":
        return Point3D(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Point3D") -> "Point3D":
        return Point3D(self.x - other.x, self.y - other.y, self.z - other.z)

    def __neg__(self) -> "Point3D":
        return Point3D(-self.x, -self.y, -self.z)

    def manhattan_distance(self, other: "Point3D") -> int:
        return abs(self.x - other.x) + abs(self.y - other.y) + abs(self.z - other.z)

    def as_tuple(self) -> PointKey:
        return (self.x, self.y, self.z)

    def __str__(self) -> str:
        return f"({self.x}, {self.y}, {self.z})"


PointsLike = Union[np.ndarray, Iterable[Point3D], Iterable[Sequence[int]]]


def points_to_array(points: PointsLike) -> np.ndarray:
    """
    Convert points to an ``(N, 3)`` int64 array.

    Accepts an existing array, or any iterable of Point3D / coordinate triples.
    An empty input yields an array of shape ``(0, 3)``.
    """
    if isinstance(points, np.ndarray):
        arr = np.asarray(points, dtype=np.int64)
    else:
        rows = [p.as_tuple() if isinstance(p, Point3D) else tuple(p) for p in points]
        arr = np.asarray(rows, dtype=np.int64)
    if arr.size == 0:
        return np.empty((0, 3), dtype=np.int64)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise ValueError(f"Expected Nx3 array, got shape {arr.shape}")
    return arr


def array_to_points(points: np.ndarray) -> List[Point3D]:
    return [Point3D(int(x), int(y), int(z)) for x, y, z in points.tolist()]


def point_keys(points: np.ndarray) -> frozenset[PointKey]:
    """Hashable coordinate tuples for set-membership tests."""
    return frozenset(map(tuple, points.tolist()))


def translate_points(points: np.ndarray, offset: Union[Point3D, np.ndarray, Sequence[int]]) -> np.ndarray:
    """Return ``points + offset`` as a new array."""
    if isinstance(offset, Point3D):
        offset = offset.as_tuple()
    return points + np.asarray(offset, dtype=np.int64)


def count_overlap(
    points: np.ndarray,
    reference: AbstractSet[PointKey],
    *,
    required: Optional[int] = None,
) -> int:
    """
    Count how many rows of ``points`` coincide with a point in ``reference``.

    When ``required`` is given the count stops early: as soon as ``required``
    matches are found, or as soon as the remaining rows can no longer reach it.
    The returned value is then a lower bound once ``required`` is reached, and
    some value below ``required`` otherwise.
    """
    rows = points.tolist()
    n = len(rows)
    count = 0
    for i, row in enumerate(rows):
        if tuple(row) in reference:
            count += 1
            if required is not None and count >= required:
                return count
        elif required is not None and count + (n - i - 1) < required:
            return count
    return count


def read_only(points: np.ndarray, *, copy: bool = False) -> np.ndarray:
    """
    Return a non-writable view of ``points`` (or of a copy of it).

    Writes through the returned array raise ``ValueError``; the caller's
    array keeps its own flags.
    """
    view = points.copy() if copy else points.view()
    view.setflags(write=False)
    return view
