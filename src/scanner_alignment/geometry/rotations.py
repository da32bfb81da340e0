"""
Rotation Catalog

The 24 proper rotations of the cube: every way to point a scanner along one of
six axis directions and then turn it to one of four "up" orientations.

Each rotation is an integer 3x3 matrix with a single +/-1 in every row and
column (a signed permutation). Of the 48 signed permutations, only those with
determinant +1 are kept; the other half are mirror images and would corrupt
every alignment built on top of them.

The catalog is built once at import time and is read-only afterwards. Index 0
is always the identity.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Iterator, Tuple

import numpy as np

from .points import Point3D

N_ROTATIONS = 24
IDENTITY_INDEX = 0


def _generate_rotation_matrices() -> Tuple[np.ndarray, ...]:
    matrices = []
    for permutation in itertools.permutations(range(3)):
        for signs in itertools.product((1, -1), repeat=3):
            m = np.zeros((3, 3), dtype=np.int64)
            for row, (col, sign) in enumerate(zip(permutation, signs)):
                m[row, col] = sign
            # Integer matrix, so the determinant is exactly +/-1 up to float noise
            if int(round(np.linalg.det(m))) != 1:
                continue
            m.setflags(write=False)
            matrices.append(m)
    return tuple(matrices)


def _find_inverses(matrices: Tuple[np.ndarray, ...]) -> Tuple[int, ...]:
    identity = np.eye(3, dtype=np.int64)
    inverses = []
    for m in matrices:
        for j, candidate in enumerate(matrices):
            if np.array_equal(candidate @ m, identity):
                inverses.append(j)
                break
        else:
            raise RuntimeError("Rotation catalog is not closed under inversion")
    return tuple(inverses)


@dataclass(frozen=True, eq=False)
class RotationCatalog:
    """
    Fixed table of axis-aligned rotations.

    Attributes:
        matrices: Read-only 3x3 int64 rotation matrices, identity first
        inverses: For each index, the index of its inverse rotation
    """

    matrices: Tuple[np.ndarray, ...]
    inverses: Tuple[int, ...]

    @classmethod
    def generate(cls) -> "RotationCatalog":
        matrices = _generate_rotation_matrices()
        if len(matrices) != N_ROTATIONS:
            raise RuntimeError(f"Expected {N_ROTATIONS} rotations, generated {len(matrices)}")
        return cls(matrices=matrices, inverses=_find_inverses(matrices))

    def __len__(self) -> int:
        return len(self.matrices)

    def __iter__(self) -> Iterator[int]:
        return iter(range(len(self.matrices)))

    def matrix(self, index: int) -> np.ndarray:
        if not 0 <= index < len(self.matrices):
            raise IndexError(f"Rotation index {index} out of range [0, {len(self.matrices)})")
        return self.matrices[index]

    def apply(self, index: int, point: Point3D) -> Point3D:
        """Rotate a single point."""
        m = self.matrix(index)
        return Point3D(
            int(m[0, 0] * point.x + m[0, 1] * point.y + m[0, 2] * point.z),
            int(m[1, 0] * point.x + m[1, 1] * point.y + m[1, 2] * point.z),
            int(m[2, 0] * point.x + m[2, 1] * point.y + m[2, 2] * point.z),
        )

    def apply_to_array(self, index: int, points: np.ndarray) -> np.ndarray:
        """Rotate every row of an ``(N, 3)`` array."""
        return points @ self.matrix(index).T

    def inverse_index(self, index: int) -> int:
        self.matrix(index)
        return self.inverses[index]


ROTATIONS = RotationCatalog.generate()


def apply_rotation(index: int, point: Point3D) -> Point3D:
    return ROTATIONS.apply(index, point)


def rotate_points(index: int, points: np.ndarray) -> np.ndarray:
    return ROTATIONS.apply_to_array(index, points)


def inverse_rotation_index(index: int) -> int:
    return ROTATIONS.inverse_index(index)


def rotation_matrix(index: int) -> np.ndarray:
    """Read-only 3x3 matrix of the rotation at ``index``."""
    return ROTATIONS.matrix(index)
