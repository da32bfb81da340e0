"""
Synthetic scanner surveys with a known ground truth.

- Draws a set of unique physical beacons in the global frame.
- The root scanner (index 0) sees ``root_beacons`` of them in the global frame
  directly (identity transform).
- Every other scanner sees ``shared_beacons`` of the root's beacons plus its
  own ``noise_beacons`` that no other scanner sees, expressed in a local frame
  obtained from a random catalog rotation and integer translation.

Beacon coordinates are spread over a wide range so that no unintended
rotation/translation can line up ``shared_beacons`` points by accident.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Set

import numpy as np

from ..alignment.orchestrator import Scanner
from ..alignment.pair_alignment import Transform
from ..geometry.points import Point3D, PointKey, array_to_points, points_to_array
from ..geometry.rotations import N_ROTATIONS, inverse_rotation_index, rotate_points


@dataclass
class SyntheticSurvey:
    """
    Generated scanners and the truth they were generated from.

    Attributes:
        scanners: Scanners with local beacon coordinates, root first
        transforms: Ground-truth local -> global transform per scanner
        global_points: Ground-truth global beacons seen by each scanner, same row order as its local beacons
        beacons: All distinct physical beacons in the global frame
    """

    scanners: List[Scanner]
    transforms: List[Transform]
    global_points: List[np.ndarray]
    beacons: FrozenSet[Point3D]


def _draw_unique_points(rng: np.random.Generator, n: int, coordinate_range: int, taken: Set[PointKey]) -> np.ndarray:
    rows = []
    while len(rows) < n:
        candidate = tuple(int(v) for v in rng.integers(-coordinate_range, coordinate_range + 1, size=3))
        if candidate in taken:
            continue
        taken.add(candidate)
        rows.append(candidate)
    return points_to_array(rows)


def to_local_frame(global_points: np.ndarray, transform: Transform) -> np.ndarray:
    """Invert ``transform``: local = R^-1 (global - t)."""
    shifted = global_points - np.asarray(transform.translation.as_tuple(), dtype=np.int64)
    return rotate_points(inverse_rotation_index(transform.rotation_index), shifted)


def generate_survey(
    n_scanners: int = 5,
    *,
    root_beacons: int = 25,
    shared_beacons: int = 12,
    noise_beacons: int = 8,
    coordinate_range: int = 1000,
    translation_range: int = 2000,
    rotation_indices: Optional[Sequence[int]] = None,
    seed: int = 0,
) -> SyntheticSurvey:
    """
    Generate a connected survey where every scanner overlaps the root.

    Args:
        n_scanners: Number of scanners including the root
        root_beacons: Beacons seen by the root scanner
        shared_beacons: Root beacons also seen by each other scanner
        noise_beacons: Extra beacons only seen by each non-root scanner
        coordinate_range: Beacon coordinates are drawn from [-range, range]
        translation_range: Scanner positions are drawn from [-range, range]
        rotation_indices: Rotation per non-root scanner (random if None)
        seed: Seed for the NumPy generator

    Returns:
        SyntheticSurvey
    """
    if n_scanners < 1:
        raise ValueError("n_scanners must be >= 1")
    if shared_beacons > root_beacons:
        raise ValueError("shared_beacons cannot exceed root_beacons")
    if rotation_indices is not None and len(rotation_indices) != n_scanners - 1:
        raise ValueError(f"Expected {n_scanners - 1} rotation indices, got {len(rotation_indices)}")

    rng = np.random.default_rng(seed)
    taken: Set[PointKey] = set()

    root_points = _draw_unique_points(rng, root_beacons, coordinate_range, taken)
    scanners = [Scanner.from_array("scanner 0", root_points)]
    transforms = [Transform.identity()]
    global_points = [root_points]

    for i in range(1, n_scanners):
        shared_idx = rng.choice(root_beacons, size=shared_beacons, replace=False)
        noise = _draw_unique_points(rng, noise_beacons, coordinate_range, taken)
        seen = np.vstack([root_points[shared_idx], noise])
        seen = seen[rng.permutation(len(seen))]

        rotation = int(rotation_indices[i - 1]) if rotation_indices is not None else int(rng.integers(0, N_ROTATIONS))
        translation = Point3D.from_sequence(rng.integers(-translation_range, translation_range + 1, size=3))
        transform = Transform(rotation_index=rotation, translation=translation)

        scanners.append(Scanner.from_array(f"scanner {i}", to_local_frame(seen, transform)))
        transforms.append(transform)
        global_points.append(seen)

    beacons = frozenset(array_to_points(np.vstack(global_points)))
    return SyntheticSurvey(
        scanners=scanners,
        transforms=transforms,
        global_points=global_points,
        beacons=beacons,
    )
