"""
Pairwise Scanner Alignment

Finds the rigid transform (axis-aligned rotation + integer translation) that
maps a candidate scanner's local beacons onto beacons already expressed in the
global frame.

For each of the 24 rotations, every (reference beacon, rotated candidate beacon)
pair proposes an anchor translation: the offset that would make the two points
coincide. If the scanners share at least ``min_overlap`` beacons, the true
translation is proposed by each of the shared pairs, so it is among the anchors.
Each anchor is checked by counting how many translated candidate beacons land
exactly on a reference beacon.

Not finding an overlap is the normal outcome for most scanner pairs and is
reported as ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

import numpy as np

from ..geometry.points import (
    Point3D,
    PointKey,
    PointsLike,
    array_to_points,
    count_overlap,
    point_keys,
    points_to_array,
    read_only,
    translate_points,
)
from ..geometry.rotations import IDENTITY_INDEX, ROTATIONS
from ..utils.logging import setup_logger

logger = setup_logger(__name__)

DEFAULT_MIN_OVERLAP = 12


@dataclass(frozen=True)
class Transform:
    """
    Rotation followed by translation, mapping a scanner's local frame to the global frame.

    Attributes:
        rotation_index: Index into the rotation catalog (0 = identity)
        translation: Offset added after rotating; equals the scanner position in the global frame
    """

    rotation_index: int = IDENTITY_INDEX
    translation: Point3D = field(default_factory=Point3D.origin)

    @classmethod
    def identity(cls) -> "Transform":
        return cls()

    def apply(self, point: Point3D) -> Point3D:
        return ROTATIONS.apply(self.rotation_index, point) + self.translation

    def apply_to_array(self, points: np.ndarray) -> np.ndarray:
        rotated = ROTATIONS.apply_to_array(self.rotation_index, points)
        return translate_points(rotated, self.translation)

    def to_matrix(self) -> np.ndarray:
        """4x4 homogeneous matrix equivalent of this transform."""
        T = np.eye(4, dtype=np.int64)
        T[:3, :3] = ROTATIONS.matrix(self.rotation_index)
        T[:3, 3] = self.translation.as_tuple()
        return T

    def to_dict(self) -> dict:
        return {
            "rotation_index": self.rotation_index,
            "translation": list(self.translation.as_tuple()),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Transform":
        return cls(
            rotation_index=int(data["rotation_index"]),
            translation=Point3D.from_sequence(data["translation"]),
        )


@dataclass(frozen=True)
class PairAlignment:
    """
    Successful alignment of a candidate scanner against a reference beacon set.

    Attributes:
        transform: Candidate local frame -> global frame
        global_points: Candidate beacons in the global frame, in the candidate's original order
        overlap: Number of candidate beacons coinciding with reference beacons
    """

    transform: Transform
    global_points: np.ndarray = field(compare=False, repr=False)
    overlap: int = 0

    @property
    def global_beacons(self) -> FrozenSet[Point3D]:
        return frozenset(array_to_points(self.global_points))


@dataclass
class PairAligner:
    """
    Exhaustive rotation x anchor-translation search between two beacon sets.

    Attributes:
        min_overlap: Number of beacons that must coincide to accept a transform
    """

    min_overlap: int = DEFAULT_MIN_OVERLAP

    def __post_init__(self) -> None:
        if self.min_overlap < 1:
            raise ValueError(f"min_overlap must be >= 1, got {self.min_overlap}")

    def align_pair(
        self,
        reference_beacons: PointsLike,
        candidate_beacons: PointsLike,
    ) -> Optional[PairAlignment]:
        """
        Try to place the candidate beacons onto the reference beacons.

        Args:
            reference_beacons: Beacons already in the global frame
            candidate_beacons: Raw local beacons of the scanner being aligned

        Returns:
            PairAlignment for the first rotation/anchor reaching ``min_overlap``
            (rotations in catalog order, anchors in reference-major pair order),
            or None when no such transform exists.
        """
        reference = points_to_array(reference_beacons)
        candidate = points_to_array(candidate_beacons)

        if len(reference) < self.min_overlap or len(candidate) < self.min_overlap:
            return None

        reference_keys = point_keys(reference)
        for rotation_index in ROTATIONS:
            result = self._try_rotation(rotation_index, reference, reference_keys, candidate)
            if result is not None:
                return result
        return None

    def _try_rotation(
        self,
        rotation_index: int,
        reference: np.ndarray,
        reference_keys: FrozenSet[PointKey],
        candidate: np.ndarray,
    ) -> Optional[PairAlignment]:
        rotated = ROTATIONS.apply_to_array(rotation_index, candidate)

        # All reference-minus-candidate offsets, reference-major
        anchors = (reference[:, None, :] - rotated[None, :, :]).reshape(-1, 3)
        unique, first_seen, frequency = np.unique(
            anchors, axis=0, return_index=True, return_counts=True
        )

        # An anchor proposed by k pairs can line up at most k beacons
        viable = np.flatnonzero(frequency >= self.min_overlap)
        if viable.size == 0:
            return None

        for idx in viable[np.argsort(first_seen[viable], kind="stable")]:
            translation = unique[idx]
            moved = rotated + translation
            hits = count_overlap(moved, reference_keys, required=self.min_overlap)
            if hits < self.min_overlap:
                continue

            overlap = len(point_keys(moved) & reference_keys)
            transform = Transform(
                rotation_index=int(rotation_index),
                translation=Point3D.from_sequence(translation),
            )
            logger.debug(
                f"Pair aligned: rotation={transform.rotation_index} "
                f"translation={transform.translation} overlap={overlap}"
            )
            return PairAlignment(
                transform=transform, global_points=read_only(moved), overlap=overlap
            )
        return None


def evaluate_pair_trial(
    trial: "PairTrial", aligner: Optional[PairAligner] = None
) -> Optional[PairAlignment]:
    """
    Process-pool entry point: run one scanner-pair trial.

    Must be at module level for pickling. The aligner travels to the worker
    with the trial, so subclasses of PairAligner are honoured.
    """
    return (aligner or PairAligner()).align_pair(
        trial.reference_points, trial.candidate_points
    )


@dataclass(frozen=True)
class PairTrial:
    """One (unaligned candidate, aligned reference) pair to evaluate."""

    candidate_id: int
    reference_id: int
    reference_points: np.ndarray = field(compare=False, repr=False)
    candidate_points: np.ndarray = field(compare=False, repr=False)
