"""
Scanner Alignment Orchestration

Brings every scanner into one global frame by growing a pool of aligned
scanners one overlap at a time.

State machine:
- initial: the root scanner is aligned with the identity transform, all
  others wait in the unaligned pool (input order);
- pass: every unaligned scanner is tried against every aligned scanner it has
  not already failed against; a success promotes the scanner immediately, so
  later scanners in the same pass can align against it;
- terminal: the unaligned pool is empty.

A pass that promotes nothing while scanners remain means the overlap graph is
disconnected, and alignment stops with AlignmentStalled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

import numpy as np

from ..acceleration.parallel_executor import ParallelExecutor
from ..geometry.points import Point3D, array_to_points, points_to_array, read_only
from ..utils.logging import setup_logger
from .pair_alignment import (
    DEFAULT_MIN_OVERLAP,
    PairAligner,
    PairAlignment,
    PairTrial,
    Transform,
    evaluate_pair_trial,
)

logger = setup_logger(__name__)


class AlignmentError(RuntimeError):
    """Base class for alignment failures surfaced to callers."""


class AlignmentStalled(AlignmentError):
    """No remaining scanner overlaps any aligned scanner."""

    def __init__(self, unaligned_names: Sequence[str]):
        self.unaligned_names = list(unaligned_names)
        super().__init__(
            f"Alignment stalled: {len(self.unaligned_names)} scanner(s) overlap no aligned scanner: "
            + ", ".join(self.unaligned_names)
        )


@dataclass(frozen=True)
class Scanner:
    """A sensor and the beacons it reported, in its own local frame."""

    name: str
    beacons: Tuple[Point3D, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "beacons", tuple(self.beacons))

    @classmethod
    def from_array(cls, name: str, points: np.ndarray) -> "Scanner":
        return cls(name=name, beacons=tuple(array_to_points(points)))

    @cached_property
    def beacon_array(self) -> np.ndarray:
        return read_only(points_to_array(self.beacons))

    def __len__(self) -> int:
        return len(self.beacons)


@dataclass(frozen=True)
class AlignedScanner:
    """
    A scanner resolved into the global frame.

    Attributes:
        scanner: The original scanner (local beacons untouched)
        transform: Local -> global transform
        global_points: Beacons in the global frame, in the scanner's original order
    """

    scanner: Scanner
    transform: Transform
    global_points: np.ndarray = field(compare=False, repr=False)

    @classmethod
    def root(cls, scanner: Scanner) -> "AlignedScanner":
        return cls(
            scanner=scanner,
            transform=Transform.identity(),
            global_points=read_only(scanner.beacon_array, copy=True),
        )

    @classmethod
    def from_pair_alignment(cls, scanner: Scanner, result: PairAlignment) -> "AlignedScanner":
        return cls(
            scanner=scanner,
            transform=result.transform,
            global_points=read_only(result.global_points),
        )

    @property
    def name(self) -> str:
        return self.scanner.name

    @property
    def position(self) -> Point3D:
        return self.transform.translation

    @cached_property
    def global_beacons(self) -> FrozenSet[Point3D]:
        return frozenset(array_to_points(self.global_points))


class ScannerAlignment:
    """
    Two-pool alignment state machine.

    Example:
        alignment = ScannerAlignment(scanners, aligner=PairAligner(min_overlap=12))
        aligned = alignment.run()
    """

    def __init__(
        self,
        scanners: Sequence[Scanner],
        *,
        aligner: Optional[PairAligner] = None,
        root_index: int = 0,
        executor: Optional[ParallelExecutor] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """
        Args:
            scanners: Scanners in input order
            aligner: Pair aligner to use (default: PairAligner with min_overlap=12)
            root_index: Input position of the scanner that defines the global frame
            executor: Optional process-pool executor; with more than one worker,
                each pass evaluates all pending pairs in parallel
            progress_callback: Called after each promotion with (aligned_count, total)
        """
        if len(scanners) == 0:
            raise ValueError("Cannot align an empty list of scanners")
        if not 0 <= root_index < len(scanners):
            raise IndexError(f"Root index {root_index} out of range for {len(scanners)} scanners")

        self.aligner = aligner or PairAligner()
        self.executor = executor
        self.progress_callback = progress_callback
        self.total = len(scanners)

        root = scanners[root_index]
        self._aligned: Dict[int, AlignedScanner] = {root_index: AlignedScanner.root(root)}
        self._unaligned: Dict[int, Scanner] = {
            i: s for i, s in enumerate(scanners) if i != root_index
        }
        # (candidate id, reference id) pairs already known not to overlap
        self._failed_pairs: Set[Tuple[int, int]] = set()
        self.passes = 0

        logger.info(f"Aligning {self.total} scanners with '{root.name}' as the global frame")

    @property
    def aligned(self) -> Tuple[AlignedScanner, ...]:
        """Aligned scanners in promotion order."""
        return tuple(self._aligned.values())

    @property
    def unaligned(self) -> Tuple[Scanner, ...]:
        return tuple(self._unaligned.values())

    @property
    def is_complete(self) -> bool:
        return not self._unaligned

    def step(self) -> int:
        """
        Run one pass over the unaligned pool.

        Returns:
            Number of scanners promoted during the pass
        """
        self.passes += 1
        if self.executor is not None and self.executor.n_workers > 1:
            promoted = self._parallel_pass()
        else:
            promoted = self._sequential_pass()
        logger.debug(
            f"Pass {self.passes}: promoted {promoted}, "
            f"{len(self._aligned)} aligned / {len(self._unaligned)} unaligned"
        )
        return promoted

    def run(self) -> List[AlignedScanner]:
        """
        Align every scanner.

        Returns:
            Aligned scanners in promotion order (root first)

        Raises:
            AlignmentStalled: If a pass makes no progress while scanners remain
        """
        # Each productive pass promotes at least one scanner
        max_passes = self.total
        while self._unaligned:
            if self.passes >= max_passes or self.step() == 0:
                names = [s.name for s in self._unaligned.values()]
                logger.error(f"Alignment stalled after {self.passes} passes; unaligned: {', '.join(names)}")
                raise AlignmentStalled(names)

        logger.info(f"All {self.total} scanners aligned in {self.passes} passes")
        return list(self._aligned.values())

    # ------------------------ Passes ------------------------
    def _sequential_pass(self) -> int:
        promoted = 0
        for candidate_id, scanner in list(self._unaligned.items()):
            for reference_id, reference in list(self._aligned.items()):
                if (candidate_id, reference_id) in self._failed_pairs:
                    continue
                result = self.aligner.align_pair(reference.global_points, scanner.beacon_array)
                if result is None:
                    self._failed_pairs.add((candidate_id, reference_id))
                    continue
                self._promote(candidate_id, reference_id, result)
                promoted += 1
                break
        return promoted

    def _parallel_pass(self) -> int:
        trials = [
            PairTrial(
                candidate_id=candidate_id,
                reference_id=reference_id,
                reference_points=reference.global_points,
                candidate_points=scanner.beacon_array,
            )
            for candidate_id, scanner in self._unaligned.items()
            for reference_id, reference in self._aligned.items()
            if (candidate_id, reference_id) not in self._failed_pairs
        ]
        if not trials:
            return 0

        results = self.executor.map(
            trials,
            worker_fn=evaluate_pair_trial,
            worker_kwargs={"aligner": self.aligner},
        )

        # First success per candidate wins, in trial order
        winners: Dict[int, Tuple[int, PairAlignment]] = {}
        for trial, result in zip(trials, results):
            if result is None:
                self._failed_pairs.add((trial.candidate_id, trial.reference_id))
            elif trial.candidate_id not in winners:
                winners[trial.candidate_id] = (trial.reference_id, result)

        for candidate_id, (reference_id, result) in winners.items():
            self._promote(candidate_id, reference_id, result)
        return len(winners)

    def _promote(self, candidate_id: int, reference_id: int, result: PairAlignment) -> None:
        scanner = self._unaligned.pop(candidate_id)
        self._aligned[candidate_id] = AlignedScanner.from_pair_alignment(scanner, result)

        logger.info(
            f"Aligned '{scanner.name}' via '{self._aligned[reference_id].name}': "
            f"rotation={result.transform.rotation_index} position={result.transform.translation} "
            f"overlap={result.overlap} ({len(self._aligned)}/{self.total})"
        )
        if self.progress_callback:
            self.progress_callback(len(self._aligned), self.total)


def align(
    scanners: Sequence[Scanner],
    *,
    min_overlap: int = DEFAULT_MIN_OVERLAP,
    root_index: int = 0,
    executor: Optional[ParallelExecutor] = None,
) -> List[AlignedScanner]:
    """
    Resolve every scanner into a single global frame.

    Args:
        scanners: Parsed scanners in input order
        min_overlap: Beacons that must coincide for two scanners to overlap
        root_index: Scanner whose local frame becomes the global frame
        executor: Optional ParallelExecutor for evaluating scanner pairs

    Returns:
        Aligned scanners, root first, then in promotion order

    Raises:
        ValueError: If ``scanners`` is empty
        AlignmentStalled: If some scanners cannot be connected to the root
    """
    return ScannerAlignment(
        scanners,
        aligner=PairAligner(min_overlap=min_overlap),
        root_index=root_index,
        executor=executor,
    ).run()
