"""
Survey summaries over aligned scanners.

Consumers of an alignment need two things: the set of distinct beacons in the
global frame, and how far apart the scanners ended up.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Dict, FrozenSet, List, Sequence

from ..alignment.orchestrator import AlignedScanner
from ..geometry.points import Point3D


@dataclass(frozen=True)
class AlignmentSummary:
    n_scanners: int
    n_beacons: int
    largest_separation: int
    positions: Dict[str, Point3D]

    def to_dict(self) -> dict:
        return {
            "n_scanners": self.n_scanners,
            "n_beacons": self.n_beacons,
            "largest_separation": self.largest_separation,
            "positions": {name: list(p.as_tuple()) for name, p in self.positions.items()},
        }


def global_beacon_union(aligned: Sequence[AlignedScanner]) -> FrozenSet[Point3D]:
    beacons: set = set()
    for scanner in aligned:
        beacons |= scanner.global_beacons
    return frozenset(beacons)


def count_distinct_beacons(aligned: Sequence[AlignedScanner]) -> int:
    return len(global_beacon_union(aligned))


def scanner_positions(aligned: Sequence[AlignedScanner]) -> List[Point3D]:
    return [scanner.position for scanner in aligned]


def largest_scanner_separation(aligned: Sequence[AlignedScanner]) -> int:
    """Largest Manhattan distance between any two scanner positions (0 for fewer than two)."""
    positions = scanner_positions(aligned)
    return max((a.manhattan_distance(b) for a, b in combinations(positions, 2)), default=0)


def summarize_alignment(aligned: Sequence[AlignedScanner]) -> AlignmentSummary:
    """
    Beacon count, separation and per-scanner positions of an alignment.

    Raises:
        ValueError: If two scanners share a name, since positions are keyed by name
    """
    positions: Dict[str, Point3D] = {}
    for scanner in aligned:
        if scanner.name in positions:
            raise ValueError(f"Duplicate scanner name {scanner.name!r} in alignment")
        positions[scanner.name] = scanner.position
    return AlignmentSummary(
        n_scanners=len(aligned),
        n_beacons=count_distinct_beacons(aligned),
        largest_separation=largest_scanner_separation(aligned),
        positions=positions,
    )
