"""
Analysis Module

Beacon counts and scanner separations computed from an alignment.
"""

from .survey import (
    AlignmentSummary,
    global_beacon_union,
    count_distinct_beacons,
    scanner_positions,
    largest_scanner_separation,
    summarize_alignment,
)

__all__ = [
    "AlignmentSummary",
    "global_beacon_union",
    "count_distinct_beacons",
    "scanner_positions",
    "largest_scanner_separation",
    "summarize_alignment",
]
