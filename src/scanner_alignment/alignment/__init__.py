"""
Scanner Alignment Module

This module resolves scanners reporting beacons in unknown local frames into
one global frame: pairwise search over the 24 axis-aligned rotations and
anchor translations, driven by an orchestrator that grows the aligned set
until every scanner is placed.
"""

from .pair_alignment import (
    DEFAULT_MIN_OVERLAP,
    Transform,
    PairAlignment,
    PairAligner,
    PairTrial,
    evaluate_pair_trial,
)
from .orchestrator import (
    AlignmentError,
    AlignmentStalled,
    Scanner,
    AlignedScanner,
    ScannerAlignment,
    align,
)

__all__ = [
    "DEFAULT_MIN_OVERLAP",
    "Transform",
    "PairAlignment",
    "PairAligner",
    "PairTrial",
    "evaluate_pair_trial",
    "AlignmentError",
    "AlignmentStalled",
    "Scanner",
    "AlignedScanner",
    "ScannerAlignment",
    "align",
]
