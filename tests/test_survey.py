"""
Tests for survey summaries over aligned scanners.
"""

import numpy as np
import pytest

from scanner_alignment.alignment import AlignedScanner, Scanner, Transform, align
from scanner_alignment.analysis import (
    count_distinct_beacons,
    global_beacon_union,
    largest_scanner_separation,
    scanner_positions,
    summarize_alignment,
)
from scanner_alignment.geometry.points import Point3D


def _record(name, position, points):
    points = np.asarray(points, dtype=np.int64)
    return AlignedScanner(
        scanner=Scanner.from_array(name, points),
        transform=Transform(rotation_index=0, translation=position),
        global_points=points,
    )


def _hand_built():
    return [
        _record("a", Point3D(0, 0, 0), [[1, 1, 1], [2, 2, 2]]),
        _record("b", Point3D(68, -1246, -43), [[2, 2, 2], [3, 3, 3]]),
        _record("c", Point3D(1105, -1205, 1229), [[3, 3, 3]]),
        _record("d", Point3D(-92, -2380, -20), [[4, 4, 4]]),
    ]


def test_global_beacon_union_deduplicates():
    union = global_beacon_union(_hand_built())
    assert union == {Point3D(1, 1, 1), Point3D(2, 2, 2), Point3D(3, 3, 3), Point3D(4, 4, 4)}
    assert count_distinct_beacons(_hand_built()) == 4


def test_scanner_positions_in_order():
    assert scanner_positions(_hand_built())[1] == Point3D(68, -1246, -43)


def test_largest_scanner_separation():
    assert largest_scanner_separation(_hand_built()) == 3621


def test_separation_of_single_scanner_is_zero():
    assert largest_scanner_separation(_hand_built()[:1]) == 0


def test_summarize_alignment(survey):
    aligned = align(survey.scanners)
    summary = summarize_alignment(aligned)
    assert summary.n_scanners == 5
    assert summary.n_beacons == len(survey.beacons)
    assert summary.positions["scanner 0"] == Point3D.origin()

    truth = [t.translation for t in survey.transforms]
    expected = max(a.manhattan_distance(b) for a in truth for b in truth)
    assert summary.largest_separation == expected

    as_dict = summary.to_dict()
    assert as_dict["n_beacons"] == len(survey.beacons)
    assert as_dict["positions"]["scanner 0"] == [0, 0, 0]


def test_summarize_alignment_rejects_duplicate_names():
    records = _hand_built()
    records[2] = _record("a", Point3D(1105, -1205, 1229), [[3, 3, 3]])
    with pytest.raises(ValueError, match="Duplicate scanner name 'a'"):
        summarize_alignment(records)
