"""
Tests for the scanner alignment orchestrator.

Covers the end-to-end synthetic survey, the two-pool bookkeeping, stalled
inputs, the failed-pair cache and parallel evaluation.
"""

import numpy as np
import pytest

from scanner_alignment.acceleration import ParallelExecutor
from scanner_alignment.alignment import (
    AlignedScanner,
    AlignmentStalled,
    PairAligner,
    Scanner,
    ScannerAlignment,
    Transform,
    align,
)
from scanner_alignment.analysis import (
    count_distinct_beacons,
    largest_scanner_separation,
    scanner_positions,
)
from scanner_alignment.geometry.points import Point3D
from scanner_alignment.geometry.rotations import rotate_points
from scanner_alignment.preprocessing.synthetic import generate_survey, to_local_frame


class _CountingAligner(PairAligner):
    """PairAligner that records every pair it is asked to evaluate."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = []

    def align_pair(self, reference_beacons, candidate_beacons):
        self.calls.append((len(reference_beacons), len(candidate_beacons)))
        return super().align_pair(reference_beacons, candidate_beacons)


class _RejectingAligner(PairAligner):
    """PairAligner that never finds an overlap."""

    def align_pair(self, reference_beacons, candidate_beacons):
        return None


def _chain_scanners():
    """
    Three scanners where 'far' overlaps only 'middle', and 'middle' only the root.

    'far' comes before 'middle' in input order, so it cannot align on the first
    pass and must wait for 'middle'.
    """
    rng = np.random.default_rng(21)
    pool = np.unique(rng.integers(-1000, 1001, size=(80, 3)), axis=0)
    rng.shuffle(pool)
    root_pts, bridge_pts, far_pts = pool[:20], pool[20:40], pool[40:60]

    middle_global = np.vstack([root_pts[:12], bridge_pts])
    far_global = np.vstack([bridge_pts[:12], far_pts])

    middle_t = Transform(rotation_index=7, translation=Point3D(1200, -30, 500))
    far_t = Transform(rotation_index=19, translation=Point3D(2400, 80, 910))

    scanners = [
        Scanner.from_array("root", root_pts),
        Scanner.from_array("far", to_local_frame(far_global, far_t)),
        Scanner.from_array("middle", to_local_frame(middle_global, middle_t)),
    ]
    n_beacons = len(root_pts) + len(bridge_pts) + len(far_pts)
    return scanners, {"middle": middle_t, "far": far_t}, n_beacons


class TestEndToEnd:
    def test_recovers_every_transform(self, survey):
        aligned = align(survey.scanners)
        assert len(aligned) == 5

        by_name = {a.name: a for a in aligned}
        for scanner, truth, global_points in zip(survey.scanners, survey.transforms, survey.global_points):
            result = by_name[scanner.name]
            assert result.position == truth.translation
            rotated = rotate_points(result.transform.rotation_index, scanner.beacon_array)
            expected_rotated = rotate_points(truth.rotation_index, scanner.beacon_array)
            assert rotated.tolist() == expected_rotated.tolist()
            assert result.global_points.tolist() == global_points.tolist()

    def test_beacon_union_matches_physical_beacons(self, survey):
        aligned = align(survey.scanners)
        assert count_distinct_beacons(aligned) == len(survey.beacons)

    def test_root_is_identity(self, survey):
        aligned = align(survey.scanners)
        assert aligned[0].name == "scanner 0"
        assert aligned[0].transform == Transform.identity()

    @pytest.mark.parametrize("seed", [1, 2, 3])
    def test_random_rotations(self, seed):
        s = generate_survey(6, seed=seed)
        aligned = align(s.scanners)
        positions = {a.name: a.position for a in aligned}
        for scanner, truth in zip(s.scanners, s.transforms):
            assert positions[scanner.name] == truth.translation
        assert count_distinct_beacons(aligned) == len(s.beacons)

    def test_idempotent(self, survey):
        first = align(survey.scanners)
        second = align(list(survey.scanners))
        assert count_distinct_beacons(first) == count_distinct_beacons(second)
        assert set(scanner_positions(first)) == set(scanner_positions(second))

    def test_chain_requires_second_pass(self):
        scanners, truth, n_beacons = _chain_scanners()
        aligner = _CountingAligner()
        alignment = ScannerAlignment(scanners, aligner=aligner)
        aligned = alignment.run()

        positions = {a.name: a.position for a in aligned}
        assert positions["middle"] == truth["middle"].translation
        assert positions["far"] == truth["far"].translation
        assert [a.name for a in aligned] == ["root", "middle", "far"]
        assert count_distinct_beacons(aligned) == n_beacons
        assert alignment.passes == 2
        # far vs root (fail), middle vs root (ok), then far vs middle only: root pair is cached
        assert len(aligner.calls) == 3

    def test_summary_independent_of_root(self, survey):
        from_first = align(survey.scanners, root_index=0)
        from_last = align(survey.scanners, root_index=4)
        assert from_last[0].name == "scanner 4"
        assert from_last[0].position == Point3D.origin()
        assert count_distinct_beacons(from_first) == count_distinct_beacons(from_last)
        assert largest_scanner_separation(from_first) == largest_scanner_separation(from_last)

    def test_single_scanner(self, survey):
        aligned = align(survey.scanners[:1])
        assert len(aligned) == 1
        assert aligned[0].position == Point3D.origin()

    def test_configurable_threshold(self):
        s = generate_survey(3, root_beacons=15, shared_beacons=6, noise_beacons=5, seed=9)
        with pytest.raises(AlignmentStalled):
            align(s.scanners)
        aligned = align(s.scanners, min_overlap=6)
        assert count_distinct_beacons(aligned) == len(s.beacons)


class TestStateMachine:
    def test_pool_sizes_invariant(self, survey):
        alignment = ScannerAlignment(survey.scanners)
        assert len(alignment.aligned) == 1
        assert len(alignment.unaligned) == 4

        previous = len(alignment.aligned)
        while not alignment.is_complete:
            assert alignment.step() > 0
            assert len(alignment.aligned) + len(alignment.unaligned) == 5
            assert len(alignment.aligned) >= previous
            previous = len(alignment.aligned)
        assert len(alignment.aligned) == 5

    def test_progress_callback(self, survey):
        calls = []
        alignment = ScannerAlignment(survey.scanners, progress_callback=lambda done, total: calls.append((done, total)))
        alignment.run()
        assert calls == [(2, 5), (3, 5), (4, 5), (5, 5)]

    def test_empty_input(self):
        with pytest.raises(ValueError):
            align([])

    def test_root_index_out_of_range(self, survey):
        with pytest.raises(IndexError):
            ScannerAlignment(survey.scanners, root_index=5)

    def test_aligned_records_are_frozen(self, survey):
        aligned = align(survey.scanners)
        with pytest.raises(AttributeError):
            aligned[1].transform = Transform.identity()

    @pytest.mark.parametrize("n_workers", [1, 2])
    def test_global_points_are_read_only(self, survey, n_workers):
        aligned = align(survey.scanners, executor=ParallelExecutor(n_workers=n_workers))
        for record in aligned:
            assert not record.global_points.flags.writeable
            with pytest.raises(ValueError):
                record.global_points[0, 0] += 1
        assert aligned[0].global_beacons == frozenset(survey.scanners[0].beacons)

    def test_root_global_points_do_not_share_scanner_memory(self, survey):
        scanner = survey.scanners[0]
        record = AlignedScanner.root(scanner)
        assert not np.shares_memory(record.global_points, scanner.beacon_array)
        assert record.global_points.tolist() == scanner.beacon_array.tolist()

    def test_scanner_beacon_array_is_read_only(self, survey):
        scanner = survey.scanners[0]
        with pytest.raises(ValueError):
            scanner.beacon_array[0, 0] = 0
        assert scanner.beacon_array[0].tolist() == list(scanner.beacons[0].as_tuple())


class TestStalled:
    def test_scanner_below_threshold_stalls(self, survey):
        root_points = survey.scanners[0].beacon_array
        rng = np.random.default_rng(99)
        noise = rng.integers(5000, 6000, size=(10, 3))
        lonely_global = np.vstack([root_points[:11], noise])
        lonely = Scanner.from_array(
            "lonely", to_local_frame(lonely_global, Transform(3, Point3D(10, 20, 30)))
        )

        with pytest.raises(AlignmentStalled) as exc_info:
            align(survey.scanners + [lonely])
        assert exc_info.value.unaligned_names == ["lonely"]
        assert "lonely" in str(exc_info.value)

    def test_tiny_scanner_stalls(self, survey):
        tiny = Scanner("tiny", (Point3D(1, 2, 3), Point3D(4, 5, 6)))
        with pytest.raises(AlignmentStalled) as exc_info:
            align([tiny] + survey.scanners[1:])
        assert set(exc_info.value.unaligned_names) == {"scanner 1", "scanner 2", "scanner 3", "scanner 4"}

    def test_empty_scanner_stalls(self, survey):
        with pytest.raises(AlignmentStalled):
            align(survey.scanners[:2] + [Scanner("empty", ())])

    def test_stall_leaves_aligned_pool_intact(self, survey):
        lonely = Scanner.from_array("lonely", np.arange(60).reshape(20, 3))
        alignment = ScannerAlignment(survey.scanners + [lonely])
        with pytest.raises(AlignmentStalled):
            alignment.run()
        assert len(alignment.aligned) == 5
        assert [s.name for s in alignment.unaligned] == ["lonely"]


class TestParallel:
    def test_parallel_matches_sequential(self, survey):
        sequential = align(survey.scanners)
        parallel = align(survey.scanners, executor=ParallelExecutor(n_workers=2))

        seq = {a.name: a.transform for a in sequential}
        par = {a.name: a.transform for a in parallel}
        assert seq == par

    def test_parallel_chain(self):
        scanners, truth, n_beacons = _chain_scanners()
        aligned = align(scanners, executor=ParallelExecutor(n_workers=2))
        positions = {a.name: a.position for a in aligned}
        assert positions["far"] == truth["far"].translation
        assert count_distinct_beacons(aligned) == n_beacons

    def test_parallel_uses_injected_aligner(self, survey):
        alignment = ScannerAlignment(
            survey.scanners, aligner=_RejectingAligner(), executor=ParallelExecutor(n_workers=2)
        )
        with pytest.raises(AlignmentStalled):
            alignment.run()
        assert len(alignment.aligned) == 1

    def test_parallel_stall(self, survey):
        lonely = Scanner.from_array("lonely", np.arange(60).reshape(20, 3))
        with pytest.raises(AlignmentStalled):
            align(survey.scanners + [lonely], executor=ParallelExecutor(n_workers=2))


def test_aligned_scanner_root_record(survey):
    record = AlignedScanner.root(survey.scanners[0])
    assert record.transform == Transform.identity()
    assert record.global_beacons == frozenset(survey.scanners[0].beacons)
