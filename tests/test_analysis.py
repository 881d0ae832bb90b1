#!/usr/bin/env python3
"""
Tests for corpus-wide analysis: parallel per-file runs, merge and partition.
"""

import threading

import pytest

from gpx_analyzer.analysis import (
    AnalysisReport,
    FileAnalysis,
    analyze_file,
    analyze_files,
    build_report,
    merge_results,
    partition_results,
)
from gpx_analyzer.config import AnalyzerConfig
from gpx_analyzer.errors import InvalidInputError
from gpx_analyzer.geometry import CoordinateProjector, Position
from gpx_analyzer.tracker import CandidateResult

from helpers import ORIGIN, distances_of, equator_points, trkpt


def outcome(path, distances):
    return FileAnalysis(
        path=path, results=tuple(CandidateResult(d, path) for d in distances)
    )


class TestPartition:
    def test_successor_of_within_partition_is_nearest_outside(self):
        results = [CandidateResult(d, "a.gpx") for d in (30, 50, 150, 500)]
        within, nearest_outside, closest = partition_results(results, 100.0)
        assert distances_of(within) == [30, 50]
        assert nearest_outside.distance == 150
        assert closest is None

    def test_everything_within(self):
        results = [CandidateResult(d, "a.gpx") for d in (10, 20)]
        within, nearest_outside, closest = partition_results(results, 100.0)
        assert distances_of(within) == [10, 20]
        assert nearest_outside is None
        assert closest is None

    def test_nothing_within_reports_closest(self):
        results = [CandidateResult(d, "a.gpx") for d in (120, 300)]
        within, nearest_outside, closest = partition_results(results, 100.0)
        assert within == ()
        assert nearest_outside is None
        assert closest.distance == 120

    def test_no_results(self):
        assert partition_results([], 100.0) == ((), None, None)

    def test_boundary_is_inclusive(self):
        results = [CandidateResult(d, "a.gpx") for d in (100.0, 100.5)]
        within, nearest_outside, _ = partition_results(results, 100.0)
        assert distances_of(within) == [100.0]
        assert nearest_outside.distance == 100.5


class TestMerge:
    def test_merge_is_independent_of_file_order(self):
        first = outcome("one.gpx", [20, 90])
        second = outcome("two.gpx", [5, 70])

        assert distances_of(merge_results([first, second])) == [5, 20, 70, 90]
        assert distances_of(merge_results([second, first])) == [5, 20, 70, 90]

    def test_ties_keep_file_list_order(self):
        first = outcome("one.gpx", [10])
        second = outcome("two.gpx", [10])
        merged = merge_results([first, second])
        assert [r.path for r in merged] == ["one.gpx", "two.gpx"]

    def test_build_report_keeps_file_outcomes(self):
        failed = FileAnalysis(path="bad.gpx", error="No such file or directory")
        report = build_report([outcome("one.gpx", [20, 150]), failed], 100.0)
        assert distances_of(report.within) == [20]
        assert report.nearest_outside.distance == 150
        assert report.failures == [("bad.gpx", "No such file or directory")]


class TestAnalyzeFile:
    def test_results_in_discovery_order(self, write_gpx):
        path = write_gpx("one.gpx", equator_points([50, 150, 80, 30, 500]))
        analysis = analyze_file(
            path, CoordinateProjector(ORIGIN), AnalyzerConfig(distance=100.0)
        )
        assert distances_of(analysis.results) == [pytest.approx(50), pytest.approx(30)]
        assert analysis.points == 5
        assert not analysis.failed

    def test_unclosed_time_keeps_the_timestamp_of_its_point(self, write_gpx):
        points = equator_points([500, 20, 500], ["A", "B", "C"])
        points[1] = points[1].replace("<time>B</time>", "<time>B")
        path = write_gpx("unclosed.gpx", points)

        analysis = analyze_file(
            path, CoordinateProjector(ORIGIN), AnalyzerConfig(distance=100.0)
        )

        assert len(analysis.results) == 1
        assert analysis.results[0].distance == pytest.approx(20.0)
        assert analysis.results[0].time == "B"

    def test_unreadable_file_is_reported_not_raised(self, tmp_path):
        missing = str(tmp_path / "missing.gpx")
        analysis = analyze_file(
            missing, CoordinateProjector(ORIGIN), AnalyzerConfig(distance=100.0)
        )
        assert analysis.failed
        assert analysis.results == ()


class TestAnalyzeFiles:
    def test_end_to_end_scenario(self, write_gpx):
        times = ["2021-06-01T08:00:00Z", None, "2021-06-01T08:00:10Z", "2021-06-01T08:00:15Z", None]
        track = write_gpx("track.gpx", equator_points([50, 150, 80, 30, 500], times))
        empty = write_gpx("empty.gpx", [])

        report = analyze_files([track, empty], ORIGIN, AnalyzerConfig(distance=100.0))

        assert distances_of(report.within) == [pytest.approx(30), pytest.approx(50)]
        assert [r.time for r in report.within] == [
            "2021-06-01T08:00:15Z",
            "2021-06-01T08:00:00Z",
        ]
        # Zones closed in this file, so its nearest miss is not a result
        assert report.nearest_outside is None
        assert report.closest is None
        assert report.failures == []

    def test_nearest_outside_comes_from_another_file(self, write_gpx):
        near = write_gpx("near.gpx", equator_points([300, 40, 300]))
        far = write_gpx("far.gpx", equator_points([900, 150, 700]))

        report = analyze_files([near, far], ORIGIN, AnalyzerConfig(distance=100.0))

        assert distances_of(report.within) == [pytest.approx(40)]
        assert report.nearest_outside.distance == pytest.approx(150)
        assert report.nearest_outside.path == far

    def test_nothing_within_reports_closest(self, write_gpx):
        path = write_gpx("far.gpx", equator_points([150, 500, 300]))
        report = analyze_files([path], ORIGIN, AnalyzerConfig(distance=100.0))
        assert report.within == ()
        assert report.closest.distance == pytest.approx(150)

    def test_no_points_found(self, write_gpx):
        report = analyze_files(
            [write_gpx("empty.gpx", [])], ORIGIN, AnalyzerConfig(distance=100.0)
        )
        assert not report.found_any
        assert report.closest is None

    def test_no_files(self):
        report = analyze_files([], ORIGIN, AnalyzerConfig(distance=100.0))
        assert report == AnalysisReport(100.0, (), (), None, None, ())

    def test_merge_across_files_is_order_independent(self, write_gpx):
        first = write_gpx("first.gpx", equator_points([20, 200, 90]))
        second = write_gpx("second.gpx", equator_points([5, 300, 70]))
        config = AnalyzerConfig(distance=100.0, workers=2)

        forward = analyze_files([first, second], ORIGIN, config)
        backward = analyze_files([second, first], ORIGIN, config)

        expected = [pytest.approx(d) for d in (5, 20, 70, 90)]
        assert distances_of(forward.within) == expected
        assert distances_of(backward.within) == expected

    def test_unreadable_file_does_not_abort_the_run(self, write_gpx, tmp_path):
        good = write_gpx("good.gpx", equator_points([10]))
        missing = str(tmp_path / "gone.gpx")

        report = analyze_files([missing, good], ORIGIN, AnalyzerConfig(distance=100.0))

        assert distances_of(report.within) == [pytest.approx(10)]
        assert [f.path for f in report.failures] == [missing]

    def test_invalid_reference_fails_before_processing(self, tmp_path):
        with pytest.raises(InvalidInputError):
            analyze_files(
                [str(tmp_path / "never-read.gpx")],
                Position(latitude=95.0, longitude=0.0),
                AnalyzerConfig(distance=100.0),
            )

    @pytest.mark.parametrize("distance", [-1.0, float("nan"), float("inf")])
    def test_invalid_threshold_fails_before_processing(self, tmp_path, distance):
        with pytest.raises(InvalidInputError):
            analyze_files(
                [str(tmp_path / "never-read.gpx")], ORIGIN, AnalyzerConfig(distance=distance)
            )

    def test_invalid_worker_count(self):
        with pytest.raises(InvalidInputError):
            analyze_files([], ORIGIN, AnalyzerConfig(distance=1.0, workers=0))

    def test_progress_reports_every_file(self, write_gpx):
        paths = [write_gpx(f"{i}.gpx", equator_points([10 * (i + 1)])) for i in range(4)]
        seen = []

        analyze_files(
            paths,
            ORIGIN,
            AnalyzerConfig(distance=100.0, workers=2),
            progress=lambda done, total, result: seen.append((done, total, result.path)),
        )

        assert [done for done, _, _ in seen] == [1, 2, 3, 4]
        assert {total for _, total, _ in seen} == {4}
        assert sorted(path for _, _, path in seen) == sorted(paths)

    def test_repeated_runs_produce_identical_reports(self, write_gpx):
        paths = [
            write_gpx("a.gpx", equator_points([20, 200, 90, 400])),
            write_gpx("b.gpx", equator_points([150, 500])),
            write_gpx("c.gpx", [trkpt(0.0, "bad"), trkpt(0.0, 0.0001)]),
        ]
        config = AnalyzerConfig(distance=100.0, workers=3)

        assert analyze_files(paths, ORIGIN, config) == analyze_files(paths, ORIGIN, config)

    def test_interrupt_propagates_and_cancels_pending_files(self, write_gpx):
        paths = [write_gpx(f"{i}.gpx", equator_points([10, 500])) for i in range(8)]
        seen = []

        def interrupt(done, total, result):
            seen.append(done)
            raise KeyboardInterrupt

        with pytest.raises(KeyboardInterrupt):
            analyze_files(
                paths, ORIGIN, AnalyzerConfig(distance=100.0, workers=1), progress=interrupt
            )

        assert seen == [1]

    def test_failing_progress_callback_releases_worker_threads(self, write_gpx):
        paths = [write_gpx(f"{i}.gpx", equator_points([10, 500])) for i in range(4)]
        threads_before = threading.active_count()

        def fail(done, total, result):
            raise RuntimeError("progress display broke")

        with pytest.raises(RuntimeError):
            analyze_files(
                paths, ORIGIN, AnalyzerConfig(distance=100.0, workers=2), progress=fail
            )

        assert threading.active_count() == threads_before
