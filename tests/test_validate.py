"""Tests for validation checks and report output."""

import json
import os

from nosgen.models import Severity
from nosgen.validate.report import format_check_result, generate_report
from nosgen.validate.rules import (
    check_autofill_ready,
    check_frame_size_match,
    check_frames_present,
    check_point_ids_consistent,
    check_points_assigned,
    run_validation,
)


class TestRules:
    """Tests for individual checks."""

    def test_no_frames_is_error(self, default_config):
        report = run_validation([], default_config)

        assert report.has_errors
        assert report.error_count == 1
        assert not check_frames_present([]).passed

    def test_size_mismatch_warns(self, frame_factory):
        result = check_frame_size_match([frame_factory("a", 10, 10), frame_factory("b", 12, 10)])

        assert not result.passed
        assert result.severity == Severity.WARN
        assert result.evidence["frames"] == ["b"]

    def test_sizes_match(self, frame_factory):
        assert check_frame_size_match([frame_factory("a"), frame_factory("b")]).passed

    def test_point_missing_in_frame(self, frame_factory, point_factory):
        frames = [
            frame_factory("a", points=[point_factory("p", 1, 1)]),
            frame_factory("b"),
        ]

        result = check_point_ids_consistent(frames)

        assert not result.passed
        assert result.evidence["missing"] == {"b": ["p"]}

    def test_unassigned_point(self, frame_factory, point_factory):
        frames = [frame_factory("a", points=[point_factory("p", 0, 0, is_keyframe=False)])]

        assert not check_points_assigned(frames).passed

    def test_autofill_ready_is_info(self, orbit_frames, frame_factory, point_factory):
        assert check_autofill_ready(orbit_frames).passed

        sparse = [frame_factory("a", points=[point_factory("p", 1, 1)])]
        result = check_autofill_ready(sparse)
        assert not result.passed
        assert result.severity == Severity.INFO

    def test_point_checks_only_in_character_mode(self, orbit_frames, default_config):
        default_config.export.mode = "animation"

        report = run_validation(orbit_frames, default_config)

        rule_ids = {c.rule_id for c in report.checks}
        assert "points_assigned" not in rule_ids
        assert "frames_present" in rule_ids

    def test_clean_project(self, orbit_frames, default_config):
        report = run_validation(orbit_frames, default_config)

        assert not report.has_errors
        assert report.warning_count == 0


class TestReport:

    def test_report_files(self, temp_dir, orbit_frames, default_config):
        report = run_validation(orbit_frames[:1], default_config)

        report_path, summary_path = generate_report(report, temp_dir)

        with open(report_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        assert len(data["checks"]) == len(report.checks)
        assert os.path.exists(summary_path)
        with open(summary_path, "r", encoding="utf-8") as f:
            summary = f.read()
        assert "ISSUES:" in summary
        assert "autofill_ready" in summary

    def test_format(self):
        result = check_frames_present([])
        assert format_check_result(result) == "[FAIL][ERROR] frames_present: No frames loaded"
