"""
Validation rules for NosGen projects.

Checks the frame list before export: missing frames, mixed frame sizes,
points that were never placed, and points auto-fill cannot handle.
"""

from nosgen.fitting.autofill import collect_keyframes, logical_point_ids
from nosgen.models import AppMode, CheckResult, Severity, ValidationReport, parse_enum
from nosgen.tracer import get_tracer, trace


@trace(label="run_validation")
def run_validation(frames, config):
    """
    Run all validation checks on a frame list.

    Returns ValidationReport with all check results.
    """
    tracer = get_tracer()

    checks = [
        check_frames_present(frames),
        check_frame_size_match(frames),
        check_point_ids_consistent(frames),
    ]
    if parse_enum(AppMode, config.export.mode, AppMode.CHARACTER) == AppMode.CHARACTER:
        checks.append(check_points_assigned(frames))
        checks.append(check_autofill_ready(frames))

    report = ValidationReport(checks=checks)

    tracer.event(f"Validation complete: {report.error_count} errors, {report.warning_count} warnings")

    return report


def check_frames_present(frames):
    if not frames:
        return CheckResult(
            rule_id="frames_present",
            severity=Severity.ERROR,
            passed=False,
            message="No frames loaded",
        )
    return CheckResult(
        rule_id="frames_present",
        severity=Severity.ERROR,
        passed=True,
        message=f"{len(frames)} frames loaded",
        evidence={"count": len(frames)},
    )


def check_frame_size_match(frames):
    """
    Check that all frames share the first frame's size.

    Mixed sizes still pack (cells use the largest frame) but point
    positions are no longer comparable between frames.
    """
    if len(frames) < 2:
        return CheckResult(
            rule_id="frame_size_match",
            severity=Severity.WARN,
            passed=True,
            message="Fewer than two frames, nothing to compare",
        )

    base = frames[0]
    mismatched = [f.name for f in frames if f.width != base.width or f.height != base.height]
    if mismatched:
        return CheckResult(
            rule_id="frame_size_match",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(mismatched)} frames differ from {base.width}x{base.height}",
            evidence={"base_size": [base.width, base.height], "frames": mismatched},
        )
    return CheckResult(
        rule_id="frame_size_match",
        severity=Severity.WARN,
        passed=True,
        message=f"All frames are {base.width}x{base.height}",
    )


def check_point_ids_consistent(frames):
    """Check that every point id exists exactly once in every frame."""
    all_ids = set(logical_point_ids(frames))
    missing = {}
    duplicated = {}

    for frame in frames:
        ids = [p.id for p in frame.points]
        absent = sorted(all_ids - set(ids))
        if absent:
            missing[frame.name] = absent
        dupes = sorted({pid for pid in ids if ids.count(pid) > 1})
        if dupes:
            duplicated[frame.name] = dupes

    if missing or duplicated:
        return CheckResult(
            rule_id="point_ids_consistent",
            severity=Severity.WARN,
            passed=False,
            message=f"Points missing in {len(missing)} frames, duplicated in {len(duplicated)}",
            evidence={"missing": missing, "duplicated": duplicated},
        )
    return CheckResult(
        rule_id="point_ids_consistent",
        severity=Severity.WARN,
        passed=True,
        message="Every point exists once in every frame",
    )


def check_points_assigned(frames):
    """Check that every logical point has at least one keyframe."""
    unassigned = [pid for pid in logical_point_ids(frames) if not collect_keyframes(frames, pid)]

    if unassigned:
        return CheckResult(
            rule_id="points_assigned",
            severity=Severity.WARN,
            passed=False,
            message=f"{len(unassigned)} points have no keyframe",
            evidence={"point_ids": unassigned},
        )
    return CheckResult(
        rule_id="points_assigned",
        severity=Severity.WARN,
        passed=True,
        message="All points have at least one keyframe",
    )


def check_autofill_ready(frames):
    """Report points with fewer than two keyframes, which auto-fill skips."""
    sparse = [pid for pid in logical_point_ids(frames) if len(collect_keyframes(frames, pid)) < 2]

    return CheckResult(
        rule_id="autofill_ready",
        severity=Severity.INFO,
        passed=not sparse,
        message=(
            f"{len(sparse)} points need a second keyframe for auto-fill"
            if sparse else "All points can be auto-filled"
        ),
        evidence={"point_ids": sparse} if sparse else {},
    )
