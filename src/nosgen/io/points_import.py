"""
Import of points JSON and existing atlases.

Two payload shapes are understood:

- atlas format: a "frames" array whose entries carry name/x/y/w/h and an
  optional "points" list of {name, x, y} in pivot space;
- legacy format: every non-"meta" key holding an array is a point name, and
  element i of that array is [x, y] for frame i (or missing).

Malformed items are skipped one at a time. Only an atlas payload without a
single usable frame entry is rejected as a whole.
"""

import math
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from nosgen.atlas.render import slice_atlas
from nosgen.fitting.primitives import clamp, round_half_up
from nosgen.io.load_image import decode_image
from nosgen.io.pivot import from_pivot_coords
from nosgen.io.save_artifacts import load_json
from nosgen.models import (
    AppMode,
    FrameData,
    FramePoint,
    PivotMode,
    PointGroup,
    SpriteDirection,
    create_id,
    create_point_color,
    parse_enum,
)
from nosgen.tracer import get_tracer, trace


class AtlasImportError(ValueError):
    """The payload holds nothing that can be imported."""


@dataclass
class AtlasEntry:
    """One frame rectangle read from an atlas descriptor."""
    name: str
    x: float
    y: float
    w: float
    h: float


@dataclass
class PointsImportResult:
    frames: List[FrameData]
    sprite_direction: Optional[SpriteDirection] = None
    pivot_mode: Optional[PivotMode] = None
    export_size: Optional[float] = None


@dataclass
class AnimationSettings:
    name: Optional[str] = None
    fps: Optional[int] = None
    speed: Optional[float] = None
    loop: Optional[bool] = None
    frame_selection: Optional[Dict[str, bool]] = None


@dataclass
class AtlasImportResult:
    frames: List[FrameData]
    point_groups: List[PointGroup] = field(default_factory=list)
    sprite_direction: Optional[SpriteDirection] = None
    pivot_mode: Optional[PivotMode] = None
    rows: Optional[int] = None
    padding: Optional[int] = None
    export_size: Optional[float] = None
    app_mode: Optional[AppMode] = None
    animation: Optional[AnimationSettings] = None
    project_name: Optional[str] = None


def to_finite(value):
    """Number from a JSON value, or None when it is missing or not finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def default_point_name(index):
    return f"point-{index}"


class _PointRegistry:
    """Keeps one id and one color per point name across frames."""

    def __init__(self, rng=None):
        self.rng = rng
        self.ids = {}
        self.colors = {}

    def build(self, name, x, y, frame, is_keyframe=True):
        point_id = self.ids.setdefault(name, create_id())
        if name not in self.colors:
            self.colors[name] = create_point_color(self.rng)
        return FramePoint(
            id=point_id,
            name=name,
            color=self.colors[name],
            x=clamp(round_half_up(x), 0, frame.width),
            y=clamp(round_half_up(y), 0, frame.height),
            is_keyframe=is_keyframe,
        )


def _read_meta(payload):
    meta = payload.get("meta")
    return meta if isinstance(meta, dict) else {}


def _text_field(raw, key):
    value = raw.get(key)
    return value if isinstance(value, str) and value else None


def _entry_name(raw):
    return _text_field(raw, "name") or _text_field(raw, "filename") or _text_field(raw, "id") or "frame"


def _match_frame_entry(entries, frame):
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if frame.name in (_text_field(entry, "name"), _text_field(entry, "filename")):
            return entry
        if _text_field(entry, "id") == frame.id:
            return entry
    return None


@trace(label="import_points_json")
def import_points_json(payload, base_frames, rng=None):
    """
    Apply points from a parsed JSON payload to frames.

    Frames in atlas format are matched by name, filename or id; frames
    without a match keep their points. Imported points are keyframes,
    converted from the payload's pivot space, rounded and clamped into the
    frame.

    Returns:
        PointsImportResult with the new frame list and the meta settings found
    """
    tracer = get_tracer()

    if not isinstance(payload, dict):
        tracer.event("Points payload is not an object, ignoring", level="WARN")
        return PointsImportResult(frames=list(base_frames))

    meta = _read_meta(payload)
    pivot_mode = parse_enum(PivotMode, meta.get("pivot", meta.get("pivotMode")))
    sprite_direction = parse_enum(SpriteDirection, meta.get("spriteDirection"))
    export_size = to_finite(meta.get("scale", meta.get("exportSize")))
    effective_pivot = pivot_mode or PivotMode.TOP_LEFT
    registry = _PointRegistry(rng)

    frames_payload = payload.get("frames")
    if isinstance(frames_payload, list):
        next_frames = []
        skipped = 0
        for frame in base_frames:
            match = _match_frame_entry(frames_payload, frame)
            if match is None or not isinstance(match.get("points"), list):
                next_frames.append(frame)
                continue

            points = []
            for index, raw in enumerate(match["points"]):
                if not isinstance(raw, dict):
                    skipped += 1
                    continue
                raw_name = raw.get("name")
                name = raw_name if isinstance(raw_name, str) and raw_name else default_point_name(index + 1)
                x = to_finite(raw.get("x", 0))
                y = to_finite(raw.get("y", 0))
                if x is None or y is None:
                    skipped += 1
                    continue
                fx, fy = from_pivot_coords(x, y, frame.width, frame.height, effective_pivot)
                points.append(registry.build(name, fx, fy, frame))
            next_frames.append(frame.model_copy(update={"points": points}))

        if skipped:
            tracer.event(f"Skipped {skipped} malformed points", level="WARN")
        return PointsImportResult(next_frames, sprite_direction, pivot_mode, export_size)

    entries = [(key, value) for key, value in payload.items() if key != "meta" and isinstance(value, list)]
    if not entries:
        return PointsImportResult(list(base_frames), sprite_direction, pivot_mode, export_size)

    next_frames = []
    for frame_index, frame in enumerate(base_frames):
        points = []
        for index, (raw_name, raw_points) in enumerate(entries):
            name = raw_name or default_point_name(index + 1)
            entry = raw_points[frame_index] if frame_index < len(raw_points) else None
            coords = None
            if isinstance(entry, (list, tuple)) and len(entry) >= 2:
                x, y = to_finite(entry[0]), to_finite(entry[1])
                if x is not None and y is not None:
                    coords = from_pivot_coords(x, y, frame.width, frame.height, effective_pivot)
            if coords is None:
                points.append(registry.build(name, 0, 0, frame, is_keyframe=False))
            else:
                points.append(registry.build(name, coords[0], coords[1], frame))
        next_frames.append(frame.model_copy(update={"points": points}))

    tracer.event(f"Imported legacy points: {len(entries)} names over {len(next_frames)} frames")
    return PointsImportResult(next_frames, sprite_direction, pivot_mode, export_size)


def build_groups_from_json(payload, frames):
    """
    Point groups from the payload's "groups" object.

    Point names are resolved to ids through the first frame; unknown names
    are dropped.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("groups"), dict):
        return []

    name_to_id = {}
    if frames:
        for point in frames[0].points:
            name_to_id[point.name] = point.id

    groups = []
    for name, raw_entries in payload["groups"].items():
        entries = []
        for entry in raw_entries if isinstance(raw_entries, list) else []:
            if not isinstance(entry, list):
                entries.append([])
                continue
            entries.append([name_to_id[n] for n in entry if isinstance(n, str) and n in name_to_id])
        groups.append(PointGroup(id=create_id(), name=name, entries=entries))
    return groups


def parse_atlas_entries(payload):
    """Frame rectangles of an atlas descriptor; invalid entries are skipped."""
    if not isinstance(payload, dict) or not isinstance(payload.get("frames"), list):
        return []

    entries = []
    for raw in payload["frames"]:
        if not isinstance(raw, dict):
            continue
        width = to_finite(raw.get("w", raw.get("width", 0)))
        height = to_finite(raw.get("h", raw.get("height", 0)))
        if width is None or height is None or width <= 0 or height <= 0:
            continue
        entries.append(AtlasEntry(
            name=_entry_name(raw),
            x=to_finite(raw.get("x", 0)) or 0.0,
            y=to_finite(raw.get("y", 0)) or 0.0,
            w=width,
            h=height,
        ))
    return entries


def parse_animation(payload, frames):
    """Animation settings from the payload, or None when nothing usable is present."""
    raw = payload.get("animation") if isinstance(payload, dict) else None
    if not isinstance(raw, dict):
        return None

    settings = AnimationSettings()
    if isinstance(raw.get("name"), str):
        settings.name = raw["name"]
    fps = to_finite(raw.get("fps"))
    if fps is not None:
        settings.fps = max(1, round_half_up(fps))
    speed = to_finite(raw.get("speed"))
    if speed is not None:
        settings.speed = speed
    if isinstance(raw.get("loop"), bool):
        settings.loop = raw["loop"]
    if isinstance(raw.get("frames"), list):
        selected = {name for name in raw["frames"] if isinstance(name, str)}
        settings.frame_selection = {frame.id: frame.name in selected for frame in frames}

    if settings == AnimationSettings():
        return None
    return settings


def project_name_from_atlas(png_path):
    """Project name from an atlas file name, dropping a trailing "_atlas"."""
    base = os.path.splitext(os.path.basename(png_path))[0]
    if base.endswith("_atlas"):
        base = base[:-len("_atlas")]
    return base or None


@trace(label="import_atlas")
def import_atlas(png_path, json_path, rng=None):
    """
    Load an exported atlas (PNG + JSON) back into frames with points.

    Raises AtlasImportError when the descriptor has no usable frame entry.
    """
    tracer = get_tracer()

    payload = load_json(json_path)
    entries = parse_atlas_entries(payload)
    if not entries:
        raise AtlasImportError(f"No frame entries in atlas descriptor: {json_path}")

    frames = slice_atlas(decode_image(png_path), entries)
    if not frames:
        raise AtlasImportError(f"No frames could be sliced from atlas: {png_path}")

    imported = import_points_json(payload, frames, rng=rng)
    groups = build_groups_from_json(payload, imported.frames)

    meta = _read_meta(payload)
    rows = to_finite(meta.get("rows"))
    padding = to_finite(meta.get("padding"))

    result = AtlasImportResult(
        frames=imported.frames,
        point_groups=groups,
        sprite_direction=imported.sprite_direction,
        pivot_mode=imported.pivot_mode,
        rows=max(1, round_half_up(rows)) if rows is not None else None,
        padding=max(0, round_half_up(padding)) if padding is not None else None,
        export_size=imported.export_size,
        app_mode=parse_enum(AppMode, meta.get("mode")),
        animation=parse_animation(payload, imported.frames),
        project_name=project_name_from_atlas(png_path),
    )

    tracer.event(f"Imported atlas: {len(result.frames)} frames, {len(groups)} groups")

    return result
