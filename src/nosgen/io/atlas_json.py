"""
Atlas JSON export.

Builds the descriptor written next to the atlas PNG: meta block, optional
point groups (character mode), optional animation block (animation mode),
and one rectangle per frame with points in pivot space.
"""

from nosgen.atlas.layout import compute_atlas_layout, frame_rect, scaled_size
from nosgen.fitting.primitives import round_half_up
from nosgen.io.pivot import to_pivot_coords
from nosgen.io.save_artifacts import normalize_export_name
from nosgen.models import AppMode, PivotMode, SpriteDirection, parse_enum
from nosgen.tracer import get_tracer, trace

APP_NAME = "NosGen"


def export_base_names(project_name):
    """(atlas_name, data_name) for a project name."""
    base = normalize_export_name(project_name, "project")
    return f"{base}_atlas", f"{base}_data"


def _export_groups(frames, point_groups):
    id_to_name = {}
    if frames:
        for point in frames[0].points:
            id_to_name[point.id] = point.name

    groups = {}
    for group in point_groups:
        name = group.name or f"group-{group.id[:6]}"
        groups[name] = [[id_to_name.get(pid, pid) for pid in entry] for entry in group.entries]
    return groups


@trace(label="build_atlas_json")
def build_atlas_json(frames, config, point_groups=None, animation_frames=None, atlas_name=None):
    """
    Build the atlas descriptor as a plain dict.

    Args:
        frames: list of FrameData in atlas order
        config: NosGenConfig (atlas, export, fit and animation sections are read)
        point_groups: list of PointGroup, exported in character mode
        animation_frames: frame names of the animation; defaults to all frames
        atlas_name: image base name; defaults to "<project>_atlas"

    Returns:
        dict ready for json.dump, or None when there are no frames
    """
    tracer = get_tracer()

    if not frames:
        tracer.event("No frames to export", level="WARN")
        return None

    mode = parse_enum(AppMode, config.export.mode, AppMode.CHARACTER)
    pivot = parse_enum(PivotMode, config.export.pivot, PivotMode.TOP_LEFT)
    direction = parse_enum(SpriteDirection, config.fit.sprite_direction, SpriteDirection.CLOCKWISE)
    if atlas_name is None:
        atlas_name = export_base_names(config.export.name)[0]

    layout = compute_atlas_layout(frames, config.atlas.rows, config.atlas.padding)
    target_width, target_height, scale_x, scale_y = scaled_size(
        layout, config.export.scale, config.export.min_scale, config.export.max_scale,
    )
    include_points = mode == AppMode.CHARACTER

    exported_frames = []
    for index, frame in enumerate(frames):
        x, y, w, h = frame_rect(layout, index, frame, scale_x, scale_y)
        entry = {"name": frame.name, "x": x, "y": y, "w": w, "h": h}
        if include_points:
            points = []
            for point in frame.points:
                px, py = to_pivot_coords(point.x, point.y, frame.width, frame.height, pivot)
                points.append({
                    "name": point.name,
                    "x": round_half_up(px * scale_x),
                    "y": round_half_up(py * scale_y),
                })
            entry["points"] = points
        exported_frames.append(entry)

    meta = {
        "app": APP_NAME,
        "image": f"{atlas_name}.png",
        "size": {"w": target_width, "h": target_height},
        "rows": layout.rows,
        "columns": layout.columns,
        "padding": round_half_up(layout.padding * scale_x),
        "scale": config.export.size,
        "pivot": pivot.value,
    }
    if include_points:
        meta["spriteDirection"] = direction.value
    meta["mode"] = mode.value

    payload = {"meta": meta}

    if include_points and point_groups:
        payload["groups"] = _export_groups(frames, point_groups)

    if mode == AppMode.ANIMATION:
        names = animation_frames if animation_frames is not None else [frame.name for frame in frames]
        payload["animation"] = {
            "name": config.animation.name.strip() or "animation",
            "fps": config.animation.fps,
            "speed": config.animation.speed,
            "loop": config.animation.loop,
            "frames": list(names),
        }

    payload["frames"] = exported_frames

    tracer.event(f"Built atlas JSON: {len(exported_frames)} frames, mode={mode.value}")

    return payload
