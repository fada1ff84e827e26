"""
Main pipeline orchestrator for NosGen.

Loads frames, applies imported points, optionally auto-fills them, packs
the atlas and writes the PNG, the JSON descriptor and the validation report.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from nosgen.atlas.layout import compute_atlas_layout
from nosgen.atlas.render import render_atlas
from nosgen.config import load_config
from nosgen.fitting.autofill import autofill_all_points
from nosgen.io.atlas_json import build_atlas_json, export_base_names
from nosgen.io.load_image import load_frames, validate_frame_inputs
from nosgen.io.points_import import build_groups_from_json, import_atlas, import_points_json
from nosgen.io.save_artifacts import ensure_dir, export_frames_zip, load_json, save_json, save_png
from nosgen.models import AtlasLayout, FrameData, PointGroup, ValidationReport
from nosgen.tracer import get_tracer, trace
from nosgen.validate.report import generate_report
from nosgen.validate.rules import run_validation


@dataclass
class BuildResult:
    """Everything a build or edit run produced."""
    frames: List[FrameData]
    layout: Optional[AtlasLayout] = None
    atlas_path: Optional[str] = None
    json_path: Optional[str] = None
    zip_path: Optional[str] = None
    validation: Optional[ValidationReport] = None
    point_groups: List[PointGroup] = field(default_factory=list)
    failed_inputs: List[str] = field(default_factory=list)


def load_input_frames(frame_paths):
    """
    Load frames, skipping files that fail.

    Returns (frames, failed_paths). Raises ValueError if nothing loaded.
    """
    tracer = get_tracer()

    for error in validate_frame_inputs(frame_paths):
        tracer.event(error, level="WARN")

    results = load_frames(frame_paths)
    frames = [r.frame for r in results if r.ok]
    failed = [r.path for r in results if not r.ok]

    if not frames:
        raise ValueError(f"No frames could be loaded from {len(frame_paths)} inputs")

    return frames, failed


def apply_points_file(frames, points_path, config):
    """
    Apply a points JSON to frames and copy its meta settings into config.

    Returns (frames, point_groups).
    """
    payload = load_json(points_path)
    imported = import_points_json(payload, frames)

    if imported.sprite_direction is not None:
        config.fit.sprite_direction = imported.sprite_direction.value
    if imported.pivot_mode is not None:
        config.export.pivot = imported.pivot_mode.value
    if imported.export_size is not None:
        config.export.size = imported.export_size

    return imported.frames, build_groups_from_json(payload, imported.frames)


def export_project(frames, out_dir, config, point_groups=None, animation_frames=None, frames_zip=False):
    """
    Write <name>_atlas.png and <name>_data.json (and optionally <name>_frames.zip).

    Returns BuildResult with the layout, paths and validation report.
    """
    tracer = get_tracer()
    ensure_dir(out_dir)

    atlas_name, data_name = export_base_names(config.export.name)

    with tracer.span("pack_atlas", module="pipeline"):
        layout = compute_atlas_layout(frames, config.atlas.rows, config.atlas.padding)
        atlas = render_atlas(
            frames, layout,
            scale=config.export.scale,
            smoothing=config.export.smoothing,
            min_scale=config.export.min_scale,
            max_scale=config.export.max_scale,
        )
        atlas_path = os.path.join(out_dir, f"{atlas_name}.png")
        save_png(atlas, atlas_path)

    with tracer.span("export_json", module="pipeline"):
        payload = build_atlas_json(
            frames, config,
            point_groups=point_groups,
            animation_frames=animation_frames,
            atlas_name=atlas_name,
        )
        json_path = os.path.join(out_dir, f"{data_name}.json")
        save_json(payload, json_path)

    zip_path = None
    if frames_zip:
        base = atlas_name[:-len("_atlas")]
        zip_path = export_frames_zip(frames, os.path.join(out_dir, f"{base}_frames.zip"))

    with tracer.span("validate", module="pipeline"):
        validation = run_validation(frames, config)
        generate_report(validation, out_dir)

    return BuildResult(
        frames=frames,
        layout=layout,
        atlas_path=atlas_path,
        json_path=json_path,
        zip_path=zip_path,
        validation=validation,
        point_groups=list(point_groups or []),
    )


@trace(label="build_atlas")
def build_atlas(frame_paths, out_dir, points_path=None, config=None, config_path=None,
                autofill=False, frames_zip=False):
    """
    Build an atlas from individual frame images.

    Args:
        frame_paths: PNG files in frame order
        out_dir: output directory
        points_path: optional points JSON (atlas or legacy format)
        config: NosGenConfig (optional)
        config_path: path to YAML config file (optional)
        autofill: fill non-keyframe positions with the configured shape
        frames_zip: also write every frame into a ZIP archive

    Returns:
        BuildResult
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    with tracer.span("load_frames", module="pipeline"):
        frames, failed = load_input_frames(frame_paths)

    point_groups = []
    if points_path:
        with tracer.span("import_points", module="pipeline"):
            frames, point_groups = apply_points_file(frames, points_path, config)

    if autofill:
        with tracer.span("autofill", module="pipeline"):
            frames = autofill_all_points(
                frames, config.fit.shape, config.fit.sprite_direction, config.fit.phase_steps,
            )

    result = export_project(frames, out_dir, config, point_groups=point_groups, frames_zip=frames_zip)
    result.failed_inputs = failed

    tracer.event(f"Build complete: {len(frames)} frames, {len(failed)} failed inputs")

    return result


def apply_imported_settings(imported, config):
    """Copy settings read from an atlas descriptor into config."""
    if imported.rows is not None:
        config.atlas.rows = imported.rows
    if imported.padding is not None:
        config.atlas.padding = imported.padding
    if imported.sprite_direction is not None:
        config.fit.sprite_direction = imported.sprite_direction.value
    if imported.pivot_mode is not None:
        config.export.pivot = imported.pivot_mode.value
    if imported.export_size is not None:
        config.export.size = imported.export_size
    if imported.app_mode is not None:
        config.export.mode = imported.app_mode.value
    if imported.project_name:
        config.export.name = imported.project_name

    animation = imported.animation
    if animation is not None:
        if animation.name is not None:
            config.animation.name = animation.name
        if animation.fps is not None:
            config.animation.fps = animation.fps
        if animation.speed is not None:
            config.animation.speed = animation.speed
        if animation.loop is not None:
            config.animation.loop = animation.loop

    return config


def selected_animation_frames(imported):
    """Frame names selected for the animation block, or None for all frames."""
    if imported.animation is None or imported.animation.frame_selection is None:
        return None
    selection = imported.animation.frame_selection
    return [frame.name for frame in imported.frames if selection.get(frame.id, False)]


@trace(label="edit_atlas")
def edit_atlas(atlas_path, json_path, out_dir, config=None, config_path=None,
               autofill=False, frames_zip=False):
    """
    Re-open an exported atlas and export it again.

    Settings stored in the descriptor (rows, padding, pivot, direction,
    mode, animation) override the config.

    Returns:
        BuildResult
    """
    tracer = get_tracer()

    if config is None:
        config = load_config(config_path)

    with tracer.span("import_atlas", module="pipeline"):
        imported = import_atlas(atlas_path, json_path)
        config = apply_imported_settings(imported, config)

    frames = imported.frames
    if autofill:
        with tracer.span("autofill", module="pipeline"):
            frames = autofill_all_points(
                frames, config.fit.shape, config.fit.sprite_direction, config.fit.phase_steps,
            )

    result = export_project(
        frames, out_dir, config,
        point_groups=imported.point_groups,
        animation_frames=selected_animation_frames(imported),
        frames_zip=frames_zip,
    )

    tracer.event(f"Atlas re-exported to {out_dir}")

    return result


@trace(label="autofill_points")
def autofill_points(frame_paths, points_path, out_dir, config=None, config_path=None):
    """
    Auto-fill points of a frame sequence and write only the descriptor.

    Returns (frames, json_path).
    """
    if config is None:
        config = load_config(config_path)

    frames, _ = load_input_frames(frame_paths)
    frames, point_groups = apply_points_file(frames, points_path, config)
    frames = autofill_all_points(
        frames, config.fit.shape, config.fit.sprite_direction, config.fit.phase_steps,
    )

    atlas_name, data_name = export_base_names(config.export.name)
    payload = build_atlas_json(frames, config, point_groups=point_groups, atlas_name=atlas_name)

    json_path = os.path.join(out_dir, f"{data_name}.json")
    save_json(payload, json_path)

    return frames, json_path
