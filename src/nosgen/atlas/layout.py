"""
Grid layout of frames in the atlas.

Every cell has the size of the largest frame, so cell geometry never depends
on which frame lands where. Frames smaller than a cell are centered in it
when rasterized.
"""

import math

from nosgen.fitting.primitives import clamp, round_half_up
from nosgen.models import AtlasCell, AtlasLayout
from nosgen.tracer import get_tracer, trace


@trace(label="compute_atlas_layout")
def compute_atlas_layout(frames, rows, padding):
    """
    Compute a fixed row-major grid for the frames.

    Args:
        frames: sequence of objects with width and height (FrameData)
        rows: requested row count, rounded and clamped to at least 1
        padding: gap in pixels around and between cells, rounded, at least 0

    Returns:
        AtlasLayout; padding is counted before the first and after the last
        cell on both axes.
    """
    safe_padding = max(0, round_half_up(padding))
    safe_rows = max(1, round_half_up(rows))

    cell_width = max([1] + [frame.width for frame in frames])
    cell_height = max([1] + [frame.height for frame in frames])
    columns = max(1, math.ceil(len(frames) / safe_rows))

    width = columns * cell_width + safe_padding * (columns + 1)
    height = safe_rows * cell_height + safe_padding * (safe_rows + 1)

    positions = []
    for index in range(len(frames)):
        row = index // columns
        column = index % columns
        positions.append(AtlasCell(
            x=safe_padding + column * (cell_width + safe_padding),
            y=safe_padding + row * (cell_height + safe_padding),
            w=cell_width,
            h=cell_height,
        ))

    get_tracer().event(f"Grid {safe_rows}x{columns}, atlas {width}x{height}", frames=len(frames))

    return AtlasLayout(
        rows=safe_rows,
        columns=columns,
        padding=safe_padding,
        cell_width=cell_width,
        cell_height=cell_height,
        width=width,
        height=height,
        positions=positions,
    )


def cell_offset(layout, frame):
    """Offset of a frame inside its cell so it sits centered (floored)."""
    return (
        (layout.cell_width - frame.width) // 2,
        (layout.cell_height - frame.height) // 2,
    )


def scaled_size(layout, scale, min_scale=0.5, max_scale=4.0):
    """
    Export size for a layout at a given scale.

    Returns (target_width, target_height, scale_x, scale_y); the per-axis
    factors absorb the rounding of the target size.
    """
    safe_scale = clamp(scale, min_scale, max_scale)
    target_width = max(1, round_half_up(layout.width * safe_scale))
    target_height = max(1, round_half_up(layout.height * safe_scale))
    return (
        target_width,
        target_height,
        target_width / layout.width,
        target_height / layout.height,
    )


def frame_rect(layout, index, frame, scale_x=1.0, scale_y=1.0):
    """Rectangle (x, y, w, h) a frame occupies in the exported atlas."""
    cell = layout.positions[index]
    offset_x, offset_y = cell_offset(layout, frame)
    return (
        round_half_up((cell.x + offset_x) * scale_x),
        round_half_up((cell.y + offset_y) * scale_y),
        round_half_up(frame.width * scale_x),
        round_half_up(frame.height * scale_y),
    )
