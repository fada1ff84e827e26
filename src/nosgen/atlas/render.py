"""
Atlas rasterization: blit frames into the grid, and slice an atlas back.
"""

import cv2
import numpy as np

from nosgen.atlas.layout import frame_rect, scaled_size
from nosgen.fitting.primitives import round_half_up
from nosgen.io.load_image import ensure_rgba
from nosgen.models import FrameData, create_id
from nosgen.tracer import get_tracer, trace


def _paste(canvas, tile, x, y):
    """Copy tile into canvas with its top-left at (x, y), clipped to the canvas."""
    tile_h, tile_w = tile.shape[:2]
    x0, y0 = max(0, x), max(0, y)
    x1 = min(canvas.shape[1], x + tile_w)
    y1 = min(canvas.shape[0], y + tile_h)
    if x1 <= x0 or y1 <= y0:
        return
    canvas[y0:y1, x0:x1] = tile[y0 - y:y1 - y, x0 - x:x1 - x]


@trace(label="render_atlas")
def render_atlas(frames, layout, scale=1.0, smoothing=False, min_scale=0.5, max_scale=4.0):
    """
    Rasterize frames into an RGBA atlas image.

    Each frame is centered in its cell. With a scale other than 1 frames are
    resized with nearest-neighbour sampling, or bilinear when smoothing.

    Returns:
        uint8 array of shape (height, width, 4), transparent background
    """
    tracer = get_tracer()

    target_width, target_height, scale_x, scale_y = scaled_size(layout, scale, min_scale, max_scale)
    canvas = np.zeros((target_height, target_width, 4), dtype=np.uint8)
    interpolation = cv2.INTER_LINEAR if smoothing else cv2.INTER_NEAREST

    drawn = 0
    for index, frame in enumerate(frames):
        if index >= len(layout.positions) or frame.image is None:
            continue
        x, y, w, h = frame_rect(layout, index, frame, scale_x, scale_y)
        if w <= 0 or h <= 0:
            continue

        tile = ensure_rgba(frame.image)
        if tile.shape[1] != w or tile.shape[0] != h:
            tile = cv2.resize(tile, (w, h), interpolation=interpolation)
        _paste(canvas, tile, x, y)
        drawn += 1

    tracer.event(f"Rendered atlas {target_width}x{target_height} with {drawn} frames")

    return canvas


@trace(label="slice_atlas")
def slice_atlas(atlas_image, entries):
    """
    Cut frames out of an atlas image.

    Args:
        atlas_image: decoded atlas (any channel count)
        entries: objects with name, x, y, w, h

    Returns:
        list of FrameData without points; areas outside the atlas stay transparent
    """
    source = ensure_rgba(atlas_image)
    frames = []

    for index, entry in enumerate(entries):
        w = round_half_up(entry.w)
        h = round_half_up(entry.h)
        if w <= 0 or h <= 0:
            continue
        tile = np.zeros((h, w, 4), dtype=np.uint8)
        _paste(tile, source, -round_half_up(entry.x), -round_half_up(entry.y))
        frames.append(FrameData(
            id=create_id(),
            name=entry.name or f"frame-{index + 1}",
            width=w,
            height=h,
            image=tile,
        ))

    get_tracer().event(f"Sliced {len(frames)} frames from atlas")

    return frames
