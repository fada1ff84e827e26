"""
Artifact saving utilities for NosGen.

Writes atlas PNGs, JSON descriptors and frame archives.
"""

import json
import os
import re
import zipfile

import cv2

from nosgen.io.load_image import ensure_rgba
from nosgen.tracer import get_tracer, trace


def ensure_dir(path):
    """Create directory if it does not exist."""
    if path:
        os.makedirs(path, exist_ok=True)


def encode_png(image):
    """Encode an RGBA (or gray/RGB) array as PNG bytes."""
    bgra = cv2.cvtColor(ensure_rgba(image), cv2.COLOR_RGBA2BGRA)
    ok, buffer = cv2.imencode(".png", bgra)
    if not ok:
        raise ValueError("PNG encoding failed")
    return buffer.tobytes()


def save_png(image, path):
    """Save an RGBA array as PNG."""
    ensure_dir(os.path.dirname(path))
    with open(path, "wb") as f:
        f.write(encode_png(image))
    get_tracer().event(f"Saved image: {path}")


def save_json(data, path, indent=2):
    """
    Save a dictionary or Pydantic model to JSON.
    """
    ensure_dir(os.path.dirname(path))

    if hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=indent, default=str)

    get_tracer().event(f"Saved JSON: {path}")


def load_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def slugify_frame_name(name):
    """File-system safe stem of a frame name (extension dropped)."""
    stem = re.sub(r"\.[^/.]+$", "", name.strip())
    sanitized = re.sub(r"_+", "_", re.sub(r"[^a-zA-Z0-9_-]+", "_", stem))
    return sanitized.strip("_") or "frame"


def normalize_export_name(value, fallback):
    """Export base name: spaces to underscores, safe characters only, max 64."""
    trimmed = value.strip()
    if not trimmed:
        return fallback
    safe = re.sub(r"[^a-zA-Z0-9_-]", "", re.sub(r"\s+", "_", trimmed))[:64]
    return safe or fallback


def build_unique_frame_name(raw_name, index, used_names):
    """
    Archive entry name NNN_<slug>[_k].png.

    used_names counts how often each slug was seen and is updated in place.
    """
    base = slugify_frame_name(raw_name or f"frame-{index + 1}")
    count = used_names.get(base, 0)
    used_names[base] = count + 1
    suffix = f"_{count + 1}" if count > 0 else ""
    return f"{index + 1:03d}_{base}{suffix}.png"


@trace(label="export_frames_zip")
def export_frames_zip(frames, path):
    """
    Write every frame as its own PNG into a ZIP archive.

    Frames without an image are skipped.
    """
    tracer = get_tracer()
    ensure_dir(os.path.dirname(path))

    used_names = {}
    written = 0
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=6) as archive:
        for index, frame in enumerate(frames):
            if frame.image is None:
                continue
            filename = build_unique_frame_name(frame.name, index, used_names)
            archive.writestr(filename, encode_png(frame.image))
            written += 1

    tracer.event(f"Saved {written} frames to {path}")
    return path
