"""
Image loading utilities for NosGen.

Frames are kept as RGBA uint8 arrays regardless of the source channel count.
"""

import os
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from nosgen.models import FrameData, generate_frame_id
from nosgen.tracer import get_tracer, trace

SUPPORTED_EXTENSIONS = [".png"]


@dataclass
class FrameLoadResult:
    """Outcome of decoding one source file."""
    path: str
    frame: Optional[FrameData] = None
    error: Optional[str] = None

    @property
    def ok(self):
        return self.frame is not None


def ensure_rgba(image):
    """Convert a grayscale, RGB or RGBA array to RGBA uint8."""
    image = np.asarray(image)
    if image.dtype != np.uint8:
        if image.dtype == np.uint16:
            image = (image // 257).astype(np.uint8)
        else:
            image = np.clip(image, 0, 255).astype(np.uint8)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGBA)
    if image.shape[2] == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)
    if image.shape[2] == 4:
        return image
    raise ValueError(f"Unsupported channel count: {image.shape[2]}")


def decode_image(path):
    """
    Decode an image file to an RGBA array.

    Raises FileNotFoundError if path does not exist.
    Raises ValueError if the file cannot be decoded.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Image not found: {path}")

    img = cv2.imread(path, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ValueError(f"Failed to load image: {path}")

    # OpenCV decodes to BGR(A)
    if img.ndim == 3 and img.shape[2] == 4:
        img = cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    elif img.ndim == 3 and img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)

    return ensure_rgba(img)


@trace(label="load_frame")
def load_frame(path, index=0):
    """
    Load one frame from disk.

    The frame name is the file name; the id is derived from the path and
    index so reloading the same files yields the same ids.
    """
    image = decode_image(path)
    height, width = image.shape[:2]

    get_tracer().event(f"Loaded frame: {os.path.basename(path)} {width}x{height}")

    return FrameData(
        id=generate_frame_id(os.path.abspath(path), index),
        name=os.path.basename(path),
        width=width,
        height=height,
        image=image,
    )


def load_frames(paths):
    """
    Load several frames, collecting failures per file.

    A file that fails to decode does not stop the others.

    Returns a list of FrameLoadResult in input order.
    """
    tracer = get_tracer()
    results = []

    for index, path in enumerate(paths):
        try:
            results.append(FrameLoadResult(path=path, frame=load_frame(path, index)))
        except (FileNotFoundError, ValueError, cv2.error) as e:
            tracer.event(f"Skipping frame {path}: {e}", level="WARN")
            results.append(FrameLoadResult(path=path, error=str(e)))

    return results


def validate_frame_inputs(paths):
    """
    Check that input paths exist and have a supported extension.

    Returns a list of error messages (empty if all valid).
    """
    errors = []

    for path in paths:
        if not os.path.exists(path):
            errors.append(f"File not found: {path}")
            continue

        ext = os.path.splitext(path)[1].lower()
        if ext not in SUPPORTED_EXTENSIONS:
            errors.append(f"Unsupported image format: {path}")

    return errors
